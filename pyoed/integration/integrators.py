"""
Numerical integration of OED integrands over the organ volume.

This module defines :class:`IntegrationMethod` and :func:`integrate`, which
dispatches through the :data:`INTEGRATORS` registry:

- ``quad``: QUADPACK adaptive Gauss-Kronrod (:func:`scipy.integrate.quad`), scalar evaluation
- ``quadv``: vector-valued adaptive Gauss-Kronrod 21-point rule (:func:`scipy.integrate.quad_vec`)
- ``quadl``: adaptive Gauss-Lobatto with Kronrod extension, vectorized evaluation
- ``quadgk``: vector-valued adaptive Gauss-Kronrod 15-point rule (:func:`scipy.integrate.quad_vec`)
- ``trapz``: adaptive trapezoidal rule, halving the step until two estimates agree
- ``trapz_fixed``: plain trapezoidal rule on a single grid, no error control

Tolerances are absolute, except for ``quadl`` where the tolerance is
scaled by the magnitude of a first estimate over the whole interval. The
adaptive trapezoidal rule is bounded in iterations and grid size and raises
:class:`~pyoed.exceptions.NonConvergenceError` when the tolerance cannot be met.
"""

import logging
import warnings
from enum import Enum
from typing import Callable, Dict, Union
import numpy as np
from scipy.integrate import IntegrationWarning, quad, quad_vec, trapezoid

from pyoed.exceptions import NonConvergenceError, UnsupportedIntegrationMethodError

logger = logging.getLogger(__name__)

Integrand = Callable[[Union[float, np.ndarray]], Union[float, np.ndarray]]

# Gauss-Lobatto / Kronrod nodes on [-1, 1] (Gander & Gautschi, BIT 40, 2000)
_LOBATTO_ALPHA = np.sqrt(2.0 / 3.0)
_LOBATTO_BETA = 1.0 / np.sqrt(5.0)


class IntegrationMethod(str, Enum):
    """Numerical integration schemes."""

    QUAD = "quad"
    QUADV = "quadv"
    QUADL = "quadl"
    QUADGK = "quadgk"
    TRAPZ = "trapz"
    TRAPZ_FIXED = "trapz_fixed"

    @classmethod
    def from_name(cls, name: Union[str, "IntegrationMethod"]) -> "IntegrationMethod":
        """
        Resolve a method from its name (case-insensitive) or return the member unchanged.

        :raises UnsupportedIntegrationMethodError: If the name is not recognized.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise UnsupportedIntegrationMethodError(
                f"Unsupported integration method '{name}'. Choose one of: {[m.value for m in cls]}"
            ) from None


def _evaluate(f: Integrand, x: np.ndarray) -> np.ndarray:
    """Evaluate `f` on an array of nodes, broadcasting scalar results."""
    return np.broadcast_to(np.asarray(f(x), dtype=float), x.shape)


def _trapezoid_on_grid(f: Integrand, a: float, b: float, intervals: int) -> float:
    x = np.linspace(a, b, intervals + 1)
    return float(trapezoid(_evaluate(f, x), x))


def _initial_intervals(a: float, b: float, tolerance: float) -> int:
    """Number of intervals for an initial step of ``2 * tolerance * |b - a|``."""
    step = abs(b - a) * tolerance * 2
    return max(1, int(np.ceil(round(abs(b - a) / step, 9))))


def fixed_trapezoid(f: Integrand, a: float, b: float, tolerance: float = 1e-3) -> float:
    """
    Trapezoidal rule on one grid of step ``2 * tolerance * |b - a|``.

    No error control is applied. Use for baseline runs where precision is not a concern.

    :param f: Vectorized integrand.
    :param a: Lower bound.
    :param b: Upper bound.
    :param tolerance: Sets the grid resolution.
    :returns: Integral estimate.
    :rtype: float
    """
    if a == b:
        return 0.0
    return _trapezoid_on_grid(f, a, b, _initial_intervals(a, b, tolerance))


def adaptive_trapezoid(
    f: Integrand,
    a: float,
    b: float,
    tolerance: float = 1e-6,
    max_iterations: int = 20,
    max_points: int = 2**24,
) -> float:
    """
    Trapezoidal rule with step halving until two successive estimates agree.

    The initial step is ``h = |b - a| * tolerance * 2``. The step is halved and
    the integral recomputed while the absolute difference between the last two
    estimates exceeds `tolerance`. Grids always include both bounds.

    A NaN estimate stops the refinement and is returned as is.

    :param f: Vectorized integrand.
    :param a: Lower bound.
    :param b: Upper bound.
    :param tolerance: Absolute tolerance on successive estimates.
    :param max_iterations: Maximum number of step halvings.
    :param max_points: Maximum number of grid nodes.
    :returns: Integral estimate.
    :rtype: float

    :raises ValueError: If `tolerance` is not positive.
    :raises NonConvergenceError: If the tolerance is not met within the limits.
    """
    if tolerance <= 0:
        raise ValueError("tolerance must be positive.")
    if a == b:
        return 0.0

    intervals = _initial_intervals(a, b, tolerance)
    if 2 * intervals + 1 > max_points:
        raise NonConvergenceError(
            f"Tolerance {tolerance:g} requires more than {max_points} grid points.",
            iterations=0,
        )

    previous = _trapezoid_on_grid(f, a, b, intervals)
    intervals *= 2
    current = _trapezoid_on_grid(f, a, b, intervals)
    iterations = 1

    while abs(current - previous) > tolerance:
        if iterations >= max_iterations or 2 * intervals + 1 > max_points:
            raise NonConvergenceError(
                f"Trapezoidal integration did not converge to {tolerance:g} after {iterations} "
                f"refinements (last difference {abs(current - previous):.3e}, {intervals + 1} points).",
                estimate=current,
                difference=abs(current - previous),
                iterations=iterations,
            )
        previous = current
        intervals *= 2
        current = _trapezoid_on_grid(f, a, b, intervals)
        iterations += 1

    logger.debug("trapz converged after %d refinements on %d intervals", iterations, intervals)
    return current


def adaptive_lobatto(
    f: Integrand,
    a: float,
    b: float,
    tolerance: float = 1e-6,
    max_evaluations: int = 10000,
) -> float:
    """
    Adaptive Gauss-Lobatto quadrature with a 7-point Kronrod error estimate.

    Each interval is accepted when its 4-point Lobatto and 7-point Kronrod
    estimates differ by less than `tolerance` times the magnitude of the
    Kronrod estimate over the whole of [a, b] (Gander and Gautschi stopping
    test, with b - a used when that estimate is zero). Otherwise it is split
    into six subintervals at the Kronrod nodes.
    Integrand evaluations are vectorized per interval.

    Emits :class:`scipy.integrate.IntegrationWarning` when the evaluation budget
    is exhausted or intervals shrink to machine precision, and returns the
    estimate reached so far.

    :param f: Vectorized integrand.
    :param a: Lower bound.
    :param b: Upper bound.
    :param tolerance: Tolerance relative to the whole-interval estimate.
    :param max_evaluations: Budget of integrand evaluations.
    :returns: Integral estimate.
    :rtype: float
    """
    if a == b:
        return 0.0

    fa, fb = _evaluate(f, np.array([a, b], dtype=float))
    evaluations = 2
    width = abs(b - a)
    total = 0.0
    scale = None
    exhausted = False
    stack = [(a, b, fa, fb)]

    while stack:
        lo, hi, flo, fhi = stack.pop()
        h = (hi - lo) / 2
        m = (lo + hi) / 2
        nodes = np.array([m - _LOBATTO_ALPHA * h, m - _LOBATTO_BETA * h, m,
                          m + _LOBATTO_BETA * h, m + _LOBATTO_ALPHA * h])
        fmll, fml, fm, fmr, fmrr = _evaluate(f, nodes)
        evaluations += 5

        lobatto = (h / 6) * (flo + fhi + 5 * (fml + fmr))
        kronrod = (h / 1470) * (77 * (flo + fhi) + 432 * (fmll + fmrr) + 625 * (fml + fmr) + 672 * fm)

        if scale is None:
            scale = abs(kronrod) or width
        converged = not abs(kronrod - lobatto) > tolerance * scale
        degenerate = not (min(lo, hi) < nodes.min() and nodes.max() < max(lo, hi))

        if converged or degenerate or evaluations >= max_evaluations:
            if not converged:
                exhausted = True
            total += kronrod
            continue

        edges = [lo, nodes[0], nodes[1], m, nodes[3], nodes[4], hi]
        values = [flo, fmll, fml, fm, fmr, fmrr, fhi]
        for i in range(6):
            stack.append((edges[i], edges[i + 1], values[i], values[i + 1]))

    if exhausted:
        warnings.warn(
            f"quadl: tolerance {tolerance:g} not reached within {max_evaluations} evaluations.",
            IntegrationWarning,
            stacklevel=2,
        )
    return float(total)


def _integrate_quad(f: Integrand, a: float, b: float, tolerance: float) -> float:
    result, _ = quad(f, a, b, epsabs=tolerance, epsrel=0.0, limit=200)
    return float(result)


def _integrate_quadv(f: Integrand, a: float, b: float, tolerance: float) -> float:
    result, _ = quad_vec(f, a, b, epsabs=tolerance, epsrel=0.0, limit=2000, quadrature="gk21")
    return float(result)


def _integrate_quadgk(f: Integrand, a: float, b: float, tolerance: float) -> float:
    result, _ = quad_vec(f, a, b, epsabs=tolerance, epsrel=0.0, limit=2000, quadrature="gk15")
    return float(result)


INTEGRATORS: Dict[IntegrationMethod, Callable[[Integrand, float, float, float], float]] = {
    IntegrationMethod.QUAD: _integrate_quad,
    IntegrationMethod.QUADV: _integrate_quadv,
    IntegrationMethod.QUADL: adaptive_lobatto,
    IntegrationMethod.QUADGK: _integrate_quadgk,
    IntegrationMethod.TRAPZ: adaptive_trapezoid,
    IntegrationMethod.TRAPZ_FIXED: fixed_trapezoid,
}


def integrate(
    integrand: Integrand,
    low: float = 0.0,
    high: float = 1.0,
    method: Union[str, IntegrationMethod] = IntegrationMethod.QUADV,
    tolerance: float = 1e-6,
) -> float:
    """
    Integrate `integrand` over [low, high] with the selected scheme.

    :param integrand: Function of the integration variable. Must accept numpy
        arrays for 'quadl', 'trapz' and 'trapz_fixed'.
    :param low: Lower bound.
    :param high: Upper bound.
    :param method: Integration method or its name.
    :param tolerance: Error tolerance, absolute except for 'quadl' (see module docstring).
    :returns: Integral value.
    :rtype: float

    :raises UnsupportedIntegrationMethodError: If `method` is not recognized.
    :raises ValueError: If `tolerance` is not positive.
    :raises NonConvergenceError: If 'trapz' cannot meet the tolerance.
    """
    method = IntegrationMethod.from_name(method)
    if not tolerance > 0:
        raise ValueError("tolerance must be positive.")
    return INTEGRATORS[method](integrand, float(low), float(high), float(tolerance))
