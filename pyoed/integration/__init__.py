"""
Numerical integration schemes for OED integrands.

Modules
-------

- :mod:`integrators`:
  Defines :class:`~pyoed.integration.integrators.IntegrationMethod`, the
  :data:`~pyoed.integration.integrators.INTEGRATORS` registry and the
  :func:`~pyoed.integration.integrators.integrate` dispatcher, together with the
  adaptive trapezoidal and Gauss-Lobatto schemes.
"""

from .integrators import (
    IntegrationMethod,
    INTEGRATORS,
    integrate,
    adaptive_trapezoid,
    fixed_trapezoid,
    adaptive_lobatto,
)

__all__ = [
    "IntegrationMethod",
    "INTEGRATORS",
    "integrate",
    "adaptive_trapezoid",
    "fixed_trapezoid",
    "adaptive_lobatto",
]
