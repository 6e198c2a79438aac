"""
Multi-run computation engine for OEDTable.

For every organ in the input that has parameters in the organ table, this
module:

- validates the structure fields and builds a :class:`~pyoed.utils.interpolation.DoseVolumeCurve`
  (rescaling percentages, or reconstructing the volume fraction from the
  structure volume when needed);
- evaluates each response model under the four configurations of
  :meth:`~pyoed.oedtable.core.OEDTableParameters.configurations`;
- keeps the nominal run as the point estimate and the sample standard
  deviation of the four runs as the uncertainty, inflated in quadrature when
  the volume fraction was reconstructed.

Structures are mappings (or objects with attributes) providing ``structName``,
``dose`` and ``ratioToTotalVolume``, and optionally ``structureVolume`` and
``volume``. Organs with unusable data are skipped with an
:class:`~pyoed.exceptions.OrganSkippedWarning`.
"""

import logging
import time
import warnings
from collections.abc import Mapping
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union
import numpy as np
from tqdm import tqdm

from pyoed.biology.response_models import ResponseModel, ResponseModelParams
from pyoed.dosimetry.oed import IntegrationOptions, evaluate_oed
from pyoed.exceptions import MissingFieldError, NonConvergenceError, OEDError, OrganSkippedWarning, ShapeMismatchError
from pyoed.utils.interpolation import DoseVolumeCurve, Interpolator
from pyoed.utils.parallel import optimal_worker_count

from .core import OEDTable, OEDTableParameters, ModelResult, OEDReport, OrganResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedStructure:
    """
    Validated input of one organ.

    :ivar name: Organ name.
    :ivar curve: Cumulative DVH with volume as a fraction.
    :ivar relative_error: Relative error of a reconstructed volume fraction, None if not reconstructed.
    """

    name: str
    curve: DoseVolumeCurve
    relative_error: Optional[float] = None


def _field(structure: Any, key: str) -> Any:
    if isinstance(structure, Mapping):
        return structure.get(key)
    return getattr(structure, key, None)


def reconstruct_volume_fraction(
    structure_volume: Sequence[float], volume: float
) -> Tuple[np.ndarray, float]:
    """
    Rebuild the cumulative volume fraction from absolute structure volumes.

    :param structure_volume: Cumulative volume [cm³] receiving at least each dose.
    :param volume: Total organ volume [cm³].
    :returns: Tuple (``structure_volume / structure_volume[0]``, ``|structure_volume[0] - volume| / volume``).
    :rtype: tuple[np.ndarray, float]

    :raises ValueError: If the first structure volume or the total volume is zero.
    """
    structure_volume = np.asarray(structure_volume, dtype=float)
    volume = float(np.asarray(volume, dtype=float).ravel()[0])
    first = structure_volume.flat[0]
    if first == 0 or volume == 0:
        raise ValueError("structureVolume[0] and volume must be non-zero to reconstruct the volume fraction.")
    return structure_volume / first, abs(first - volume) / volume


def prepare_structure(structure: Any) -> PreparedStructure:
    """
    Validate one structure and build its dose-volume curve.

    :param structure: Mapping or object with ``structName``, ``dose`` and
        ``ratioToTotalVolume`` (or ``structureVolume`` and ``volume``).
    :returns: Prepared organ input.
    :rtype: PreparedStructure

    :raises MissingFieldError: If dose is missing or empty, or the volume fraction
        is missing or empty without a structure volume fallback.
    :raises ShapeMismatchError: If dose and volume fraction differ in shape.
    :raises ValueError: If the samples do not form a valid curve.
    """
    name = _field(structure, "structName")

    dose = _field(structure, "dose")
    if dose is None:
        raise MissingFieldError(f"The dose field could not be found so {name} will be skipped.")
    dose = np.asarray(dose, dtype=float)
    if dose.size == 0:
        raise MissingFieldError(f"The dose field is empty so {name} will be skipped.")

    ratio = _field(structure, "ratioToTotalVolume")
    relative_error = None
    if ratio is None or np.size(ratio) == 0:
        structure_volume = _field(structure, "structureVolume")
        volume = _field(structure, "volume")
        if structure_volume is None or np.size(structure_volume) == 0 or volume is None:
            raise MissingFieldError(
                f"The ratioToTotalVolume field is missing or empty so {name} will be skipped."
            )
        warnings.warn(
            f"The ratioToTotalVolume field is missing or empty so will use structureVolume for {name} instead."
        )
        ratio, relative_error = reconstruct_volume_fraction(structure_volume, volume)
    ratio = np.asarray(ratio, dtype=float)

    if dose.shape != ratio.shape:
        raise ShapeMismatchError(
            f"The dose and ratioToTotalVolume fields are not the same size so {name} will be skipped."
        )

    curve = DoseVolumeCurve.from_samples(dose, ratio)
    return PreparedStructure(name=name, curve=curve, relative_error=relative_error)


def aggregate_doses(doses: Sequence[float], relative_error: Optional[float] = None) -> ModelResult:
    """
    Combine the runs of one model into a point estimate and an uncertainty.

    The first run is the point estimate and the sample standard deviation of
    all runs is the uncertainty. With a reconstructed volume fraction the
    uncertainty becomes ``sqrt(u**2 + (dose * relative_error)**2)``.

    :param doses: OEDs of the runs, nominal configuration first.
    :param relative_error: Relative error of the volume reconstruction, if any.
    :returns: Aggregated result.
    :rtype: ModelResult
    """
    doses = np.asarray(doses, dtype=float)
    dose = float(doses[0])
    uncertainty = float(np.std(doses, ddof=1)) if doses.size > 1 else 0.0
    if relative_error is not None:
        uncertainty = float(np.hypot(uncertainty, dose * relative_error))
    return ModelResult(dose=dose, dose_uncertainty=uncertainty)


def _compute_for_structure(
    configurations: Sequence[IntegrationOptions],
    prepared: PreparedStructure,
    model_params: Dict[ResponseModel, ResponseModelParams],
) -> OrganResult:
    """
    Evaluate all models of one organ under every configuration.

    :param configurations: Runs per model, nominal first.
    :param prepared: Organ input.
    :param model_params: Parameter bundle per model.
    :returns: Model name to aggregated result.
    """
    interpolators = {
        kernel: Interpolator(prepared.curve, method=kernel)
        for kernel in {opts.interpolation_method for opts in configurations}
    }

    results = {}
    for model, params in model_params.items():
        doses = [
            evaluate_oed(model, interpolators[opts.interpolation_method], opts, params)
            for opts in configurations
        ]
        logger.debug("%s %s runs: %s", prepared.name, model.value, doses)
        results[model.value] = aggregate_doses(doses, prepared.relative_error)
    return results


def _run_structure_task(func, job) -> Union[OrganResult, NonConvergenceError]:
    """
    Worker wrapper returning non-convergence as a value so other organs proceed.

    :param func: Bound :func:`_compute_for_structure`.
    :param job: Tuple (prepared, model_params).
    """
    try:
        return func(*job)
    except NonConvergenceError as err:
        return err


def compute(
    self: OEDTable,
    structures: Iterable[Any],
    parallel: bool = False,
    max_workers: Optional[int] = None,
    verbose: bool = True,
) -> OEDReport:
    """
    Compute the OED report for a collection of organ structures.

    Organs not in the organ table are ignored. Organs with missing, empty or
    inconsistent data, missing model parameters, or a non-converging
    integration are skipped with an :class:`~pyoed.exceptions.OrganSkippedWarning`
    and listed in ``self.skipped``.

    :param self: OEDTable instance.
    :type self: OEDTable
    :param structures: Organ structures (see module docstring).
    :type structures: iterable
    :param parallel: Evaluate organs in a process pool.
    :type parallel: bool
    :param max_workers: Requested number of worker processes when parallel.
    :type max_workers: int, optional
    :param verbose: Print progress and per-model results.
    :type verbose: bool

    :returns: The report, also stored in ``self.table``.
    :rtype: dict[str, dict[str, ModelResult]]

    :raises UnsupportedModelError: If the configured models are invalid.
    :raises UnsupportedIntegrationMethodError: If the configured method is invalid.
    """
    params = self.params
    start_time = time.time()
    self.table = {}
    self.skipped = {}

    jobs = []
    for structure in structures:
        name = _field(structure, "structName")
        if name not in params.organ_table:
            logger.debug("No parameters for structure %r, ignoring it.", name)
            continue

        organ = params.organ_table[name]
        try:
            prepared = prepare_structure(structure)
            model_params = {model: organ.parameters_for(model) for model in params.response_models}
        except ValueError as err:
            reason = str(err) if isinstance(err, OEDError) else f"Invalid data so {name} will be skipped: {err}"
            self.skipped[name] = reason
            warnings.warn(reason, OrganSkippedWarning, stacklevel=2)
            continue
        jobs.append((prepared, model_params))

    configurations = params.configurations()
    func = partial(_compute_for_structure, configurations)

    if parallel and len(jobs) > 1:
        worker_count = optimal_worker_count(
            len(jobs), max_workers, runs_per_organ=len(configurations) * len(params.response_models)
        )
        with ProcessPoolExecutor(max_workers=worker_count) as executor:
            outcomes = list(tqdm(
                executor.map(partial(_run_structure_task, func), jobs),
                total=len(jobs),
                desc=f"[{worker_count} workers] OED",
                unit="organ",
                disable=not verbose,
            ))
    else:
        outcomes = []
        for job in tqdm(jobs, desc="OED", unit="organ", disable=not verbose):
            if verbose:
                tqdm.write(f"Processing {job[0].name}")
            outcomes.append(_run_structure_task(func, job))

    for (prepared, _), outcome in zip(jobs, outcomes):
        if isinstance(outcome, NonConvergenceError):
            reason = f"Integration did not converge so {prepared.name} will be skipped: {outcome}"
            self.skipped[prepared.name] = reason
            warnings.warn(reason, OrganSkippedWarning, stacklevel=2)
            continue

        self.table[prepared.name] = outcome
        if verbose:
            print(f"Results for {prepared.name}")
            for model, result in outcome.items():
                print(f"Calculated dose for {model} = {result.dose:g} +/- {result.dose_uncertainty:g}")

    if verbose:
        elapsed = time.time() - start_time
        print(f"\n... done. {len(self.table)} organ(s) computed in {elapsed:.2f} seconds.")
    return self.table


def calculate_oeds(
    structures: Iterable[Any],
    parameters: Optional[OEDTableParameters] = None,
    **kwargs,
) -> OEDReport:
    """
    Compute an OED report in one call.

    :param structures: Organ structures.
    :param parameters: Computation settings. Defaults to ``OEDTableParameters()``.
    :param kwargs: Forwarded to :meth:`OEDTable.compute` (parallel, max_workers, verbose).
    :returns: Organ name to model name to :class:`~pyoed.oedtable.core.ModelResult`.
    """
    return OEDTable(parameters).compute(structures, **kwargs)


OEDTable.compute = compute
