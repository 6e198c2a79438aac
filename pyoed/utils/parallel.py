"""
Worker sizing for organ-level process pools.

:func:`optimal_worker_count` decides how many processes the OED table uses
when evaluating independent organs in parallel. A job is one organ, and each
organ costs ``runs_per_organ`` integrations (models times configurations).
Small reports do not pay for extra process start-up: every worker must get
at least ``min_runs_per_worker`` integrations.
"""

import logging
import os
import warnings
from typing import Optional

logger = logging.getLogger(__name__)

MIN_RUNS_PER_WORKER = 8


def optimal_worker_count(
    organs: int,
    user_requested: Optional[int] = None,
    runs_per_organ: int = 1,
    min_runs_per_worker: int = MIN_RUNS_PER_WORKER,
) -> int:
    """
    Number of worker processes for an OED report.

    The pool never exceeds the CPU count minus one or the number of organs.
    Without an explicit request, it is further limited to
    ``organs * runs_per_organ // min_runs_per_worker`` workers.

    :param organs: Number of organs to evaluate.
    :type organs: int
    :param user_requested: Explicit worker count. Capped at CPU count minus one, with a warning.
    :type user_requested: int or None
    :param runs_per_organ: Integrations per organ (models x configurations).
    :type runs_per_organ: int
    :param min_runs_per_worker: Smallest number of integrations worth a worker process.
    :type min_runs_per_worker: int

    :returns: Worker count, always at least 1.
    :rtype: int
    """
    cpu_limit = max(1, (os.cpu_count() or 1) - 1)
    if organs <= 0:
        return 1

    if user_requested is not None:
        if user_requested > cpu_limit:
            warnings.warn(
                f"{user_requested} OED worker processes requested, but the CPU count allows at most "
                f"{cpu_limit}. Using {min(cpu_limit, organs)}."
            )
        return max(1, min(user_requested, cpu_limit, organs))

    runs = organs * max(1, runs_per_organ)
    workers = max(1, min(cpu_limit, organs, runs // max(1, min_runs_per_worker)))
    logger.debug("%d organ(s), %d integrations: %d worker(s)", organs, runs, workers)
    return workers
