"""
Organ Equivalent Dose evaluation.

Modules
-------

- :mod:`oed`:
  Defines :class:`~pyoed.dosimetry.oed.IntegrationOptions` and
  :func:`~pyoed.dosimetry.oed.evaluate_oed`, which integrates a response model
  over an interpolated cumulative DVH for one organ.
"""

from .oed import IntegrationOptions, evaluate_oed

__all__ = ["IntegrationOptions", "evaluate_oed"]
