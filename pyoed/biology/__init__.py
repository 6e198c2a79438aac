"""
Biological dose-response models.

This subpackage contains the response functions that turn an interpolated
dose into an effect density before integration over the organ volume.

Modules
-------

- :mod:`response_models`:
  Provides the LNT, PlateauHall, LinExp, Competition and LinPlat models,
  their parameter bundles, the :data:`~pyoed.biology.response_models.RESPONSE_MODELS`
  registry and :func:`~pyoed.biology.response_models.build_integrand`.
"""

from .response_models import (
    ResponseModel,
    LNTParameters,
    PlateauHallParameters,
    LinExpParameters,
    CompetitionParameters,
    LinPlatParameters,
    RESPONSE_MODELS,
    build_integrand,
    response,
)

__all__ = [
    "ResponseModel",
    "LNTParameters",
    "PlateauHallParameters",
    "LinExpParameters",
    "CompetitionParameters",
    "LinPlatParameters",
    "RESPONSE_MODELS",
    "build_integrand",
    "response",
]
