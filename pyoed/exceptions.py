"""
Error and warning taxonomy for pyOED.

Configuration errors (:class:`UnsupportedModelError`,
:class:`UnsupportedIntegrationMethodError`) abort a single evaluation.
Data-quality errors (:class:`MissingFieldError`, :class:`ShapeMismatchError`)
are raised while preparing a structure and turned into an
:class:`OrganSkippedWarning` by the OED table, which then moves on to the next organ.
:class:`NonConvergenceError` is raised by the bounded adaptive trapezoidal rule.

All errors derive from :class:`OEDError` and from the closest built-in
exception, so ``except ValueError`` keeps working for callers that do not
know about pyOED.
"""

from typing import Optional


class OEDError(Exception):
    """Base class for all pyOED errors."""


class UnsupportedModelError(OEDError, ValueError):
    """Raised when a response model name is not one of the supported models."""


class UnsupportedIntegrationMethodError(OEDError, ValueError):
    """Raised when an integration method name is not recognized."""


class MissingFieldError(OEDError, ValueError):
    """Raised when a structure lacks dose or volume data, or the data is empty."""


class ShapeMismatchError(OEDError, ValueError):
    """Raised when dose and volume fraction samples differ in shape."""


class NonConvergenceError(OEDError, RuntimeError):
    """
    Raised when an iterative integration scheme cannot meet its tolerance.

    :param message: Human readable description.
    :param estimate: Last integral estimate reached before giving up.
    :param difference: Absolute difference between the last two estimates.
    :param iterations: Number of refinements performed.
    """

    def __init__(
        self,
        message: str,
        estimate: Optional[float] = None,
        difference: Optional[float] = None,
        iterations: Optional[int] = None,
    ):
        super().__init__(message)
        self.estimate = estimate
        self.difference = difference
        self.iterations = iterations

    def __reduce__(self):
        return self.__class__, (str(self), self.estimate, self.difference, self.iterations)


class OrganSkippedWarning(UserWarning):
    """Emitted when an organ is left out of an OED report because of bad input data."""
