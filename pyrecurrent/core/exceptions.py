"""
Exception hierarchy for PyRecurrent.

All exceptions inherit from PyRecurrentError to allow catching any
library-specific error. Domain-specific exceptions inherit from the
appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyRecurrentError(Exception):
    """Base exception for all PyRecurrent errors."""
    pass


class ValidationError(PyRecurrentError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions.
    """
    pass


class LengthMismatchError(DimensionError):
    """
    Parallel input arrays have different lengths.

    Attributes:
        lengths: Mapping of array name to its length
    """

    def __init__(self, message: str, lengths: dict[str, int] | None = None):
        super().__init__(message)
        self.lengths = dict(lengths) if lengths is not None else {}


class InvalidIntervalError(ValidationError):
    """
    An observation interval (time1, time2] is empty or reversed.

    Attributes:
        row: Zero-based input row index
        subject_id: Subject the row belongs to
        time1: Interval start
        time2: Interval end
    """

    def __init__(
        self,
        message: str,
        row: int | None = None,
        subject_id: int | None = None,
        time1: float | None = None,
        time2: float | None = None,
    ):
        super().__init__(message)
        self.row = row
        self.subject_id = subject_id
        self.time1 = time1
        self.time2 = time2


class InconsistentSubjectError(ValidationError):
    """
    A subject's intervals are out of time order or do not form one
    contiguous observation window.

    Attributes:
        subject_id: Offending subject
        time: Interval start at which the problem was detected
        reason: 'order', 'gap', 'overlap' or 'strata'
    """

    def __init__(
        self,
        message: str,
        subject_id: int | None = None,
        time: float | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.subject_id = subject_id
        self.time = time
        self.reason = reason


class UnsupportedMethodCombinationError(ValidationError):
    """
    The requested variance method is not defined for the point method.

    Attributes:
        point_method: Point-estimation method value
        var_method: Variance method value
    """

    def __init__(
        self,
        message: str,
        point_method: str | None = None,
        var_method: str | None = None,
    ):
        super().__init__(message)
        self.point_method = point_method
        self.var_method = var_method


class InvalidLevelError(ValidationError):
    """
    Confidence level outside the open interval (0, 1).

    Attributes:
        level: The rejected confidence level
    """

    def __init__(self, message: str, level: float | None = None):
        super().__init__(message)
        self.level = level


class NumericalError(PyRecurrentError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class DegenerateRiskSetError(NumericalError):
    """
    Events were recorded at a time with nobody at risk.

    Attributes:
        time: Time of the degenerate snapshot
        n_events: Event total recorded at that time
    """

    def __init__(
        self,
        message: str,
        time: float | None = None,
        n_events: float | None = None,
    ):
        super().__init__(message)
        self.time = time
        self.n_events = n_events
