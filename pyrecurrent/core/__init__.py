"""
Core infrastructure for PyRecurrent.

Shared abstractions and utilities used by the domain submodules.

Key components:
    protocols: DataSource, Backend protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing utilities
"""

from pyrecurrent.core.protocols import DataSource, Backend
from pyrecurrent.core.result import Result
from pyrecurrent.core.exceptions import (
    PyRecurrentError,
    ValidationError,
    DimensionError,
    LengthMismatchError,
    InvalidIntervalError,
    InconsistentSubjectError,
    UnsupportedMethodCombinationError,
    InvalidLevelError,
    NumericalError,
    DegenerateRiskSetError,
)

__all__ = [
    # Protocols
    "DataSource",
    "Backend",
    # Result
    "Result",
    # Exceptions
    "PyRecurrentError",
    "ValidationError",
    "DimensionError",
    "LengthMismatchError",
    "InvalidIntervalError",
    "InconsistentSubjectError",
    "UnsupportedMethodCombinationError",
    "InvalidLevelError",
    "NumericalError",
    "DegenerateRiskSetError",
]
