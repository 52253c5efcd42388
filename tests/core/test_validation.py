"""
Tests for input validation utilities.

Validates every function in core/validation.py.
"""

import numpy as np
import pytest

from pyrecurrent.core.exceptions import (
    DimensionError,
    InvalidLevelError,
    LengthMismatchError,
    ValidationError,
)
from pyrecurrent.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
    check_integral,
    check_level,
    check_min_samples,
    check_ndim,
    check_nonnegative,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to ndarray and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "time1")
        assert np.issubdtype(result.dtype, np.floating)
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_bool_to_float(self):
        result = check_array([True, False], "event")
        np.testing.assert_array_equal(result, [1.0, 0.0])

    def test_rejects_mixed_types(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([1, "a", None], "event")

    def test_rejects_strings(self):
        with pytest.raises(ValidationError, match="event: non-numeric"):
            check_array(["a", "b"], "event")


# ═══════════════════════════════════════════════════════════════════════
# Shape and value checks
# ═══════════════════════════════════════════════════════════════════════


class TestShapeChecks:

    def test_finite(self):
        check_finite(np.array([1.0, 2.0]), "time2")
        with pytest.raises(ValidationError, match=r"time2.*1 NaN, 1 Inf"):
            check_finite(np.array([np.nan, np.inf]), "time2")

    def test_ndim(self):
        check_1d(np.zeros(3), "id")
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((2, 2)), "id")
        with pytest.raises(DimensionError):
            check_ndim(np.zeros(3), 2, "id")

    def test_consistent_length(self):
        check_consistent_length(np.zeros(2), np.zeros(2), names=("a", "b"))
        with pytest.raises(LengthMismatchError, match="a=2, b=3") as exc_info:
            check_consistent_length(np.zeros(2), np.zeros(3), names=("a", "b"))
        assert exc_info.value.lengths == {"a": 2, "b": 3}

    def test_consistent_length_wrong_names(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(2), names=("a", "b"))

    def test_min_samples(self):
        with pytest.raises(ValidationError, match="at least 1"):
            check_min_samples(np.zeros(0), 1, "time1")

    def test_nonnegative(self):
        check_nonnegative(np.array([0.0, 2.0]), "event")
        with pytest.raises(ValidationError, match="index 1"):
            check_nonnegative(np.array([0.0, -1.0]), "event")

    def test_integral(self):
        check_integral(np.array([1.0, 2.0]), "id")
        with pytest.raises(ValidationError, match="id: must contain integer"):
            check_integral(np.array([1.0, 2.5]), "id")


class TestCheckLevel:

    def test_valid(self):
        assert check_level(0.95) == 0.95

    @pytest.mark.parametrize("level", [0, 1, 1.5, -0.1, float("nan")])
    def test_out_of_range(self, level):
        with pytest.raises(InvalidLevelError):
            check_level(level)

    def test_not_a_number(self):
        with pytest.raises(InvalidLevelError):
            check_level(None)
