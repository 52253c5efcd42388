"""
Method selectors for MCF estimation.

Each selector is a closed enumeration; callers may pass either a member or
its string value (case-insensitive). Which variance methods are defined for
which point estimator is fixed by COMPATIBILITY and checked once at call
entry.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from pyrecurrent.core.exceptions import (
    UnsupportedMethodCombinationError,
    ValidationError,
)


class PointMethod(str, Enum):
    """How each event time's increment is formed."""

    RISK_SET = "risk_set"          # d(t) / n_risk(t), Nelson-Aalen style
    SAMPLE_MEAN = "sample_mean"    # d(t) / n_subjects


class VarianceMethod(str, Enum):
    """Variance estimator for the MCF curve."""

    LAWLESS_NADEAU = "lawless_nadeau"
    POISSON = "poisson"
    CSV = "csv"                    # cumulative sample variance
    BOOTSTRAP = "bootstrap"


class CIMethod(str, Enum):
    """Pointwise confidence interval construction."""

    NORMAL = "normal"
    LOG_NORMAL = "log_normal"


class BootstrapMethod(str, Enum):
    """How the replicate estimates are summarised into a variance."""

    SAMPLE_SE = "sample_se"        # sample variance of replicates
    NORMALITY = "normality"        # (IQR / 1.349)^2


BOOTSTRAP_SIMS = ("ordinary", "balanced")

COMPATIBILITY: dict[PointMethod, frozenset[VarianceMethod]] = {
    PointMethod.RISK_SET: frozenset({
        VarianceMethod.LAWLESS_NADEAU,
        VarianceMethod.POISSON,
        VarianceMethod.BOOTSTRAP,
    }),
    PointMethod.SAMPLE_MEAN: frozenset({
        VarianceMethod.CSV,
        VarianceMethod.POISSON,
        VarianceMethod.BOOTSTRAP,
    }),
}

DEFAULT_VARIANCE: dict[PointMethod, VarianceMethod] = {
    PointMethod.RISK_SET: VarianceMethod.LAWLESS_NADEAU,
    PointMethod.SAMPLE_MEAN: VarianceMethod.CSV,
}


E = TypeVar('E', bound=Enum)


def coerce_method(value: E | str, enum_cls: type[E], name: str) -> E:
    """Convert a string or enum member to a member of ``enum_cls``.

    Raises
    ------
    ValidationError
        If ``value`` names no member; the message lists valid choices.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower().replace("-", "_")
        for member in enum_cls:
            if member.value == key:
                return member
    choices = ", ".join(repr(m.value) for m in enum_cls)
    raise ValidationError(f"{name} must be one of {choices}, got {value!r}")


def resolve_methods(
    point_method: PointMethod | str,
    var_method: VarianceMethod | str | None,
) -> tuple[PointMethod, VarianceMethod]:
    """Coerce the point/variance selectors and check they are compatible.

    ``var_method=None`` selects the default variance for the point method.

    Raises
    ------
    UnsupportedMethodCombinationError
        If the variance method is not defined for the point method.
    """
    point = coerce_method(point_method, PointMethod, "point_method")
    if var_method is None:
        return point, DEFAULT_VARIANCE[point]

    var = coerce_method(var_method, VarianceMethod, "var_method")
    if var not in COMPATIBILITY[point]:
        allowed = ", ".join(sorted(m.value for m in COMPATIBILITY[point]))
        raise UnsupportedMethodCombinationError(
            f"var_method {var.value!r} is not defined for point_method "
            f"{point.value!r}; choose from {allowed}",
            point_method=point.value,
            var_method=var.value,
        )
    return point, var
