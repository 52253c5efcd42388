"""
Non-parametric MCF point estimators.

    RISK_SET:     dmu(t) = d(t) / n_risk(t)     (Nelson-Aalen type,
                  Lawless & Nadeau 1995)
    SAMPLE_MEAN:  dmu(t) = d(t) / n             (mean of the subjects'
                  cumulative counts; assumes everyone is followed throughout)

    MCF(t) = sum of dmu(u) over event times u <= t

The curve is a right-continuous step function that is 0 before the first
event time.

References:
    Lawless, J. F., & Nadeau, C. (1995). Some simple robust methods for the
        analysis of recurrent events. Technometrics, 37(2), 158-168.
    Nelson, W. B. (2003). Recurrent Events Data Analysis for Product
        Repairs, Disease Recurrences, and Other Applications. SIAM.
"""

from __future__ import annotations

import warnings
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from pyrecurrent.core.exceptions import DegenerateRiskSetError, ValidationError
from pyrecurrent.mcf._common import MCFCurve, RiskSetParams
from pyrecurrent.mcf._methods import PointMethod


def point_estimate(
    snapshots: RiskSetParams,
    method: PointMethod,
    n_subjects: int,
    on_degenerate: Literal["raise", "drop"] = "raise",
) -> MCFCurve:
    """Accumulate the MCF over snapshots that carry events.

    Parameters
    ----------
    snapshots : RiskSetParams
        Output of risk_set().
    method : PointMethod
    n_subjects : int
        Denominator for SAMPLE_MEAN.
    on_degenerate : str
        What to do with a snapshot that has events but nobody at risk:
        "raise" (DegenerateRiskSetError) or "drop" (exclude it and warn).

    Returns
    -------
    MCFCurve
    """
    if on_degenerate not in ("raise", "drop"):
        raise ValidationError(
            f"on_degenerate must be 'raise' or 'drop', got {on_degenerate!r}"
        )
    if n_subjects < 1:
        raise ValidationError(f"n_subjects must be >= 1, got {n_subjects}")

    has_events = snapshots.n_events > 0
    notes: list[str] = []

    if method is PointMethod.RISK_SET:
        degenerate = has_events & (snapshots.n_risk <= 0)
        if degenerate.any():
            j = int(np.flatnonzero(degenerate)[0])
            t_bad = float(snapshots.time[j])
            d_bad = float(snapshots.n_events[j])
            if on_degenerate == "raise":
                raise DegenerateRiskSetError(
                    f"{d_bad:g} events at time {t_bad:g} with no subject "
                    f"at risk",
                    time=t_bad,
                    n_events=d_bad,
                )
            msg = (
                f"dropped {int(degenerate.sum())} event time(s) with no "
                f"subject at risk (first at time {t_bad:g})"
            )
            warnings.warn(msg, RuntimeWarning, stacklevel=3)
            notes.append(msg)
        keep = has_events & ~degenerate
        denom = snapshots.n_risk[keep]
    elif method is PointMethod.SAMPLE_MEAN:
        keep = has_events
        denom = np.full(int(keep.sum()), float(n_subjects))
    else:
        raise ValidationError(f"Unknown point_method: {method!r}")

    d = snapshots.n_events[keep]
    increment = d / denom

    return MCFCurve(
        time=snapshots.time[keep],
        mcf=np.cumsum(increment),
        increment=increment,
        n_risk=denom,
        n_events=d,
        warnings=tuple(notes),
    )


def evaluate_step(
    knots: NDArray,
    values: NDArray,
    at: NDArray,
    before: float = 0.0,
) -> NDArray:
    """Evaluate a right-continuous step function.

    Returns values[j] for the last knot <= t, or ``before`` when t precedes
    every knot. No interpolation.
    """
    at = np.asarray(at, dtype=np.float64)
    pos = np.searchsorted(knots, at, side="right") - 1
    out = np.full(at.shape, before, dtype=np.float64)
    found = pos >= 0
    out[found] = values[pos[found]]
    return out
