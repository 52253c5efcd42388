"""
Closed-form variance estimators for the MCF.

Notation at event time u: delta_i(u) is subject i's at-risk indicator,
dN_i(u) its event value, delta.(u) = sum_i delta_i(u), dmu(u) the point
increment and n the number of subjects.

    LAWLESS_NADEAU  Var(t) = sum_i [ sum_{u<=t} delta_i(u) / delta.(u)
                                      * (dN_i(u) - dmu(u)) ]^2
    POISSON         Var(t) = sum_{u<=t} dN.(u) / D(u)^2,
                    D = delta. (RISK_SET) or n (SAMPLE_MEAN)
    CSV             Var(t) = sum_i (N_i(t) - mu(t))^2 / n^2,
                    N_i(t) = subject i's cumulative event value

Lawless-Nadeau is robust to extra-Poisson variation between subjects;
the Poisson form is exact when each subject's events follow a common
Poisson process. CSV is Lawless-Nadeau with every subject at risk
throughout, i.e. the sample variance of the cumulative counts scaled by 1/n.

References:
    Lawless, J. F., & Nadeau, C. (1995). Technometrics, 37(2), 158-168.
    Nelson, W. B. (1995). Confidence limits for recurrence data - applied
        to cost or number of product repairs. Technometrics, 37(2), 147-157.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyrecurrent.core.exceptions import (
    UnsupportedMethodCombinationError,
    ValidationError,
)
from pyrecurrent.mcf._common import MCFCurve
from pyrecurrent.mcf._methods import COMPATIBILITY, PointMethod, VarianceMethod
from pyrecurrent.mcf.design import RecurrentEventDesign

# Block shape for the (subjects x event times) work matrices; each dense
# temporary holds at most _SUBJECT_BLOCK * _TIME_BLOCK floats
_SUBJECT_BLOCK = 1024
_TIME_BLOCK = 2048


def closed_form_variance(
    design: RecurrentEventDesign,
    curve: MCFCurve,
    point_method: PointMethod,
    var_method: VarianceMethod,
) -> NDArray:
    """Variance of the MCF at each of the curve's event times.

    Raises
    ------
    UnsupportedMethodCombinationError
        If var_method is not defined for point_method.
    ValidationError
        If var_method is not a closed-form method (e.g. BOOTSTRAP).
    """
    if var_method not in COMPATIBILITY[point_method]:
        raise UnsupportedMethodCombinationError(
            f"var_method {var_method.value!r} is not defined for "
            f"point_method {point_method.value!r}",
            point_method=point_method.value,
            var_method=var_method.value,
        )

    if len(curve) == 0:
        return np.array([], dtype=np.float64)

    if var_method is VarianceMethod.POISSON:
        variance = np.cumsum(curve.n_events / curve.n_risk ** 2)
    elif var_method is VarianceMethod.LAWLESS_NADEAU:
        variance = _lawless_nadeau(design, curve)
    elif var_method is VarianceMethod.CSV:
        variance = _cumulative_sample_variance(design, curve)
    else:
        raise ValidationError(
            f"var_method {var_method.value!r} has no closed form"
        )

    # Sums of squares; clip rounding noise only
    return np.maximum(variance, 0.0)


def _subject_event_matrix(
    design: RecurrentEventDesign,
    curve: MCFCurve,
    lo: int,
    hi: int,
    a: int,
    b: int,
) -> NDArray:
    """dN for subjects lo:hi at event times a:b, shape (hi - lo, b - a)."""
    rows = slice(design.offsets[lo], design.offsets[hi])
    t2 = design.time2[rows]
    col = np.searchsorted(curve.time, t2)
    in_block = (col >= a) & (col < b)
    on_grid = np.zeros(len(t2), dtype=bool)
    on_grid[in_block] = curve.time[col[in_block]] == t2[in_block]

    dN = np.zeros((hi - lo, b - a), dtype=np.float64)
    np.add.at(
        dN,
        (design.row_subject[rows][on_grid] - lo, col[on_grid] - a),
        design.event[rows][on_grid],
    )
    return dN


def _lawless_nadeau(design: RecurrentEventDesign, curve: MCFCurve) -> NDArray:
    t = curve.time
    m = len(t)
    entry = design.entry
    exit_ = design.exit
    variance = np.zeros(m, dtype=np.float64)

    for lo in range(0, design.n_subjects, _SUBJECT_BLOCK):
        hi = min(lo + _SUBJECT_BLOCK, design.n_subjects)
        # Each subject's score at the end of the previous time block
        carry = np.zeros(hi - lo, dtype=np.float64)
        for a in range(0, m, _TIME_BLOCK):
            b = min(a + _TIME_BLOCK, m)
            tb = t[None, a:b]
            at_risk = (entry[lo:hi, None] < tb) & (tb <= exit_[lo:hi, None])
            dN = _subject_event_matrix(design, curve, lo, hi, a, b)
            score = np.cumsum(
                at_risk / curve.n_risk[a:b] * (dN - curve.increment[a:b]), axis=1,
            )
            score += carry[:, None]
            variance[a:b] += np.sum(score ** 2, axis=0)
            carry = score[:, -1]

    return variance


def _cumulative_sample_variance(
    design: RecurrentEventDesign,
    curve: MCFCurve,
) -> NDArray:
    n = design.n_subjects
    m = len(curve.time)
    variance = np.zeros(m, dtype=np.float64)

    for lo in range(0, n, _SUBJECT_BLOCK):
        hi = min(lo + _SUBJECT_BLOCK, n)
        carry = np.zeros(hi - lo, dtype=np.float64)
        for a in range(0, m, _TIME_BLOCK):
            b = min(a + _TIME_BLOCK, m)
            cumulative = np.cumsum(
                _subject_event_matrix(design, curve, lo, hi, a, b), axis=1,
            )
            cumulative += carry[:, None]
            variance[a:b] += np.sum((cumulative - curve.mcf[a:b]) ** 2, axis=0)
            carry = cumulative[:, -1]

    return variance / n ** 2
