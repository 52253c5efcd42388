"""
Risk-set sweep over the flattened event records.

At each distinct interval end time t:
    n_risk(t)   = number of subjects with entry < t <= exit
    n_events(t) = sum of event values recorded at exactly t

Entry records carry risk_change=+1 and exit records -1, so n_risk(t) is the
running sum of risk_change over records strictly before t. A subject leaving
at t is therefore still counted at t, and one entering at t is not.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyrecurrent.core.exceptions import ValidationError
from pyrecurrent.mcf._common import RiskSetParams


def risk_set(records: NDArray) -> RiskSetParams:
    """Aggregate event records into one snapshot per distinct end time.

    Parameters
    ----------
    records : NDArray
        EventRecord structured array sorted by time
        (see RecurrentEventDesign.event_records).

    Returns
    -------
    RiskSetParams
    """
    times = records["time"]
    if len(times) > 1 and np.any(np.diff(times) < 0):
        raise ValidationError("records: must be sorted by time")

    change = records["risk_change"]
    ends = change <= 0

    snap_time = np.unique(times[ends])
    k = len(snap_time)

    slot = np.searchsorted(snap_time, times[ends])
    n_events = np.bincount(slot, weights=records["event"][ends], minlength=k)

    running = np.cumsum(change)
    before = np.searchsorted(times, snap_time, side="left")
    n_risk = np.where(before > 0, running[np.maximum(before - 1, 0)], 0)

    return RiskSetParams(
        time=snap_time,
        n_risk=n_risk.astype(np.float64),
        n_events=n_events.astype(np.float64),
    )
