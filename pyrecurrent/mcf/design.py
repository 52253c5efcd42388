"""
RecurrentEventDesign: immutable container for recurrent-event data.

Wraps counting-process rows (time1, time2], subject id and event value.
Validates inputs at construction time; all downstream code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyrecurrent.core.exceptions import (
    InconsistentSubjectError,
    InvalidIntervalError,
    ValidationError,
)
from pyrecurrent.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
    check_integral,
    check_min_samples,
    check_nonnegative,
)

# Record kinds, in tie-break order at equal time and subject
_ENTRY = 0
_END = 1

EVENT_RECORD_DTYPE = np.dtype([
    ("subject", np.int64),
    ("time", np.float64),
    ("event", np.float64),
    ("risk_change", np.int64),
])


@dataclass(frozen=True)
class RecurrentEventDesign:
    """Immutable recurrent-event data container.

    Rows are grouped by subject in ascending id order; within a subject they
    keep the caller's order, which must already run forward in time. Each
    subject's rows form a single contiguous observation window (entry, exit].

    Parameters
    ----------
    time1 : NDArray
        (n_rows,) interval start (exclusive).
    time2 : NDArray
        (n_rows,) interval end (inclusive); events are recorded here.
    subject : NDArray
        (n_rows,) int64 subject id.
    event : NDArray
        (n_rows,) non-negative event value at time2 (0 = no event).
    subject_ids : NDArray
        (n_subjects,) sorted unique subject ids.
    row_subject : NDArray
        (n_rows,) index into subject_ids for each row.
    offsets : NDArray
        (n_subjects + 1,) row offsets; subject k owns rows
        offsets[k]:offsets[k + 1].
    strata : NDArray or None
        (n_subjects,) int64 stratum code per subject.
    strata_labels : NDArray or None
        Sorted distinct stratum labels; code k stands for strata_labels[k].
    """

    time1: NDArray
    time2: NDArray
    subject: NDArray
    event: NDArray
    subject_ids: NDArray
    row_subject: NDArray
    offsets: NDArray
    strata: NDArray | None
    strata_labels: NDArray | None = None

    @classmethod
    def for_mcf(
        cls,
        time1,
        time2,
        id,
        event,
        *,
        strata=None,
    ) -> RecurrentEventDesign:
        """Create and validate recurrent-event data.

        Parameters
        ----------
        time1, time2 : array-like
            Observation interval (time1, time2] per row.
        id : array-like
            Integer subject id per row.
        event : array-like
            Event value at time2 per row: 0/1 indicator, or a non-negative
            count / mark.
        strata : array-like or None
            Optional stratum label per row, constant within a subject.

        Returns
        -------
        RecurrentEventDesign

        Raises
        ------
        LengthMismatchError
            If the row arrays have different lengths.
        InvalidIntervalError
            If time1 >= time2 for any row.
        InconsistentSubjectError
            If a subject's intervals are out of time order, leave a gap or
            overlap, or its stratum label changes between rows.
        ValidationError
            For non-numeric, non-finite, negative-event or empty input, and
            for missing (None or NaN) stratum labels.
        """
        t1 = check_array(time1, "time1")
        t2 = check_array(time2, "time2")
        ids = check_array(id, "id")
        ev = check_array(event, "event")

        for arr, name in ((t1, "time1"), (t2, "time2"), (ids, "id"), (ev, "event")):
            check_1d(arr, name)

        check_consistent_length(
            t1, t2, ids, ev, names=("time1", "time2", "id", "event"),
        )
        check_min_samples(t1, 1, "time1")

        for arr, name in ((t1, "time1"), (t2, "time2"), (ids, "id"), (ev, "event")):
            check_finite(arr, name)
        check_integral(ids, "id")
        check_nonnegative(ev, "event")

        t1 = t1.astype(np.float64)
        t2 = t2.astype(np.float64)
        ev = ev.astype(np.float64)
        ids = ids.astype(np.int64)

        bad = np.flatnonzero(t1 >= t2)
        if len(bad) > 0:
            row = int(bad[0])
            raise InvalidIntervalError(
                f"row {row} (subject {ids[row]}): time1 must be less than "
                f"time2, got ({t1[row]}, {t2[row]}]",
                row=row,
                subject_id=int(ids[row]),
                time1=float(t1[row]),
                time2=float(t2[row]),
            )

        strata_rows = None
        strata_labels = None
        if strata is not None:
            strata_rows = np.asarray(strata).ravel()
            if len(strata_rows) != len(t1):
                raise ValidationError(
                    f"strata must have {len(t1)} elements to match time1, "
                    f"got {len(strata_rows)}"
                )
            strata_labels, strata_rows = _factorize_strata(strata_rows)

        # Stable sort by subject only; each subject keeps its input row order
        order = np.argsort(ids, kind="stable")
        t1, t2, ids, ev = t1[order], t2[order], ids[order], ev[order]

        subject_ids, row_subject = np.unique(ids, return_inverse=True)
        row_subject = row_subject.ravel()
        offsets = np.append(
            np.searchsorted(ids, subject_ids, side="left"), len(ids),
        ).astype(np.int64)

        _check_contiguous(t1, t2, ids)

        subject_strata = None
        if strata_rows is not None:
            strata_rows = strata_rows[order]
            same_subject = ids[1:] == ids[:-1]
            changed = np.flatnonzero(same_subject & (strata_rows[1:] != strata_rows[:-1]))
            if len(changed) > 0:
                k = int(changed[0]) + 1
                raise InconsistentSubjectError(
                    f"subject {ids[k]}: stratum changes from "
                    f"{strata_labels[strata_rows[k - 1]]!r} to "
                    f"{strata_labels[strata_rows[k]]!r} at time {t1[k]}",
                    subject_id=int(ids[k]),
                    time=float(t1[k]),
                    reason="strata",
                )
            subject_strata = strata_rows[offsets[:-1]]

        return cls(
            time1=t1,
            time2=t2,
            subject=ids,
            event=ev,
            subject_ids=subject_ids,
            row_subject=row_subject,
            offsets=offsets,
            strata=subject_strata,
            strata_labels=strata_labels,
        )

    # -- Subject-level views --

    @property
    def n_rows(self) -> int:
        """Number of interval rows."""
        return len(self.time1)

    @property
    def n_subjects(self) -> int:
        """Number of distinct subjects."""
        return len(self.subject_ids)

    @property
    def n_observations(self) -> int:
        """Statistical units are subjects."""
        return self.n_subjects

    @property
    def entry(self) -> NDArray:
        """Start of each subject's observation window."""
        return self.time1[self.offsets[:-1]]

    @property
    def exit(self) -> NDArray:
        """End of each subject's observation window."""
        return self.time2[self.offsets[1:] - 1]

    @property
    def subject_events(self) -> NDArray:
        """Total event value per subject."""
        return np.bincount(
            self.row_subject, weights=self.event, minlength=self.n_subjects,
        )

    @property
    def n_events_total(self) -> float:
        return float(np.sum(self.event))

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "n_rows": self.n_rows,
            "n_subjects": self.n_subjects,
            "n_events": self.n_events_total,
            "stratified": self.strata is not None,
        }

    def event_records(self) -> NDArray:
        """Flatten the rows into a time-ordered EventRecord array.

        One entry record per subject (at its first time1, risk_change=+1)
        and one record per row end (at time2, carrying the event value;
        risk_change=-1 on the subject's last row, 0 otherwise).

        Records are sorted by time; ties are broken by subject order and
        then by record kind (entries first), so the ordering never depends
        on the caller's row order.
        """
        n_subj = self.n_subjects
        n_rows = self.n_rows

        is_last = np.zeros(n_rows, dtype=bool)
        is_last[self.offsets[1:] - 1] = True

        records = np.empty(n_subj + n_rows, dtype=EVENT_RECORD_DTYPE)
        records["subject"][:n_subj] = self.subject_ids
        records["time"][:n_subj] = self.entry
        records["event"][:n_subj] = 0.0
        records["risk_change"][:n_subj] = 1

        records["subject"][n_subj:] = self.subject
        records["time"][n_subj:] = self.time2
        records["event"][n_subj:] = self.event
        records["risk_change"][n_subj:] = np.where(is_last, -1, 0)

        kind = np.concatenate([
            np.full(n_subj, _ENTRY), np.full(n_rows, _END),
        ])
        subject_order = np.concatenate([np.arange(n_subj), self.row_subject])
        order = np.lexsort((kind, subject_order, records["time"]))
        return records[order]

    def resample(self, subject_indices: NDArray) -> RecurrentEventDesign:
        """Build a design from whole subjects, drawn by index.

        Subjects drawn more than once become distinct subjects; the new
        design relabels subjects 0..len(subject_indices)-1 in draw order.
        Inputs are already validated, so no checks are repeated.
        """
        idx = np.asarray(subject_indices, dtype=np.int64)
        starts = self.offsets[idx]
        lengths = self.offsets[idx + 1] - starts
        total = int(lengths.sum())

        new_offsets = np.concatenate([[0], np.cumsum(lengths)]).astype(np.int64)
        rows = np.repeat(starts - new_offsets[:-1], lengths) + np.arange(total)
        new_subject = np.repeat(np.arange(len(idx), dtype=np.int64), lengths)

        return RecurrentEventDesign(
            time1=self.time1[rows],
            time2=self.time2[rows],
            subject=new_subject,
            event=self.event[rows],
            subject_ids=np.arange(len(idx), dtype=np.int64),
            row_subject=new_subject,
            offsets=new_offsets,
            strata=self.strata[idx] if self.strata is not None else None,
            strata_labels=self.strata_labels,
        )


def _check_contiguous(t1: NDArray, t2: NDArray, ids: NDArray) -> None:
    """Require each subject's rows to run forward and chain end-to-start."""
    same_subject = ids[1:] == ids[:-1]
    nxt_start = t1[1:]
    prev_end = t2[:-1]

    # Gap and overlap are only meaningful once every subject is time-ordered
    backwards = np.flatnonzero(same_subject & (nxt_start < t1[:-1]))
    if len(backwards) > 0:
        k = int(backwards[0]) + 1
        raise InconsistentSubjectError(
            f"subject {ids[k]}: interval starting at {t1[k]} comes after the "
            f"interval starting at {t1[k - 1]}; rows must be time-ordered",
            subject_id=int(ids[k]),
            time=float(t1[k]),
            reason="order",
        )

    overlap = np.flatnonzero(same_subject & (nxt_start < prev_end))
    gap = np.flatnonzero(same_subject & (nxt_start > prev_end))

    if len(overlap) > 0 and (len(gap) == 0 or overlap[0] < gap[0]):
        k = int(overlap[0]) + 1
        raise InconsistentSubjectError(
            f"subject {ids[k]}: interval starting at {t1[k]} overlaps the "
            f"previous interval ending at {t2[k - 1]}",
            subject_id=int(ids[k]),
            time=float(t1[k]),
            reason="overlap",
        )
    if len(gap) > 0:
        k = int(gap[0]) + 1
        raise InconsistentSubjectError(
            f"subject {ids[k]}: gap between interval ending at {t2[k - 1]} "
            f"and the next interval starting at {t1[k]}",
            subject_id=int(ids[k]),
            time=float(t1[k]),
            reason="gap",
        )


def _factorize_strata(labels: NDArray) -> tuple[NDArray, NDArray]:
    """Map per-row stratum labels to (sorted distinct labels, int64 codes).

    Missing labels (None or NaN) have no stratum and are rejected.
    """
    if labels.dtype.kind in "fc":
        missing = np.isnan(labels)
    elif labels.dtype.kind in "mM":
        missing = np.isnat(labels)
    elif labels.dtype.kind == "O":
        missing = np.array(
            [v is None or (isinstance(v, float) and np.isnan(v)) for v in labels],
            dtype=bool,
        )
    else:
        missing = np.zeros(len(labels), dtype=bool)

    bad = np.flatnonzero(missing)
    if len(bad) > 0:
        raise ValidationError(
            f"strata must not contain missing labels (None or NaN); "
            f"found {len(bad)}, first at row {int(bad[0])}"
        )

    try:
        unique, codes = np.unique(labels, return_inverse=True)
    except TypeError as e:
        raise ValidationError(
            f"strata labels must be mutually comparable: {e}"
        ) from e
    return unique, codes.ravel().astype(np.int64)
