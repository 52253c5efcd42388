"""
Tests for the risk-set sweep, point estimators and closed-form variances.

Reference values are worked by hand on the three-subject dataset
(see conftest.three_subjects):

    end time   2    3    4    5    6    8
    n_risk     3    3    3    2    2    1
    n_events   1    1    0    1    0    0

risk_set MCF:     1/3, 2/3, 7/6        at t = 2, 3, 5
sample_mean MCF:  1/3, 2/3, 1
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pyrecurrent.core.exceptions import (
    DegenerateRiskSetError,
    UnsupportedMethodCombinationError,
    ValidationError,
)
from pyrecurrent.mcf import _variance
from pyrecurrent.mcf._common import RiskSetParams
from pyrecurrent.mcf._methods import PointMethod, VarianceMethod
from pyrecurrent.mcf._point import evaluate_step, point_estimate
from pyrecurrent.mcf._riskset import risk_set
from pyrecurrent.mcf._variance import closed_form_variance
from pyrecurrent.mcf.design import RecurrentEventDesign


def _fit(data, method):
    design = RecurrentEventDesign.for_mcf(*data)
    snapshots = risk_set(design.event_records())
    curve = point_estimate(snapshots, method, design.n_subjects)
    return design, snapshots, curve


# ── Risk set ─────────────────────────────────────────────────────────


class TestRiskSet:

    def test_snapshots(self, three_subjects):
        _, snapshots, _ = _fit(three_subjects, PointMethod.RISK_SET)

        assert_allclose(snapshots.time, [2, 3, 4, 5, 6, 8])
        assert_allclose(snapshots.n_risk, [3, 3, 3, 2, 2, 1])
        assert_allclose(snapshots.n_events, [1, 1, 0, 1, 0, 0])
        assert len(snapshots) == 6

    def test_exit_time_still_at_risk(self):
        """Subject 2 leaves at t=4 but counts in the risk set at 4."""
        design = RecurrentEventDesign.for_mcf(
            [0, 0], [10, 4], [1, 2], [1, 1],
        )
        snapshots = risk_set(design.event_records())
        assert_allclose(snapshots.time, [4, 10])
        assert_allclose(snapshots.n_risk, [2, 1])

    def test_late_entry_not_at_risk_at_entry_time(self):
        """(3, 8]: the subject is not at risk at t=3 itself."""
        design = RecurrentEventDesign.for_mcf(
            [0, 3], [3, 8], [1, 2], [1, 1],
        )
        snapshots = risk_set(design.event_records())
        assert_allclose(snapshots.time, [3, 8])
        assert_allclose(snapshots.n_risk, [1, 1])

    def test_tied_events_aggregated(self):
        design = RecurrentEventDesign.for_mcf(
            [0, 0, 0], [2, 2, 2], [1, 2, 3], [1, 1, 0],
        )
        snapshots = risk_set(design.event_records())
        assert_allclose(snapshots.time, [2])
        assert_allclose(snapshots.n_risk, [3])
        assert_allclose(snapshots.n_events, [2])

    def test_row_order_invariance(self, three_subjects):
        """Subjects interleaved; each subject's own rows stay in order."""
        time1, time2, id_, event = three_subjects
        perm = np.array([5, 3, 0, 4, 1, 2])
        _, a, _ = _fit(three_subjects, PointMethod.RISK_SET)
        _, b, _ = _fit(
            (time1[perm], time2[perm], id_[perm], event[perm]),
            PointMethod.RISK_SET,
        )
        assert_allclose(a.n_risk, b.n_risk)
        assert_allclose(a.n_events, b.n_events)

    def test_unsorted_records_rejected(self, three_subjects):
        design = RecurrentEventDesign.for_mcf(*three_subjects)
        records = design.event_records()[::-1]
        with pytest.raises(ValidationError, match="sorted"):
            risk_set(records)


# ── Point estimators ─────────────────────────────────────────────────


class TestPointEstimate:

    def test_risk_set_curve(self, three_subjects):
        _, _, curve = _fit(three_subjects, PointMethod.RISK_SET)

        assert_allclose(curve.time, [2, 3, 5])
        assert_allclose(curve.increment, [1/3, 1/3, 1/2])
        assert_allclose(curve.mcf, [1/3, 2/3, 7/6])
        assert_allclose(curve.n_risk, [3, 3, 2])

    def test_sample_mean_curve(self, three_subjects):
        _, _, curve = _fit(three_subjects, PointMethod.SAMPLE_MEAN)

        assert_allclose(curve.mcf, [1/3, 2/3, 1.0])
        assert_allclose(curve.n_risk, [3, 3, 3])

    def test_single_subject_single_event(self):
        """One subject observed on (0, 5] with an event at t=3."""
        _, _, curve = _fit(
            ([0, 3], [3, 5], [1, 1], [1, 0]), PointMethod.RISK_SET,
        )
        assert_allclose(curve.time, [3])
        assert_allclose(curve.mcf, [1.0])
        assert_allclose(curve.n_risk, [1])

    def test_censored_subject_leaves_denominator(self):
        """A on (0,10] with event at 5; B censored at 4 without events."""
        _, _, curve = _fit(
            ([0, 5, 0], [5, 10, 4], [1, 1, 2], [1, 0, 0]),
            PointMethod.RISK_SET,
        )
        assert_allclose(curve.time, [5])
        assert_allclose(curve.n_risk, [1])
        assert_allclose(curve.n_events, [1])
        assert_allclose(curve.increment, [1.0])

    def test_event_counts_as_marks(self):
        """Event values above 1 count as several events (or costs)."""
        _, _, curve = _fit(
            ([0, 0], [2, 4], [1, 2], [3, 0]), PointMethod.RISK_SET,
        )
        assert_allclose(curve.mcf, [1.5])

    def test_no_events_gives_empty_curve(self):
        _, snapshots, curve = _fit(
            ([0, 0], [2, 4], [1, 2], [0, 0]), PointMethod.RISK_SET,
        )
        assert len(snapshots) == 2
        assert len(curve) == 0

    def test_degenerate_snapshot_raises(self):
        snapshots = RiskSetParams(
            time=np.array([1.0, 2.0]),
            n_risk=np.array([2.0, 0.0]),
            n_events=np.array([1.0, 1.0]),
        )
        with pytest.raises(DegenerateRiskSetError) as exc_info:
            point_estimate(snapshots, PointMethod.RISK_SET, 2)
        assert exc_info.value.time == 2.0
        assert exc_info.value.n_events == 1.0

    def test_degenerate_snapshot_dropped_with_warning(self):
        snapshots = RiskSetParams(
            time=np.array([1.0, 2.0]),
            n_risk=np.array([2.0, 0.0]),
            n_events=np.array([1.0, 1.0]),
        )
        with pytest.warns(RuntimeWarning, match="no subject at risk"):
            curve = point_estimate(
                snapshots, PointMethod.RISK_SET, 2, on_degenerate="drop",
            )
        assert_allclose(curve.time, [1.0])
        assert_allclose(curve.mcf, [0.5])
        assert len(curve.warnings) == 1

    def test_sample_mean_never_degenerate(self):
        snapshots = RiskSetParams(
            time=np.array([1.0]),
            n_risk=np.array([0.0]),
            n_events=np.array([1.0]),
        )
        curve = point_estimate(snapshots, PointMethod.SAMPLE_MEAN, 4)
        assert_allclose(curve.mcf, [0.25])

    def test_bad_on_degenerate(self, three_subjects):
        design = RecurrentEventDesign.for_mcf(*three_subjects)
        snapshots = risk_set(design.event_records())
        with pytest.raises(ValidationError, match="on_degenerate"):
            point_estimate(snapshots, PointMethod.RISK_SET, 3, on_degenerate="skip")


class TestEvaluateStep:

    def test_right_continuous_lookup(self):
        knots = np.array([2.0, 3.0, 5.0])
        values = np.array([1.0, 2.0, 3.0])
        out = evaluate_step(knots, values, [0.0, 2.0, 2.5, 3.0, 4.9, 5.0, 9.0])
        assert_allclose(out, [0, 1, 1, 2, 2, 3, 3])

    def test_empty_knots(self):
        out = evaluate_step(np.array([]), np.array([]), [1.0, 2.0])
        assert_allclose(out, [0, 0])


# ── Closed-form variance ─────────────────────────────────────────────


class TestClosedFormVariance:

    def test_lawless_nadeau(self, three_subjects):
        """Per-subject scores after t=5: 13/36, -5/36, -8/36."""
        design, _, curve = _fit(three_subjects, PointMethod.RISK_SET)
        var = closed_form_variance(
            design, curve, PointMethod.RISK_SET, VarianceMethod.LAWLESS_NADEAU,
        )
        assert_allclose(var, [2/27, 2/27, 43/216], rtol=1e-12)

    def test_poisson_risk_set(self, three_subjects):
        design, _, curve = _fit(three_subjects, PointMethod.RISK_SET)
        var = closed_form_variance(
            design, curve, PointMethod.RISK_SET, VarianceMethod.POISSON,
        )
        assert_allclose(var, [1/9, 2/9, 17/36], rtol=1e-12)

    def test_poisson_sample_mean(self, three_subjects):
        design, _, curve = _fit(three_subjects, PointMethod.SAMPLE_MEAN)
        var = closed_form_variance(
            design, curve, PointMethod.SAMPLE_MEAN, VarianceMethod.POISSON,
        )
        assert_allclose(var, [1/9, 2/9, 1/3], rtol=1e-12)

    def test_csv(self, three_subjects):
        """Cumulative counts at t=5 are 2, 1, 0 around a mean of 1."""
        design, _, curve = _fit(three_subjects, PointMethod.SAMPLE_MEAN)
        var = closed_form_variance(
            design, curve, PointMethod.SAMPLE_MEAN, VarianceMethod.CSV,
        )
        assert_allclose(var, [2/27, 2/27, 2/9], rtol=1e-12)

    def test_csv_equals_lawless_nadeau_without_censoring(self, rng, simulate):
        """With everyone followed to the same time the estimators coincide."""
        time1, time2, id_, event = simulate(rng, 25, follow_up=(8.0, 8.0))
        design = RecurrentEventDesign.for_mcf(time1, time2, id_, event)
        snapshots = risk_set(design.event_records())

        rs = point_estimate(snapshots, PointMethod.RISK_SET, design.n_subjects)
        sm = point_estimate(snapshots, PointMethod.SAMPLE_MEAN, design.n_subjects)
        assert_allclose(rs.mcf, sm.mcf)

        ln = closed_form_variance(
            design, rs, PointMethod.RISK_SET, VarianceMethod.LAWLESS_NADEAU,
        )
        csv = closed_form_variance(
            design, sm, PointMethod.SAMPLE_MEAN, VarianceMethod.CSV,
        )
        assert_allclose(ln, csv, rtol=1e-10, atol=1e-14)

    @pytest.mark.parametrize("var", [VarianceMethod.LAWLESS_NADEAU, VarianceMethod.CSV])
    def test_blocking_does_not_change_result(self, rng, simulate, monkeypatch, var):
        """Small subject and time blocks carry scores across block edges."""
        point = (
            PointMethod.RISK_SET if var is VarianceMethod.LAWLESS_NADEAU
            else PointMethod.SAMPLE_MEAN
        )
        design, _, curve = _fit(simulate(rng, 30), point)
        whole = closed_form_variance(design, curve, point, var)

        monkeypatch.setattr(_variance, "_SUBJECT_BLOCK", 7)
        monkeypatch.setattr(_variance, "_TIME_BLOCK", 5)
        blocked = closed_form_variance(design, curve, point, var)

        assert len(curve) > 5
        assert_allclose(blocked, whole, rtol=1e-10, atol=1e-14)

    def test_single_subject_lawless_nadeau_is_zero(self):
        design, _, curve = _fit(
            ([0, 3], [3, 5], [1, 1], [1, 0]), PointMethod.RISK_SET,
        )
        var = closed_form_variance(
            design, curve, PointMethod.RISK_SET, VarianceMethod.LAWLESS_NADEAU,
        )
        assert_allclose(var, [0.0])

    def test_non_negative(self, recurrent_data):
        design, _, curve = _fit(recurrent_data, PointMethod.RISK_SET)
        for method in (VarianceMethod.LAWLESS_NADEAU, VarianceMethod.POISSON):
            var = closed_form_variance(design, curve, PointMethod.RISK_SET, method)
            assert np.all(var >= 0)
            assert len(var) == len(curve)

    @pytest.mark.parametrize("point,var", [
        (PointMethod.RISK_SET, VarianceMethod.CSV),
        (PointMethod.SAMPLE_MEAN, VarianceMethod.LAWLESS_NADEAU),
    ])
    def test_unsupported_combination(self, three_subjects, point, var):
        design, _, curve = _fit(three_subjects, point)
        with pytest.raises(UnsupportedMethodCombinationError) as exc_info:
            closed_form_variance(design, curve, point, var)
        assert exc_info.value.point_method == point.value
        assert exc_info.value.var_method == var.value

    def test_bootstrap_has_no_closed_form(self, three_subjects):
        design, _, curve = _fit(three_subjects, PointMethod.RISK_SET)
        with pytest.raises(ValidationError, match="no closed form"):
            closed_form_variance(
                design, curve, PointMethod.RISK_SET, VarianceMethod.BOOTSTRAP,
            )
