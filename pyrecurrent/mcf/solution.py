"""
Solution wrappers for MCF results.

Each Solution wraps a Result[Params] and exposes user-friendly properties
with summary() methods.
"""

from __future__ import annotations

import numpy as np

from pyrecurrent.core.result import Result
from pyrecurrent.mcf._common import MCFDiffParams, MCFParams, RiskSetParams
from pyrecurrent.mcf._point import evaluate_step


class MCFSolution:
    """Mean cumulative function estimate with variance and CI."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[MCFParams]) -> None:
        self._result = _result

    # -- Properties delegating to MCFParams --

    @property
    def time(self):
        """Distinct event times."""
        return self._result.params.time

    @property
    def mcf(self):
        """MCF estimate at each event time."""
        return self._result.params.mcf

    @property
    def variance(self):
        return self._result.params.variance

    @property
    def se(self):
        """Standard error of the MCF."""
        return np.sqrt(self._result.params.variance)

    @property
    def ci_lower(self):
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.ci_upper

    @property
    def n_risk(self):
        """Denominator of the increment at each event time."""
        return self._result.params.n_risk

    @property
    def n_events(self):
        return self._result.params.n_events

    @property
    def risk_set(self) -> RiskSetParams:
        """Snapshots at every interval end, including censor-only times."""
        return self._result.params.risk_set

    @property
    def point_method(self) -> str:
        return self._result.params.point_method

    @property
    def var_method(self) -> str:
        return self._result.params.var_method

    @property
    def ci_method(self) -> str:
        return self._result.params.ci_method

    @property
    def ci_level(self) -> float:
        return self._result.params.ci_level

    @property
    def n_subjects(self) -> int:
        return self._result.params.n_subjects

    @property
    def n_events_total(self) -> float:
        return self._result.params.n_events_total

    @property
    def replicates(self):
        """Bootstrap replicate curves (B, m), or None for closed forms."""
        boot = self._result.params.bootstrap
        return None if boot is None else boot.replicates

    @property
    def params(self) -> MCFParams:
        return self._result.params

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def info(self) -> dict:
        return self._result.info

    def evaluate(self, t):
        """MCF at arbitrary times (right-continuous, 0 before first event)."""
        return evaluate_step(self.time, self.mcf, np.atleast_1d(t))

    def to_dict(self) -> dict:
        """Result bundle: times, mcf, variance, ci_lower, ci_upper."""
        return {
            "times": self.time.copy(),
            "mcf": self.mcf.copy(),
            "variance": self.variance.copy(),
            "ci_lower": self.ci_lower.copy(),
            "ci_upper": self.ci_upper.copy(),
        }

    def summary(self) -> str:
        """Tabular summary of the MCF fit."""
        lines = []
        lines.append("Call: mcf()")
        lines.append("")
        lines.append(
            f"  subjects={self.n_subjects}, "
            f"events={self.n_events_total:g}"
        )
        lines.append(
            f"  point={self.point_method}, variance={self.var_method}, "
            f"ci={self.ci_method}"
        )
        lines.append("")

        ci_pct = f"{self.ci_level * 100:g}"
        lines.append(
            f"  {'time':>8s}  {'n.risk':>8s}  {'n.event':>8s}  "
            f"{'MCF':>10s}  {'se':>10s}  "
            f"{'lower ' + ci_pct + '%':>10s}  {'upper ' + ci_pct + '%':>10s}"
        )

        m = len(self.time)
        show = min(m, 20)
        se = self.se
        for i in range(show):
            lines.append(
                f"  {self.time[i]:8.4g}  {self.n_risk[i]:8.0f}  "
                f"{self.n_events[i]:8.4g}  "
                f"{self.mcf[i]:10.6f}  {se[i]:10.6f}  "
                f"{self.ci_lower[i]:10.6f}  {self.ci_upper[i]:10.6f}"
            )
        if m > 20:
            lines.append(f"  ... ({m - 20} more rows)")

        return "\n".join(lines)

    def __repr__(self) -> str:
        final = f"{self.mcf[-1]:.4g}" if len(self.mcf) else "0"
        return (
            f"MCFSolution(subjects={self.n_subjects}, "
            f"event_times={len(self.time)}, "
            f"final_mcf={final})"
        )


class MCFDiffSolution:
    """Pointwise difference between two MCF curves."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[MCFDiffParams]) -> None:
        self._result = _result

    @property
    def time(self):
        return self._result.params.time

    @property
    def difference(self):
        return self._result.params.difference

    @property
    def variance(self):
        return self._result.params.variance

    @property
    def se(self):
        return np.sqrt(self._result.params.variance)

    @property
    def ci_lower(self):
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.ci_upper

    @property
    def z_statistic(self):
        return self._result.params.z_statistic

    @property
    def p_value(self):
        return self._result.params.p_value

    @property
    def ci_level(self) -> float:
        return self._result.params.ci_level

    @property
    def timing(self):
        return self._result.timing

    @property
    def info(self) -> dict:
        return self._result.info

    def summary(self) -> str:
        lines = ["Call: mcf_diff()", ""]
        lines.append(
            f"  {'time':>8s}  {'diff':>10s}  {'se':>10s}  "
            f"{'z':>8s}  {'p':>8s}"
        )
        se = self.se
        m = len(self.time)
        for i in range(min(m, 20)):
            lines.append(
                f"  {self.time[i]:8.4g}  {self.difference[i]:10.6f}  "
                f"{se[i]:10.6f}  {self.z_statistic[i]:8.3f}  "
                f"{self.p_value[i]:8.4f}"
            )
        if m > 20:
            lines.append(f"  ... ({m - 20} more rows)")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"MCFDiffSolution(times={len(self.time)})"
