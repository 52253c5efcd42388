"""
Parameter payloads for MCF results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class RiskSetParams:
    """Risk-set snapshots at every distinct interval end time."""

    time: NDArray                # (k,) distinct interval end times
    n_risk: NDArray              # (k,) subjects under observation at time
    n_events: NDArray            # (k,) summed event values at time

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class MCFCurve:
    """Point estimate at each event time, before variance is attached."""

    time: NDArray                # (m,) distinct event times
    mcf: NDArray                 # (m,) cumulative estimate
    increment: NDArray           # (m,) jump at each time
    n_risk: NDArray              # (m,) denominator used for the jump
    n_events: NDArray            # (m,) events at each time
    warnings: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class BootstrapParams:
    """Bootstrap replicate curves evaluated on the original event times."""

    replicates: NDArray          # (B, m) replicate MCF values
    variance: NDArray            # (m,) summarised replicate variance
    B: int
    method: str                  # "sample_se" or "normality"
    sim: str                     # "ordinary" or "balanced"
    stratified: bool
    seed: int | None
    n_empty_replicates: int      # replicates whose resample had no events


@dataclass(frozen=True)
class MCFParams:
    """Mean cumulative function with variance and confidence band."""

    time: NDArray                # (m,) distinct event times
    mcf: NDArray                 # (m,) MCF estimate
    variance: NDArray            # (m,) variance of the estimate
    ci_lower: NDArray            # (m,)
    ci_upper: NDArray            # (m,)
    n_risk: NDArray              # (m,) denominator at each event time
    n_events: NDArray            # (m,) events at each event time
    risk_set: RiskSetParams      # all snapshots, including censor-only times
    point_method: str
    var_method: str
    ci_method: str
    ci_level: float
    n_subjects: int
    n_events_total: float
    bootstrap: BootstrapParams | None = None


@dataclass(frozen=True)
class MCFDiffParams:
    """Pointwise difference between two MCF curves."""

    time: NDArray                # (m,) union of both groups' event times
    difference: NDArray          # (m,) MCF1(t) - MCF2(t)
    variance: NDArray            # (m,) Var1(t) + Var2(t)
    ci_lower: NDArray
    ci_upper: NDArray
    z_statistic: NDArray
    p_value: NDArray             # two-sided, normal reference
    ci_level: float
