"""
Design for bootstrap variance of the MCF.

MCFBootstrapDesign encapsulates everything the bootstrap backend needs:
the original data, the point estimator to rerun, the time grid to evaluate
replicate curves on, and the resampling settings. Immutable, validated at
construction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pyrecurrent.core.exceptions import ValidationError
from pyrecurrent.mcf._methods import (
    BOOTSTRAP_SIMS,
    BootstrapMethod,
    PointMethod,
    coerce_method,
)
from pyrecurrent.mcf.design import RecurrentEventDesign

# IQR of the standard normal, qnorm(0.75) - qnorm(0.25)
_NORMAL_IQR = float(stats.norm.ppf(0.75) - stats.norm.ppf(0.25))


@dataclass(frozen=True)
class MCFBootstrapDesign:
    """
    Frozen design for bootstrap resampling of subjects.

    Attributes:
        data: Original recurrent-event design.
        point_method: Point estimator rerun on every replicate.
        times: Event times of the original curve; replicate curves are
            evaluated here.
        B: Number of bootstrap replicates.
        method: How replicate estimates become a variance.
        sim: "ordinary" or "balanced" resampling of subjects. Resampling
            is within strata when data.strata is set.
        seed: Random seed. None means not reproducible.
        n_jobs: Worker threads for the replicate loop.
    """
    data: RecurrentEventDesign
    point_method: PointMethod
    times: NDArray
    B: int
    method: BootstrapMethod
    sim: str
    seed: int | None
    n_jobs: int

    @classmethod
    def for_mcf(
        cls,
        data: RecurrentEventDesign,
        point_method: PointMethod,
        times,
        B: int = 200,
        *,
        method: BootstrapMethod | str = BootstrapMethod.SAMPLE_SE,
        sim: str = "ordinary",
        seed: int | None = None,
        n_jobs: int = 1,
    ) -> MCFBootstrapDesign:
        """
        Create a bootstrap design with validation.

        Args:
            data: Validated recurrent-event design.
            point_method: Point estimator to rerun.
            times: Evaluation grid (original event times).
            B: Number of replicates. Must be >= 1.
            method: "sample_se" (default) or "normality".
            sim: "ordinary" (default) or "balanced".
            seed: Random seed.
            n_jobs: Worker threads; -1 uses every CPU.

        Raises:
            ValidationError: If inputs are invalid.
        """
        B, sim, seed, n_jobs = check_bootstrap_settings(B, sim, seed, n_jobs)

        return cls(
            data=data,
            point_method=point_method,
            times=np.asarray(times, dtype=np.float64).copy(),
            B=B,
            method=coerce_method(method, BootstrapMethod, "bootstrap_method"),
            sim=sim,
            seed=seed,
            n_jobs=n_jobs,
        )


def summarize_replicates(replicates: NDArray, method: BootstrapMethod) -> NDArray:
    """Per-time variance of the (B, m) replicate matrix.

    A single replicate carries no spread, so B == 1 gives zeros.
    """
    B, m = replicates.shape
    if B < 2 or m == 0:
        return np.zeros(m, dtype=np.float64)

    if method is BootstrapMethod.SAMPLE_SE:
        return np.var(replicates, axis=0, ddof=1)
    if method is BootstrapMethod.NORMALITY:
        q75, q25 = np.percentile(replicates, [75, 25], axis=0)
        return ((q75 - q25) / _NORMAL_IQR) ** 2
    raise ValidationError(f"Unknown bootstrap_method: {method!r}")


def check_bootstrap_settings(
    B: int,
    sim: str,
    seed: int | None,
    n_jobs: int,
) -> tuple[int, str, int | None, int]:
    """Validate and normalise (B, sim, seed, n_jobs).

    n_jobs=-1 resolves to the number of CPUs.

    Raises:
        ValidationError: If any setting is invalid.
    """
    if isinstance(B, bool) or not isinstance(B, (int, np.integer)):
        raise ValidationError(f"B must be an integer, got {B!r}")
    if B < 1:
        raise ValidationError(f"B must be >= 1, got {B}")

    if sim not in BOOTSTRAP_SIMS:
        raise ValidationError(
            f"sim must be 'ordinary' or 'balanced', got {sim!r}"
        )

    if seed is not None and (
        isinstance(seed, bool) or not isinstance(seed, (int, np.integer))
    ):
        raise ValidationError(f"seed must be an integer or None, got {seed!r}")

    if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)):
        raise ValidationError(f"n_jobs must be a positive integer or -1, got {n_jobs!r}")
    if n_jobs == -1:
        n_jobs = os.cpu_count() or 1
    if n_jobs < 1:
        raise ValidationError(f"n_jobs must be a positive integer or -1, got {n_jobs!r}")

    return int(B), sim, None if seed is None else int(seed), int(n_jobs)
