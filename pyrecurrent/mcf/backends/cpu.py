"""
CPU backend for bootstrap variance of the MCF.

CPUMCFBootstrapBackend: ordinary and balanced resampling of whole subjects,
optionally within strata, with the replicate loop spread over a fixed-size
thread pool.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
from numpy.typing import NDArray

from pyrecurrent.core.result import Result
from pyrecurrent.core.compute.timing import Timer
from pyrecurrent.mcf._bootstrap import MCFBootstrapDesign, summarize_replicates
from pyrecurrent.mcf._common import BootstrapParams
from pyrecurrent.mcf._point import evaluate_step, point_estimate
from pyrecurrent.mcf._riskset import risk_set


class CPUMCFBootstrapBackend:
    """
    CPU backend for subject-level bootstrap of the MCF.

    All resampling indices are drawn up front from one seeded generator, so
    the replicate matrix does not depend on n_jobs. Each worker owns a
    contiguous block of replicate indices and fills a private block of
    estimates; blocks are merged once every worker has finished.
    """

    @property
    def name(self) -> str:
        return 'cpu_mcf_bootstrap'

    def solve(self, design: MCFBootstrapDesign) -> Result[BootstrapParams]:
        """Run the bootstrap and return Result[BootstrapParams]."""
        timer = Timer()
        timer.start()

        data = design.data
        n = data.n_subjects
        B = design.B
        rng = np.random.default_rng(design.seed)

        with timer.section('resampling_plan'):
            if design.sim == "balanced":
                indices = self._balanced_indices(n, B, data.strata, rng)
            else:
                indices = self._ordinary_indices(n, B, data.strata, rng)

        replicates = np.empty((B, len(design.times)), dtype=np.float64)
        blocks = [
            block for block in np.array_split(np.arange(B), min(design.n_jobs, B))
            if len(block) > 0
        ]

        def run_block(block: NDArray) -> tuple[NDArray, NDArray, int]:
            return (block, *self._replicate_block(design, indices[block]))

        with timer.section('bootstrap_replicates'):
            if len(blocks) == 1:
                partials = [run_block(blocks[0])]
            else:
                with ThreadPoolExecutor(max_workers=len(blocks)) as pool:
                    partials = list(pool.map(run_block, blocks))

        n_empty = 0
        for block, values, empty in partials:
            replicates[block] = values
            n_empty += empty

        with timer.section('summary_statistics'):
            variance = summarize_replicates(replicates, design.method)

        timer.stop()

        warnings_list: list[str] = []
        if n_empty > 0:
            warnings_list.append(
                f"{n_empty} of {B} bootstrap replicates contained no events"
            )

        params = BootstrapParams(
            replicates=replicates,
            variance=variance,
            B=B,
            method=design.method.value,
            sim=design.sim,
            stratified=data.strata is not None,
            seed=design.seed,
            n_empty_replicates=n_empty,
        )

        return Result(
            params=params,
            info={
                'sim': design.sim,
                'method': design.method.value,
                'n_subjects': n,
                'n_jobs': design.n_jobs,
                'seed': design.seed,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )

    def _replicate_block(
        self,
        design: MCFBootstrapDesign,
        block_indices: NDArray,
    ) -> tuple[NDArray, int]:
        """Rerun the point-estimation pipeline for a block of replicates."""
        out = np.empty((len(block_indices), len(design.times)), dtype=np.float64)
        empty = 0
        for k, subjects in enumerate(block_indices):
            sample = design.data.resample(subjects)
            snapshots = risk_set(sample.event_records())
            curve = point_estimate(
                snapshots, design.point_method, sample.n_subjects,
            )
            if len(curve) == 0:
                empty += 1
            out[k] = evaluate_step(curve.time, curve.mcf, design.times)
        return out, empty

    def _ordinary_indices(
        self,
        n: int,
        B: int,
        strata: NDArray | None,
        rng: np.random.Generator,
    ) -> NDArray:
        """Subjects sampled with replacement, B rows of n draws."""
        if strata is None:
            return rng.choice(n, size=(B, n), replace=True)

        groups = _strata_groups(strata)
        indices = np.empty((B, n), dtype=np.int64)
        for b in range(B):
            indices[b] = self._stratified_sample(n, groups, rng)
        return indices

    def _balanced_indices(
        self,
        n: int,
        B: int,
        strata: NDArray | None,
        rng: np.random.Generator,
    ) -> NDArray:
        """
        Balanced bootstrap: each subject appears exactly B times in total.

        Pre-generates a pool of n*B indices where each subject appears
        exactly B times, then shuffles and splits into B samples of size n.
        """
        if strata is None:
            pool = np.tile(np.arange(n), B)
            rng.shuffle(pool)
            return pool.reshape(B, n)

        indices = np.empty((B, n), dtype=np.int64)
        for members in _strata_groups(strata):
            pool = np.tile(members, B)
            rng.shuffle(pool)
            indices[:, members] = pool.reshape(B, len(members))
        return indices

    def _stratified_sample(
        self,
        n: int,
        groups: list[NDArray],
        rng: np.random.Generator,
    ) -> NDArray:
        """Sample with replacement within each stratum."""
        indices = np.empty(n, dtype=np.int64)
        for members in groups:
            indices[members] = rng.choice(members, size=len(members), replace=True)
        return indices


def _strata_groups(strata: NDArray) -> list[NDArray]:
    """Subject indices per stratum, in code order.

    Built from the inverse of np.unique, so every subject lands in exactly
    one group and every column of the index matrix is written.
    """
    _, codes = np.unique(strata, return_inverse=True)
    codes = codes.ravel()
    order = np.argsort(codes, kind="stable")
    return np.split(order, np.flatnonzero(np.diff(codes[order])) + 1)
