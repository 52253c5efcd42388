"""
Public API for mean cumulative function estimation.

    mcf(time1, time2, id, event) → MCFSolution
    estimate_mcf(time1, time2, id, event, ...) → dict of arrays
    mcf_diff(first, second, level=0.95, ci_method="normal") → MCFDiffSolution

Each function validates inputs and method selectors up front, builds a
RecurrentEventDesign, runs risk set → point estimate → variance →
confidence interval, and wraps the Result in a Solution. Either a complete
result is returned or an exception is raised.
"""

from __future__ import annotations

import warnings
from typing import Literal

from pyrecurrent.core.result import Result
from pyrecurrent.core.compute.timing import Timer
from pyrecurrent.core.validation import check_level
from pyrecurrent.mcf._bootstrap import MCFBootstrapDesign, check_bootstrap_settings
from pyrecurrent.mcf._ci import compute_ci
from pyrecurrent.mcf._common import MCFParams
from pyrecurrent.mcf._diff import mcf_difference
from pyrecurrent.mcf._methods import (
    BootstrapMethod,
    CIMethod,
    PointMethod,
    VarianceMethod,
    coerce_method,
    resolve_methods,
)
from pyrecurrent.mcf._point import point_estimate
from pyrecurrent.mcf._riskset import risk_set
from pyrecurrent.mcf._variance import closed_form_variance
from pyrecurrent.mcf.backends.cpu import CPUMCFBootstrapBackend
from pyrecurrent.mcf.design import RecurrentEventDesign
from pyrecurrent.mcf.solution import MCFDiffSolution, MCFSolution


def mcf(
    time1,
    time2,
    id,
    event,
    *,
    point_method: PointMethod | str = PointMethod.RISK_SET,
    var_method: VarianceMethod | str | None = None,
    ci_method: CIMethod | str = CIMethod.NORMAL,
    ci_level: float = 0.95,
    bootstrap_method: BootstrapMethod | str = BootstrapMethod.SAMPLE_SE,
    B: int = 200,
    seed: int | None = None,
    n_jobs: int = 1,
    sim: Literal["ordinary", "balanced"] = "ordinary",
    strata=None,
    on_degenerate: Literal["raise", "drop"] = "raise",
) -> MCFSolution:
    """Non-parametric mean cumulative function for recurrent events.

    Parameters
    ----------
    time1, time2 : array-like
        Observation interval (time1, time2] per row.
    id : array-like
        Integer subject id per row.
    event : array-like
        Event value at time2 (1 = event, 0 = none; non-negative counts or
        costs are also accepted).
    point_method : str
        "risk_set" (default, Nelson-Aalen type) or "sample_mean".
    var_method : str or None
        "lawless_nadeau", "poisson", "csv" or "bootstrap". None picks
        "lawless_nadeau" for risk_set and "csv" for sample_mean.
    ci_method : str
        "normal" (default) or "log_normal".
    ci_level : float
        Confidence level, strictly between 0 and 1.
    bootstrap_method : str
        Summary of bootstrap replicates: "sample_se" or "normality".
    B : int
        Number of bootstrap replicates.
    seed : int or None
        Seed for bootstrap resampling. Without one results are not
        reproducible.
    n_jobs : int
        Threads for the bootstrap replicate loop (-1 = all CPUs).
    sim : str
        Bootstrap resampling of subjects: "ordinary" or "balanced".
    strata : array-like or None
        Per-row stratum label; bootstrap resamples within strata.
    on_degenerate : str
        Event times with nobody at risk: "raise" or "drop" with a warning.

    Returns
    -------
    MCFSolution
    """
    point, var = resolve_methods(point_method, var_method)
    ci = coerce_method(ci_method, CIMethod, "ci_method")
    ci_level = check_level(ci_level)
    boot_method = coerce_method(bootstrap_method, BootstrapMethod, "bootstrap_method")
    B, sim, seed, n_jobs = check_bootstrap_settings(B, sim, seed, n_jobs)

    timer = Timer()
    timer.start()

    with timer.section('event_table'):
        design = RecurrentEventDesign.for_mcf(
            time1, time2, id, event, strata=strata,
        )
        records = design.event_records()

    with timer.section('risk_set'):
        snapshots = risk_set(records)

    with timer.section('point_estimate'):
        curve = point_estimate(
            snapshots, point, design.n_subjects, on_degenerate=on_degenerate,
        )

    warnings_list = list(curve.warnings)
    bootstrap = None
    backend_name = "cpu_mcf"

    if var is VarianceMethod.BOOTSTRAP:
        boot_design = MCFBootstrapDesign.for_mcf(
            design, point, curve.time, B,
            method=boot_method, sim=sim, seed=seed, n_jobs=n_jobs,
        )
        backend = CPUMCFBootstrapBackend()
        with timer.section('bootstrap_replicates'):
            boot_result = backend.solve(boot_design)
        bootstrap = boot_result.params
        variance = bootstrap.variance
        backend_name = backend.name
        for msg in boot_result.warnings:
            warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warnings_list.extend(boot_result.warnings)
    else:
        with timer.section('variance'):
            variance = closed_form_variance(design, curve, point, var)

    with timer.section('confidence_interval'):
        ci_lower, ci_upper = compute_ci(curve.mcf, variance, ci, ci_level)

    timer.stop()

    params = MCFParams(
        time=curve.time,
        mcf=curve.mcf,
        variance=variance,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        n_risk=curve.n_risk,
        n_events=curve.n_events,
        risk_set=snapshots,
        point_method=point.value,
        var_method=var.value,
        ci_method=ci.value,
        ci_level=ci_level,
        n_subjects=design.n_subjects,
        n_events_total=design.n_events_total,
        bootstrap=bootstrap,
    )

    info = {
        "method": "MCF",
        "point_method": point.value,
        "var_method": var.value,
        "ci_method": ci.value,
        **design.metadata,
    }
    if bootstrap is not None:
        info.update({
            "B": bootstrap.B,
            "bootstrap_method": bootstrap.method,
            "sim": bootstrap.sim,
            "seed": bootstrap.seed,
        })

    result = Result(
        params=params,
        info=info,
        timing=timer.result(),
        backend_name=backend_name,
        warnings=tuple(warnings_list),
    )

    return MCFSolution(_result=result)


def estimate_mcf(
    time1,
    time2,
    id,
    event,
    point_method: PointMethod | str = PointMethod.RISK_SET,
    var_method: VarianceMethod | str | None = None,
    ci_method: CIMethod | str = CIMethod.NORMAL,
    ci_level: float = 0.95,
    var_bootstrap_method: BootstrapMethod | str = BootstrapMethod.SAMPLE_SE,
    var_bootstrap_B: int = 200,
    *,
    seed: int | None = None,
    n_jobs: int = 1,
    sim: Literal["ordinary", "balanced"] = "ordinary",
    strata=None,
    on_degenerate: Literal["raise", "drop"] = "raise",
) -> dict:
    """MCF result bundle as plain arrays.

    Same computation as mcf(); returns
    {"times", "mcf", "variance", "ci_lower", "ci_upper"}, all of length
    equal to the number of distinct event times.
    """
    solution = mcf(
        time1, time2, id, event,
        point_method=point_method,
        var_method=var_method,
        ci_method=ci_method,
        ci_level=ci_level,
        bootstrap_method=var_bootstrap_method,
        B=var_bootstrap_B,
        seed=seed,
        n_jobs=n_jobs,
        sim=sim,
        strata=strata,
        on_degenerate=on_degenerate,
    )
    return solution.to_dict()


def mcf_diff(
    first: MCFSolution,
    second: MCFSolution,
    *,
    level: float = 0.95,
    ci_method: CIMethod | str = CIMethod.NORMAL,
) -> MCFDiffSolution:
    """Pointwise difference of two MCFs from independent groups.

    Parameters
    ----------
    first, second : MCFSolution
        Fits on independent samples.
    level : float
        Confidence level for the interval of the difference.
    ci_method : str
        "normal" (default). A difference can be negative, so "log_normal"
        is rejected.

    Returns
    -------
    MCFDiffSolution
    """
    for name, sol in (("first", first), ("second", second)):
        if not isinstance(sol, MCFSolution):
            raise TypeError(f"{name} must be an MCFSolution, got {type(sol).__name__}")
    ci = coerce_method(ci_method, CIMethod, "ci_method")
    level = check_level(level)

    timer = Timer()
    timer.start()
    params = mcf_difference(first.params, second.params, level, ci)
    timer.stop()

    result = Result(
        params=params,
        info={
            "method": "MCF difference",
            "var_methods": (first.var_method, second.var_method),
            "ci_method": ci.value,
        },
        timing=timer.result(),
        backend_name="cpu_mcf_diff",
        warnings=(),
    )
    return MCFDiffSolution(_result=result)
