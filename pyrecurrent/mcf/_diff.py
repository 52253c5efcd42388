"""
Pointwise comparison of two MCF curves from independent samples.

On the union of both groups' event times:
    diff(t) = MCF1(t) - MCF2(t)
    Var(t)  = Var1(t) + Var2(t)
    z(t)    = diff(t) / sqrt(Var(t)),  two-sided normal p-value

The interval is the unclipped normal band diff +/- z * se; a signed
difference has no log scale.

Both curves and both variances are right-continuous step functions, so
each is carried forward from its last jump (and is 0 before its first).
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from pyrecurrent.core.exceptions import ValidationError
from pyrecurrent.core.validation import check_level
from pyrecurrent.mcf._common import MCFDiffParams, MCFParams
from pyrecurrent.mcf._methods import CIMethod
from pyrecurrent.mcf._point import evaluate_step


def mcf_difference(
    first: MCFParams,
    second: MCFParams,
    level: float,
    ci_method: CIMethod = CIMethod.NORMAL,
) -> MCFDiffParams:
    level = check_level(level)
    if ci_method is not CIMethod.NORMAL:
        raise ValidationError(
            f"ci_method {ci_method.value!r} is not defined for a difference "
            f"of curves; use 'normal'"
        )
    grid = np.union1d(first.time, second.time)

    diff = (
        evaluate_step(first.time, first.mcf, grid)
        - evaluate_step(second.time, second.mcf, grid)
    )
    variance = (
        evaluate_step(first.time, first.variance, grid)
        + evaluate_step(second.time, second.variance, grid)
    )

    se = np.sqrt(variance)
    z = stats.norm.ppf((1.0 + level) / 2.0)

    with np.errstate(divide='ignore', invalid='ignore'):
        z_stat = diff / se
        # Zero variance: identical curves give z=0, otherwise +/-inf
        z_stat = np.where(
            se > 0, z_stat, np.where(diff == 0, 0.0, np.sign(diff) * np.inf),
        )
    p_value = 2.0 * stats.norm.sf(np.abs(z_stat))

    return MCFDiffParams(
        time=grid,
        difference=diff,
        variance=variance,
        ci_lower=diff - z * se,
        ci_upper=diff + z * se,
        z_statistic=z_stat,
        p_value=p_value,
        ci_level=level,
    )
