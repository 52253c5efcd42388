"""
Pointwise confidence intervals for the MCF.

- normal:      mcf +/- z * se, lower bound floored at 0
- log_normal:  exp(log(mcf) +/- z * se / mcf), i.e. mcf / r and mcf * r
               with r = exp(z * se / mcf); never negative

z is the (1 + level) / 2 standard normal quantile.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pyrecurrent.core.exceptions import ValidationError
from pyrecurrent.core.validation import check_level
from pyrecurrent.mcf._methods import CIMethod


def compute_ci(
    mcf: NDArray,
    variance: NDArray,
    method: CIMethod,
    level: float,
) -> tuple[NDArray, NDArray]:
    """Compute lower/upper bounds aligned with ``mcf``.

    Raises
    ------
    InvalidLevelError
        If level is not strictly between 0 and 1.
    """
    level = check_level(level)
    if len(mcf) != len(variance):
        raise ValidationError(
            f"mcf and variance must align: got {len(mcf)} and {len(variance)}"
        )

    z = stats.norm.ppf((1.0 + level) / 2.0)
    se = np.sqrt(variance)

    if method is CIMethod.NORMAL:
        lower = np.maximum(mcf - z * se, 0.0)
        upper = mcf + z * se

    elif method is CIMethod.LOG_NORMAL:
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            ratio = np.exp(z * se / mcf)
            lower = mcf / ratio
            upper = mcf * ratio
        # mcf == 0: log scale undefined, collapse onto the estimate
        lower = np.where(np.isnan(lower), 0.0, lower)
        upper = np.where(np.isnan(upper), mcf, upper)

    else:
        raise ValidationError(
            f"Unknown ci_method {method!r}. Choose from 'normal', 'log_normal'."
        )

    # Rounding can push a bound past the estimate when se is ~0
    lower = np.minimum(lower, mcf)
    upper = np.maximum(upper, mcf)

    return lower, upper
