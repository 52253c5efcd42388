"""
PyRecurrent: non-parametric analysis of recurrent-event data.

Submodules:
    mcf: Mean cumulative function with closed-form and bootstrap variance
    core: Shared result envelope, validation and exceptions
"""

__version__ = "0.1.0"

from pyrecurrent import mcf
from pyrecurrent.mcf import estimate_mcf, mcf_diff

__all__ = [
    "__version__",
    "mcf",
    "estimate_mcf",
    "mcf_diff",
]
