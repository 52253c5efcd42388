"""
Mean cumulative function for recurrent events.

Public API:
    mcf(...) -> MCFSolution
    estimate_mcf(...) -> dict
    mcf_diff(...) -> MCFDiffSolution
"""

from pyrecurrent.mcf._methods import (
    BootstrapMethod,
    CIMethod,
    PointMethod,
    VarianceMethod,
)
from pyrecurrent.mcf.design import RecurrentEventDesign
from pyrecurrent.mcf.solution import MCFDiffSolution, MCFSolution
from pyrecurrent.mcf.solvers import estimate_mcf, mcf, mcf_diff

__all__ = [
    "mcf",
    "estimate_mcf",
    "mcf_diff",
    "MCFSolution",
    "MCFDiffSolution",
    "RecurrentEventDesign",
    "PointMethod",
    "VarianceMethod",
    "CIMethod",
    "BootstrapMethod",
]
