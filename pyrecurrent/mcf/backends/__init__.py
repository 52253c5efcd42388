"""
Computational backends for MCF estimation.
"""

from pyrecurrent.mcf.backends.cpu import CPUMCFBootstrapBackend

__all__ = ["CPUMCFBootstrapBackend"]
