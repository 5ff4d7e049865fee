"""Partial volume correction algorithms."""

from petpvc.algorithms.base import Algorithm, AlgorithmState
from petpvc.algorithms.gtm import GTMCorrection
from petpvc.algorithms.iterative_yang import IterativeYang, iterative_yang
from petpvc.algorithms.rbv import RBV, rbv, rbv_correct

__all__ = [
    "Algorithm",
    "AlgorithmState",
    "GTMCorrection",
    "IterativeYang",
    "iterative_yang",
    "RBV",
    "rbv",
    "rbv_correct",
]
