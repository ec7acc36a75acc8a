"""RR artifact detection and correction."""

from .artifacts import CorrectionResult, correct_rr, flag_artifacts
from .strategies import STRATEGIES, CorrectionStrategy, Interpolator, get_strategy

__all__ = [
    "STRATEGIES",
    "CorrectionResult",
    "CorrectionStrategy",
    "Interpolator",
    "correct_rr",
    "flag_artifacts",
    "get_strategy",
]
