"""heartprep: Turn raw ECG or PPG recordings into clean NN interval series.

This package detects heartbeats (Pan-Tompkins R-peaks for ECG, pulse onsets for PPG),
scores signal quality, flags and corrects artifactual RR intervals and keeps the channel
with the fewest artifacts. It works on single or multi-channel recordings and supports
per-channel parallel processing.
"""

from ._logging import logger, set_log_file, set_log_level
from .config import (
    ArtifactCriteria,
    ConfigLoader,
    CorrectionSettings,
    PeakDetectionSettings,
    QualitySettings,
    Settings,
)
from .core import CardioProcessor, get_nn, process_channel
from .correction import CorrectionResult, correct_rr, flag_artifacts
from .detectors import DetectorRegistry, PeakDetection, detect_peaks
from .diagnostics import (
    ChannelArtifactRatioExceeded,
    HighArtifactRatio,
    LowMeanQuality,
    QualityWarning,
    ShortRecording,
    WarningCollector,
    check_recording_length,
)
from .exceptions import (
    FlatSignalError,
    HeartPrepError,
    InsufficientBeatsError,
    InvalidSignalKindError,
    NoUsablePeaksError,
    UnsupportedCorrectionMethodError,
)
from .preprocessing import (
    BandpassArgs,
    NotchArgs,
    PreprocessingSettings,
    ResampleArgs,
    preprocess,
)
from .quality import QualityReport, score_quality
from .results import ChannelResult, ChannelSelection, ProcessingResult
from .selection import select_channel

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "logger",
    "set_log_level",
    "set_log_file",
    "get_nn",
    "process_channel",
    "detect_peaks",
    "score_quality",
    "flag_artifacts",
    "correct_rr",
    "select_channel",
    "check_recording_length",
    "preprocess",
    "Settings",
    "PreprocessingSettings",
    "ResampleArgs",
    "BandpassArgs",
    "NotchArgs",
    "PeakDetectionSettings",
    "QualitySettings",
    "CorrectionSettings",
    "ArtifactCriteria",
    "ConfigLoader",
    "CardioProcessor",
    "DetectorRegistry",
    "PeakDetection",
    "QualityReport",
    "CorrectionResult",
    "ChannelResult",
    "ChannelSelection",
    "ProcessingResult",
    "QualityWarning",
    "LowMeanQuality",
    "HighArtifactRatio",
    "ChannelArtifactRatioExceeded",
    "ShortRecording",
    "WarningCollector",
    "HeartPrepError",
    "FlatSignalError",
    "InsufficientBeatsError",
    "NoUsablePeaksError",
    "InvalidSignalKindError",
    "UnsupportedCorrectionMethodError",
]


def __dir__():
    return __all__
