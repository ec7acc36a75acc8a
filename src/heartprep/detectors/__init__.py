"""Heartbeat detectors and registry."""

from .base import BaseDetector, PeakDetection, PeakDetectorProtocol
from .pantompkins import PanTompkinsDetector
from .pulse import PulseOnsetDetector
from .registry import DetectorRegistry, detect_peaks

__all__ = [
    "BaseDetector",
    "DetectorRegistry",
    "PanTompkinsDetector",
    "PeakDetection",
    "PeakDetectorProtocol",
    "PulseOnsetDetector",
    "detect_peaks",
]
