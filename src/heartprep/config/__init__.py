"""Configuration system for heartprep."""

from .loaders import ConfigLoader
from .models import (
    ArtifactCriteria,
    CorrectionSettings,
    PeakDetectionSettings,
    QualitySettings,
    Settings,
)

__all__ = [
    "ArtifactCriteria",
    "ConfigLoader",
    "CorrectionSettings",
    "PeakDetectionSettings",
    "QualitySettings",
    "Settings",
]
