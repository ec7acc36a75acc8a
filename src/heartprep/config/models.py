"""Pydantic models for configuration."""

import pydantic
from pydantic import BaseModel, Field

from ..constants import MAX_BAD_PERCENT, PPG_SFREQ, SQI_THRESHOLD, CorrectionMethod
from ..preprocessing import PreprocessingSettings


class PeakDetectionSettings(BaseModel):
    """Parameters of the peak detectors.

    The defaults reproduce the Pan-Tompkins variant of the PhysioNet Cardiovascular
    Signal Toolbox and should rarely need changing.

    Attributes:
        peak_threshold: Fraction of the energy threshold that opens a candidate QRS region
        search_back: Re-scan long gaps with a halved threshold to recover missed beats
        refractory_period: Minimum time between two accepted peaks, in seconds
        min_amplitude: Amplitude (mV) a filtered ECG sample must exceed to count as active
        min_active_ratio: Fraction of active samples below which the ECG is a flat line
        polarity_window: Duration in seconds used to decide the R-peak polarity
        ppg_sfreq: Sampling rate in Hz the PPG detector works at
    """

    peak_threshold: float = Field(default=0.6, gt=0, le=1)
    search_back: bool = True
    refractory_period: float = Field(default=0.25, gt=0)
    min_amplitude: float = Field(default=0.1, ge=0)
    min_active_ratio: float = Field(default=0.2, ge=0, lt=1)
    polarity_window: float = Field(default=30.0, gt=0)
    ppg_sfreq: int = Field(default=PPG_SFREQ, gt=0)


class QualitySettings(BaseModel):
    """Signal quality index (SQI) settings.

    Attributes:
        threshold: Minimum recommended SQI
        max_bad_percent: Maximum recommended percentage of windows below threshold
        ecg_window: ECG scoring window in seconds
        ppg_window: PPG template window in seconds
    """

    threshold: float = Field(default=SQI_THRESHOLD, ge=0, le=1)
    max_bad_percent: float = Field(default=MAX_BAD_PERCENT, ge=0, le=100)
    ecg_window: float = Field(default=10.0, gt=0)
    ppg_window: float = Field(default=30.0, gt=0)


class ArtifactCriteria(BaseModel):
    """Bounds deciding whether an RR interval is an artifact.

    Different populations (species, age, pathology) need different bounds, so none of
    these are hard-coded. Defaults target adult humans.

    Attributes:
        min_rr: Shortest physiological RR interval in seconds (160 bpm)
        max_rr: Longest physiological RR interval in seconds (30 bpm)
        max_change: Maximum relative deviation from the local reference interval
        reference_beats: Number of preceding normal intervals forming the local reference
    """

    min_rr: float = Field(default=60 / 160, gt=0)
    max_rr: float = Field(default=60 / 30, gt=0)
    max_change: float = Field(default=0.2, gt=0)
    reference_beats: int = Field(default=5, ge=1)

    @pydantic.model_validator(mode="after")
    def check_bounds(self) -> "ArtifactCriteria":
        """Validate that the physiological bounds are ordered.

        Raises:
            ValueError: If min_rr is not smaller than max_rr
        """
        if self.min_rr >= self.max_rr:
            raise ValueError(f"min_rr ({self.min_rr}) must be smaller than max_rr ({self.max_rr})")
        return self


class CorrectionSettings(BaseModel):
    """RR artifact correction settings.

    Attributes:
        method: 'remove' to drop artifacts, or the interpolation used to replace them
        criteria: Artifact classification bounds
        max_artifact_percent: Share of flagged intervals on the best channel above which
            a warning is emitted
    """

    method: CorrectionMethod = "pchip"
    criteria: ArtifactCriteria = Field(default_factory=ArtifactCriteria)
    max_artifact_percent: float = Field(default=MAX_BAD_PERCENT, ge=0, le=100)


class Settings(BaseModel):
    """Complete settings for turning cardiovascular waveforms into NN intervals.

    Args:
        signal_kind: 'ecg' or 'ppg' (or the name of a registered detector plugin)
        preprocessing: Optional conditioning applied before peak detection
        detection: Peak detector parameters
        quality: Signal quality settings
        correction: RR artifact correction settings
        n_jobs: Number of worker processes for multi-channel input (1 = sequential,
            -1 = all CPUs)

    Examples:
        # Default settings (ECG, pchip interpolation)
        settings = Settings()

        # PPG with artifacts removed instead of interpolated
        settings = Settings(signal_kind="ppg", correction={"method": "remove"})
    """

    signal_kind: str = "ecg"
    preprocessing: PreprocessingSettings = Field(default_factory=PreprocessingSettings)
    detection: PeakDetectionSettings = Field(default_factory=PeakDetectionSettings)
    quality: QualitySettings = Field(default_factory=QualitySettings)
    correction: CorrectionSettings = Field(default_factory=CorrectionSettings)
    n_jobs: int | None = 1

    @pydantic.field_validator("signal_kind")
    @classmethod
    def normalize_signal_kind(cls, v: str) -> str:
        """Lower-case the signal kind so 'ECG' and 'ecg' are equivalent."""
        return v.strip().lower()
