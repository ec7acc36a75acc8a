"""Result records of the processing pipeline."""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .correction import CorrectionResult
from .detectors import PeakDetection
from .diagnostics import QualityWarning
from .exceptions import HeartPrepError
from .quality import QualityReport
from .types import ChannelKey
from .utils import drop_first_beat


@dataclass
class ChannelResult:
    """Everything computed for one cardiovascular channel.

    A channel that failed (flat line, too few beats) keeps the exception in ``error`` and
    is left out of channel selection.
    """

    channel: ChannelKey
    detection: PeakDetection | None = None
    quality: QualityReport | None = None
    correction: CorrectionResult | None = None
    warnings: list[QualityWarning] = field(default_factory=list)
    error: HeartPrepError | None = None

    @property
    def usable(self) -> bool:
        return self.error is None and self.correction is not None

    @property
    def flagged_fraction(self) -> float:
        """Share of RR intervals flagged as artifacts, NaN for failed channels."""
        if self.correction is None:
            return np.nan
        return self.correction.flagged_fraction

    def summary(self) -> dict[str, object]:
        """Diagnostic summary of the channel."""
        return {
            "channel": self.channel,
            "n_peaks": self.detection.n_peaks if self.detection is not None else 0,
            "sqi_mean": self.quality.mean if self.quality is not None else np.nan,
            "sqi_percent_below": self.quality.percent_below if self.quality is not None else np.nan,
            "artifact_percent": self.flagged_fraction * 100,
            "error": f"{type(self.error).__name__}: {self.error}" if self.error is not None else None,
        }


@dataclass
class ChannelSelection:
    """Which channel was kept and how many of its RR intervals were artifacts."""

    channel: ChannelKey
    flagged_fraction: float

    @property
    def artifact_percent(self) -> float:
        return self.flagged_fraction * 100


@dataclass
class ProcessingResult:
    """NN series and heartbeat timing of the selected channel.

    Beat-aligned arrays exclude the first heartbeat, so ``len(rr) == len(peaks) - 1`` and
    ``flags`` lines up with ``rr``.

    Attributes:
        channel: Selected channel
        sfreq: Sampling frequency of the peak indices in Hz
        peaks: Heartbeat sample indices
        rr: RR intervals in seconds
        rr_times: RR timestamps in seconds
        heart_rate: Instantaneous heart rate in bpm, aligned with rr
        nn: NN intervals in seconds
        nn_times: NN timestamps in seconds
        flags: Artifact flag per RR interval
        method: RR correction method
        quality: Quality report of the selected channel
        selection: Channel selection record
        channels: Result of every channel, in input order
        warnings: All warnings emitted during processing
    """

    channel: ChannelKey
    sfreq: float
    peaks: np.ndarray
    rr: np.ndarray
    rr_times: np.ndarray
    heart_rate: np.ndarray
    nn: np.ndarray
    nn_times: np.ndarray
    flags: np.ndarray
    method: str
    quality: QualityReport | None
    selection: ChannelSelection
    channels: dict[ChannelKey, ChannelResult] = field(default_factory=dict)
    warnings: list[QualityWarning] = field(default_factory=list)

    @classmethod
    def from_channel(
        cls,
        best: ChannelResult,
        selection: ChannelSelection,
        channels: dict[ChannelKey, ChannelResult],
        warnings: list[QualityWarning],
    ) -> "ProcessingResult":
        """Build the final result from the selected channel, dropping the first heartbeat."""
        detection, correction = best.detection, best.correction
        peaks, rr, rr_times, heart_rate = drop_first_beat(
            detection.peaks, detection.rr, detection.rr_times, detection.heart_rate
        )
        return cls(
            channel=best.channel,
            sfreq=detection.sfreq,
            peaks=peaks,
            rr=rr,
            rr_times=rr_times,
            heart_rate=heart_rate,
            nn=correction.nn,
            nn_times=correction.nn_times,
            flags=correction.flags,
            method=correction.method,
            quality=best.quality,
            selection=selection,
            channels=channels,
            warnings=warnings,
        )

    @property
    def n_artifacts(self) -> int:
        return int(np.count_nonzero(self.flags))

    @property
    def flagged_fraction(self) -> float:
        return self.n_artifacts / len(self.flags) if len(self.flags) else 0.0

    @property
    def artifact_percent(self) -> float:
        return self.flagged_fraction * 100

    def to_dataframe(self) -> pd.DataFrame:
        """NN series as a DataFrame with columns nn_times and nn (seconds)."""
        return pd.DataFrame({"nn_times": self.nn_times, "nn": self.nn})

    def channel_summary(self) -> pd.DataFrame:
        """Per-channel diagnostics (peaks, SQI, artifact share, failure) indexed by channel."""
        return pd.DataFrame([result.summary() for result in self.channels.values()]).set_index("channel")
