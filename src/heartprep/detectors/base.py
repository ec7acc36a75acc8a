"""Base classes and protocols for heartbeat detectors."""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np

from ..config.models import PeakDetectionSettings
from ..types import PeakIndices, Waveform


@dataclass
class PeakDetection:
    """Heartbeats detected on one channel.

    Only the peak indices are stored; timestamps, RR intervals and heart rate are derived
    from them so the outputs can never disagree.

    Attributes:
        peaks: Sample indices of the heartbeats, strictly increasing
        sfreq: Sampling frequency of the waveform in Hz
        kind: Signal kind the detector was built for ('ecg', 'ppg', ...)
        polarity: +1 or -1 for ECG R-peaks, None otherwise
        energy_threshold: Pan-Tompkins energy threshold (ECG only)
        filtered: Filtered waveform the peaks were located on
    """

    peaks: PeakIndices
    sfreq: float
    kind: str
    polarity: int | None = None
    energy_threshold: float | None = None
    filtered: np.ndarray | None = field(default=None, repr=False)

    @property
    def n_peaks(self) -> int:
        """Number of detected heartbeats."""
        return len(self.peaks)

    @property
    def peak_times(self) -> np.ndarray:
        """Heartbeat timestamps in seconds."""
        return self.peaks / self.sfreq

    @property
    def rr(self) -> np.ndarray:
        """RR intervals in seconds (one shorter than peaks)."""
        return np.diff(self.peak_times)

    @property
    def rr_times(self) -> np.ndarray:
        """Timestamp of the beat closing each RR interval."""
        return self.peak_times[1:]

    @property
    def heart_rate(self) -> np.ndarray:
        """Instantaneous heart rate in beats per minute."""
        return 60.0 / self.rr


@runtime_checkable
class PeakDetectorProtocol(Protocol):
    """Protocol that all heartbeat detectors must implement.

    Detectors are looked up by signal kind in the
    :class:`~heartprep.detectors.registry.DetectorRegistry`, so third-party packages can
    add support for other cardiovascular signals.
    """

    name: str

    def detect(self, signal: Waveform, sfreq: float) -> PeakDetection:
        """Detect heartbeats in a single-channel waveform."""
        ...


class BaseDetector:
    """Base class providing common functionality for detectors.

    Subclasses must define:
    - name: str attribute (the signal kind they handle)
    - detect(self, signal, sfreq) method implementation
    """

    name: str = ""

    def __init__(self, settings: PeakDetectionSettings | None = None):
        self.settings = settings or PeakDetectionSettings()

    def detect(self, signal: Waveform, sfreq: float) -> PeakDetection:
        raise NotImplementedError

    @staticmethod
    def _validate(signal: Waveform, sfreq: float) -> np.ndarray:
        """Return the waveform as a 1D float array.

        Raises:
            ValueError: If sfreq is not positive, the waveform is not 1D or holds non-finite values
        """
        if sfreq <= 0:
            raise ValueError(f"Sampling frequency must be positive, got {sfreq}")
        x = np.asarray(signal, dtype=float)
        if x.ndim != 1:
            raise ValueError(f"Waveform must be 1D (n_timepoints,), got shape {x.shape}")
        if not np.all(np.isfinite(x)):
            raise ValueError("Waveform contains NaN or infinite values")
        return x
