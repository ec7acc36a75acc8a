"""R-peak detection for ECG.

Pan-Tompkins energy detector with a sombrero-hat band-pass, adapted from the PhysioNet
Cardiovascular Signal Toolbox (Behar et al., 2014; Vest et al., 2018):

- The energy threshold is a high percentile of the envelope so large bumps cannot
  dominate it. The first second is skipped because of filter lag.
- A search-back pass lowers the threshold where a beat appears to have been missed.
- R-peak polarity is decided once over the first seconds and forced afterwards, which
  prevents alternating between positive and negative detections.
"""

import math

import numpy as np
from scipy import ndimage, signal

from .._logging import logger
from ..constants import SOMBRERO_COEFFS, SOMBRERO_SFREQ
from ..exceptions import FlatSignalError, InsufficientBeatsError
from ..preprocessing import resample_signal
from ..types import Waveform
from ..utils import round_half_up
from .base import BaseDetector, PeakDetection


def sombrero_kernel(sfreq: float) -> np.ndarray:
    """Return the sombrero band-pass kernel for a sampling rate.

    The kernel is designed at 250 Hz and polyphase-resampled for other rates.
    """
    if sfreq == SOMBRERO_SFREQ:
        return SOMBRERO_COEFFS.copy()
    return resample_signal(SOMBRERO_COEFFS, SOMBRERO_SFREQ, sfreq)


def zero_phase_filter(kernel: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Zero-phase FIR filtering with padding capped to the signal length."""
    padlen = min(3 * (len(kernel) - 1), len(x) - 1)
    return signal.filtfilt(kernel, [1.0], x, padlen=padlen)


def energy_envelope(filtered: np.ndarray, sfreq: float) -> np.ndarray:
    """Differentiate, square, integrate and median-smooth a filtered ECG.

    The result is shifted back by half the integration window so that it lines up with
    the ECG samples. It is one sample shorter than the input.
    """
    int_len = max(round_half_up(7 * sfreq / 256), 1)
    med_len = max(round_half_up(sfreq / 100), 1)

    diff = np.diff(filtered)
    integrated = signal.lfilter(np.ones(int_len), [1.0], diff * diff)
    smoothed = ndimage.median_filter(integrated, size=med_len, mode="constant")
    return np.roll(smoothed, -math.ceil(int_len / 2))


def _segments(active: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return first and last index (inclusive) of each run of True values."""
    padded = np.concatenate(([0], active.astype(np.int8), [0]))
    edges = np.diff(padded)
    return np.flatnonzero(edges == 1), np.flatnonzero(edges == -1) - 1


class PanTompkinsDetector(BaseDetector):
    """Detect R-peaks in a single ECG channel (in mV).

    Examples:
        detector = PanTompkinsDetector()
        detection = detector.detect(ecg, sfreq=500)
        detection.rr  # RR intervals in seconds
    """

    name = "ecg"

    def detect(self, signal: Waveform, sfreq: float) -> PeakDetection:
        """Detect R-peaks.

        Args:
            signal: Raw ECG in mV with shape (n_timepoints,)
            sfreq: Sampling frequency in Hz

        Returns:
            PeakDetection with R-peak indices, polarity and energy threshold.

        Raises:
            FlatSignalError: If too few filtered samples exceed the minimum amplitude
            InsufficientBeatsError: If the signal is shorter than the filter kernel
        """
        x = self._validate(signal, sfreq)
        kernel = sombrero_kernel(sfreq)
        n_samples = len(x)
        if n_samples <= len(kernel):
            raise InsufficientBeatsError(
                f"ECG has {n_samples} samples, fewer than the {len(kernel)}-sample band-pass kernel"
            )

        filtered = zero_phase_filter(kernel, x)

        active_ratio = np.count_nonzero(np.abs(filtered) > self.settings.min_amplitude) / n_samples
        if active_ratio <= self.settings.min_active_ratio:
            raise FlatSignalError(
                f"Only {active_ratio:.1%} of samples exceed {self.settings.min_amplitude} mV "
                f"(minimum {self.settings.min_active_ratio:.0%}). This is a flat line."
            )

        envelope = energy_envelope(filtered, sfreq)
        en_thres = self._energy_threshold(envelope, sfreq, n_samples)
        if en_thres <= 0:
            raise FlatSignalError("Energy envelope is zero. This is a flat line.")

        active = envelope > self.settings.peak_threshold * en_thres
        if self.settings.search_back:
            active = self._search_back(active, envelope, en_thres, sfreq)

        left, right = _segments(active)
        if len(left) == 0:
            return PeakDetection(
                np.array([], dtype=np.int64), sfreq, self.name, energy_threshold=en_thres, filtered=filtered
            )

        polarity = self._polarity(filtered, left, right, sfreq)
        peaks = self._locate_peaks(filtered, left, right, polarity, sfreq)

        logger.info(f"Peaks' polarity: {'positive' if polarity > 0 else 'negative'}")
        logger.info(f"P&T energy threshold: {en_thres:g}")
        logger.debug(f"Detected {len(peaks)} R-peaks in {len(left)} candidate segments")

        return PeakDetection(
            peaks=peaks,
            sfreq=sfreq,
            kind=self.name,
            polarity=polarity,
            energy_threshold=float(en_thres),
            filtered=filtered,
        )

    @staticmethod
    def _energy_threshold(envelope: np.ndarray, sfreq: float, n_samples: int) -> float:
        """Percentile of the envelope between 1 s and 90 s.

        98th percentile when more than 10 s of ECG are available, 99th otherwise.
        """
        duration = n_samples / sfreq
        one_sec = round_half_up(sfreq)
        if duration > 90:
            xs = np.sort(envelope[one_sec - 1 : one_sec * 90])
        else:
            xs = np.sort(envelope[one_sec - 1 :])
        if xs.size == 0:
            xs = np.sort(envelope)

        percent = 98 if duration > 10 else 99
        return float(xs[math.ceil(percent / 100 * len(xs)) - 1])

    def _search_back(
        self, active: np.ndarray, envelope: np.ndarray, en_thres: float, sfreq: float
    ) -> np.ndarray:
        """Lower the threshold in gaps longer than 1.5 times the median gap."""
        above = np.flatnonzero(active)
        if len(above) < 2:
            return active

        gaps = np.diff(above) / sfreq
        between_segments = gaps[gaps > 0.01]
        if between_segments.size == 0:
            return active
        missed = np.flatnonzero(gaps > 1.5 * np.median(between_segments))

        active = active.copy()
        relaxed = 0.5 * self.settings.peak_threshold * en_thres
        for i in missed:
            start, end = above[i], above[i + 1]
            active[start : end + 1] = envelope[start : end + 1] > relaxed
        logger.debug(f"Search-back re-scanned {len(missed)} window(s)")
        return active

    def _polarity(self, filtered: np.ndarray, left: np.ndarray, right: np.ndarray, sfreq: float) -> int:
        """Sign of the median absolute extremum over the first segments."""
        early = left < self.settings.polarity_window * sfreq
        if not np.any(early):
            early = np.ones_like(left, dtype=bool)
        locs = [lo + np.argmax(np.abs(filtered[lo : hi + 1])) for lo, hi in zip(left[early], right[early])]
        return 1 if np.median(filtered[locs]) > 0 else -1

    def _locate_peaks(
        self, filtered: np.ndarray, left: np.ndarray, right: np.ndarray, polarity: int, sfreq: float
    ) -> np.ndarray:
        """Extremum of each segment, enforcing the refractory period."""
        min_distance = sfreq * self.settings.refractory_period
        locs: list[int] = []
        values: list[float] = []
        for lo, hi in zip(left, right):
            segment = filtered[lo : hi + 1]
            offset = int(np.argmax(segment)) if polarity > 0 else int(np.argmin(segment))
            loc, value = lo + offset, segment[offset]

            if locs and loc - locs[-1] < min_distance:
                # Too close to the previous beat: keep the larger one
                if abs(value) >= abs(values[-1]):
                    locs[-1], values[-1] = loc, value
                continue
            locs.append(loc)
            values.append(value)
        return np.asarray(locs, dtype=np.int64)
