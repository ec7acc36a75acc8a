"""Pulse onset detection for PPG.

The waveform is resampled to the rate the detector is tuned for (125 Hz by default),
systolic peaks are found with neurokit2's Elgendi method, and each pulse onset is taken
as the foot of the wave: the minimum of the cleaned signal before its systolic peak.
"""

import neurokit2 as nk
import numpy as np

from .._logging import logger
from ..exceptions import FlatSignalError
from ..preprocessing import resample_signal
from ..types import Waveform
from .base import BaseDetector, PeakDetection

# Longest systolic upstroke searched for the pulse foot, in seconds
MAX_UPSTROKE = 0.5


def find_onsets(cleaned: np.ndarray, systolic: np.ndarray, sfreq: float) -> np.ndarray:
    """Locate the pulse foot preceding each systolic peak.

    The search window for a peak starts at the previous systolic peak, but never more
    than :data:`MAX_UPSTROKE` seconds back.

    Args:
        cleaned: Cleaned PPG
        systolic: Systolic peak indices, increasing
        sfreq: Sampling frequency of ``cleaned`` in Hz

    Returns:
        Strictly increasing onset indices.
    """
    max_lookback = int(MAX_UPSTROKE * sfreq)
    onsets = []
    previous = 0
    for peak in systolic:
        start = max(previous, peak - max_lookback)
        if peak > start:
            onsets.append(start + int(np.argmin(cleaned[start : peak + 1])))
        previous = peak
    return np.unique(np.asarray(onsets, dtype=np.int64))


class PulseOnsetDetector(BaseDetector):
    """Detect pulse onsets in a single PPG channel.

    Any sampling rate is accepted; detection runs at ``settings.ppg_sfreq`` and the onsets
    are mapped back to the input rate.
    """

    name = "ppg"

    def detect(self, signal: Waveform, sfreq: float) -> PeakDetection:
        """Detect pulse onsets.

        Args:
            signal: Raw PPG with shape (n_timepoints,)
            sfreq: Sampling frequency in Hz

        Returns:
            PeakDetection with onset indices at the input sampling rate.

        Raises:
            FlatSignalError: If the waveform has (almost) no variance
        """
        x = self._validate(signal, sfreq)
        if np.std(x) < 1e-6:
            raise FlatSignalError("PPG has no variance. This is a flat line.")

        work_sfreq = self.settings.ppg_sfreq
        if sfreq != work_sfreq:
            logger.debug(f"Resampling PPG from {sfreq} Hz to {work_sfreq} Hz")
        resampled = resample_signal(x, sfreq, work_sfreq)

        cleaned = np.asarray(nk.ppg_clean(resampled, sampling_rate=work_sfreq, method="elgendi"))
        info = nk.ppg_findpeaks(cleaned, sampling_rate=work_sfreq, method="elgendi")
        systolic = np.asarray(info["PPG_Peaks"], dtype=np.int64)

        onsets = find_onsets(cleaned, systolic, work_sfreq)
        peaks = np.unique(np.rint(onsets * sfreq / work_sfreq).astype(np.int64))
        peaks = peaks[peaks < len(x)]
        logger.debug(f"Detected {len(peaks)} pulse onsets from {len(systolic)} systolic peaks")

        return PeakDetection(
            peaks=peaks,
            sfreq=sfreq,
            kind=self.name,
            filtered=resample_signal(cleaned, work_sfreq, sfreq)[: len(x)],
        )
