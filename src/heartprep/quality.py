"""Signal quality index (SQI) of detected heartbeats.

Quality is scored by template matching: every beat is compared with an average beat
using Pearson correlation, clipped to [0, 1]. A beat that looks like its neighbours scores
close to 1, noise or misplaced detections score close to 0.

- ECG: beats are compared with the recording-wide template and averaged per window
  (default 10 s). Windows without a complete beat are missing (NaN).
- PPG: each 30-s window has its own template and every beat gets a score and an
  annotation: 'E' (excellent, >= 0.9), 'A' (acceptable, >= 0.5) or 'Q' (unacceptable).

The scores are diagnostic only. They surface warnings and are reported per channel, but
never change the NN series.
"""

import math
from dataclasses import dataclass

import numpy as np

from ._logging import channel_logger, logger
from .config.models import QualitySettings
from .constants import MAX_BAD_PERCENT, SQI_THRESHOLD
from .diagnostics import HighArtifactRatio, LowMeanQuality, QualityWarning
from .exceptions import InvalidSignalKindError
from .types import ChannelKey, PeakIndices, Waveform

# ECG beat span around the R-peak, in seconds
ECG_BEAT_BEFORE = 0.2
ECG_BEAT_AFTER = 0.4

EXCELLENT = 0.9
ACCEPTABLE = 0.5


@dataclass
class QualityReport:
    """Quality scores of one channel.

    Attributes:
        scores: Scores in [0, 1], NaN where quality could not be assessed
        threshold: Minimum recommended score
        annotations: Per-beat labels ('E', 'A', 'Q') for PPG, None for ECG
    """

    scores: np.ndarray
    threshold: float = SQI_THRESHOLD
    annotations: list[str] | None = None

    @property
    def valid_scores(self) -> np.ndarray:
        return self.scores[~np.isnan(self.scores)]

    @property
    def mean(self) -> float:
        """Mean score over non-missing windows, rounded to 2 decimals (NaN if none)."""
        valid = self.valid_scores
        if valid.size == 0:
            return math.nan
        return round(float(np.mean(valid)), 2)

    @property
    def percent_below(self) -> float:
        """Percentage of non-missing windows below the threshold, rounded to 1 decimal."""
        valid = self.valid_scores
        if valid.size == 0:
            return math.nan
        return round(float(np.count_nonzero(valid < self.threshold) / valid.size * 100), 1)


def _beat_matrix(signal: np.ndarray, starts: np.ndarray, length: int) -> np.ndarray:
    """Stack signal[start:start + length] for every start into a 2D array."""
    return signal[starts[:, np.newaxis] + np.arange(length)]


def template_correlation(beats: np.ndarray, template: np.ndarray) -> np.ndarray:
    """Pearson correlation of each beat with the template, clipped to [0, 1].

    Beats without variance score 0. If the template itself has no variance, all scores are NaN.
    """
    centered = beats - beats.mean(axis=1, keepdims=True)
    template = template - template.mean()
    template_norm = np.linalg.norm(template)
    if template_norm == 0:
        return np.full(len(beats), np.nan)

    beat_norms = np.linalg.norm(centered, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = (centered @ template) / (beat_norms * template_norm)
    corr = np.where(beat_norms > 0, corr, 0.0)
    return np.clip(corr, 0.0, 1.0)


def ecg_quality(peaks: PeakIndices, signal: Waveform, sfreq: float, window: float = 10.0) -> np.ndarray:
    """Windowed template-matching quality of ECG beats.

    Args:
        peaks: R-peak sample indices
        signal: ECG waveform the peaks were detected on
        sfreq: Sampling frequency in Hz
        window: Window length in seconds

    Returns:
        One score per window, NaN for windows without a complete beat.
    """
    signal = np.asarray(signal, dtype=float)
    peaks = np.asarray(peaks, dtype=np.int64)
    win_len = max(int(round(window * sfreq)), 1)
    n_windows = max(math.ceil(len(signal) / win_len), 1)
    scores = np.full(n_windows, np.nan)

    before = int(round(ECG_BEAT_BEFORE * sfreq))
    after = int(round(ECG_BEAT_AFTER * sfreq))
    complete = (peaks - before >= 0) & (peaks + after <= len(signal))
    peaks = peaks[complete]
    if len(peaks) < 2:
        logger.debug(f"Only {len(peaks)} complete beat(s), ECG quality is missing")
        return scores

    beats = _beat_matrix(signal, peaks - before, before + after)
    beat_scores = template_correlation(beats, beats.mean(axis=0))

    window_idx = peaks // win_len
    for w in np.unique(window_idx):
        scores[w] = np.mean(beat_scores[window_idx == w])
    return scores


def ppg_quality(
    peaks: PeakIndices, signal: Waveform, sfreq: float, window: float = 30.0
) -> tuple[np.ndarray, list[str]]:
    """Per-beat template-matching quality of PPG pulses.

    Each window gets its own template built from its beats, each beat spanning the median
    onset-to-onset interval of the window.

    Args:
        peaks: Pulse onset sample indices
        signal: PPG waveform
        sfreq: Sampling frequency in Hz
        window: Window length in seconds

    Returns:
        Tuple of (scores, annotations), one entry per pulse.
    """
    signal = np.asarray(signal, dtype=float)
    peaks = np.asarray(peaks, dtype=np.int64)
    scores = np.full(len(peaks), np.nan)
    win_len = max(int(round(window * sfreq)), 1)

    window_idx = peaks // win_len
    for w in np.unique(window_idx):
        members = np.flatnonzero(window_idx == w)
        if len(members) < 2:
            continue
        onsets = peaks[members]
        beat_len = int(np.median(np.diff(onsets)))
        fits = members[onsets + beat_len <= len(signal)]
        if len(fits) < 2 or beat_len < 2:
            continue
        beats = _beat_matrix(signal, peaks[fits], beat_len)
        scores[fits] = template_correlation(beats, beats.mean(axis=0))

    annotations = ["E" if s >= EXCELLENT else "A" if s >= ACCEPTABLE else "Q" for s in scores]
    return scores, annotations


def score_quality(
    peaks: PeakIndices,
    signal: Waveform,
    sfreq: float,
    kind: str = "ecg",
    settings: QualitySettings | None = None,
) -> QualityReport:
    """Score the quality of the beats detected on one channel.

    Args:
        peaks: Heartbeat sample indices
        signal: Waveform the beats were detected on
        sfreq: Sampling frequency in Hz
        kind: 'ecg' or 'ppg'
        settings: Quality settings. If None, uses defaults.

    Returns:
        QualityReport with windowed (ECG) or per-beat (PPG) scores.

    Raises:
        InvalidSignalKindError: If kind is neither 'ecg' nor 'ppg'
    """
    settings = settings or QualitySettings()
    if kind == "ecg":
        scores = ecg_quality(peaks, signal, sfreq, window=settings.ecg_window)
        return QualityReport(scores=scores, threshold=settings.threshold)
    elif kind == "ppg":
        scores, annotations = ppg_quality(peaks, signal, sfreq, window=settings.ppg_window)
        return QualityReport(scores=scores, threshold=settings.threshold, annotations=annotations)
    raise InvalidSignalKindError(f"Heart signal should be either 'ecg' or 'ppg', got '{kind}'")


def summarize_quality(
    report: QualityReport,
    channel: ChannelKey | None = None,
    max_bad_percent: float = MAX_BAD_PERCENT,
) -> list[QualityWarning]:
    """Compare a quality report with the recommended minimums.

    Args:
        report: Quality report of one channel
        channel: Channel the report belongs to
        max_bad_percent: Maximum recommended percentage of windows below threshold

    Returns:
        LowMeanQuality and/or HighArtifactRatio warnings. Processing always continues.
    """
    log = channel_logger(channel)
    mean, bad = report.mean, report.percent_below
    if math.isnan(mean):
        log.warning("Signal quality could not be assessed (no scorable beats)")
        return []

    warnings: list[QualityWarning] = []
    if mean < report.threshold:
        warnings.append(LowMeanQuality(value=mean, threshold=report.threshold, channel=channel))
    else:
        log.info(f"Mean signal quality index (SQI): {mean:g}")

    if bad > max_bad_percent:
        warnings.append(HighArtifactRatio(value=bad, threshold=max_bad_percent, channel=channel))
    else:
        log.info(f"{bad:g}% of the SQI is below the minimum threshold ({report.threshold:g})")
    return warnings
