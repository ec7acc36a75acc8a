"""Optional conditioning of cardiovascular waveforms before heartbeat detection.

The ECG detector band-passes the signal itself and the PPG detector cleans it, so this is
off by default. It is useful for recordings with strong baseline wander, line noise, or a
sampling rate far above what the detectors need.

Amplitudes are never rescaled: the ECG flat-line guard expects millivolts.
"""

from fractions import Fraction

import numpy as np
import pydantic
from pydantic import Field
from scipy import signal

from ._logging import logger
from .types import MultiChannelWaveform

NOTCH_QUALITY = 30.0


class ResampleArgs(pydantic.BaseModel):
    """Resampling to a new rate.

    Attributes:
        enabled: Whether to resample.
        sfreq_new: Target sampling frequency in Hz. If None, nothing is done.
    """

    enabled: bool = False
    sfreq_new: float | None = Field(default=None, gt=0)


class BandpassArgs(pydantic.BaseModel):
    """Zero-phase Butterworth filter. Leaving one cutoff empty gives a high- or low-pass.

    Attributes:
        enabled: Whether to filter.
        l_freq: High-pass cutoff in Hz (removes baseline wander), or None.
        h_freq: Low-pass cutoff in Hz (removes muscle noise), or None.
        order: Butterworth order. The effective order doubles with forward-backward filtering.
    """

    enabled: bool = False
    l_freq: float | None = Field(default=0.5, gt=0)
    h_freq: float | None = Field(default=None, gt=0)
    order: int = Field(default=4, ge=1)


class NotchArgs(pydantic.BaseModel):
    """Line-noise removal.

    Attributes:
        enabled: Whether to notch filter.
        freq: Line frequency in Hz (50 or 60). If None, nothing is done.
    """

    enabled: bool = False
    freq: float | None = Field(default=None, gt=0)


class PreprocessingSettings(pydantic.BaseModel):
    """All preprocessing steps. Disabled unless ``enabled`` is set."""

    enabled: bool = False
    resample: ResampleArgs = Field(default_factory=ResampleArgs)
    bandpass: BandpassArgs = Field(default_factory=BandpassArgs)
    notch: NotchArgs = Field(default_factory=NotchArgs)


def resample_signal(x: np.ndarray, sfreq: float, sfreq_new: float) -> np.ndarray:
    """Polyphase-resample a signal (or the last axis of an array).

    The rate ratio is approximated by a fraction with a denominator of at most 1000.
    """
    x = np.asarray(x, dtype=float)
    if sfreq == sfreq_new:
        return x
    ratio = Fraction(sfreq_new / sfreq).limit_denominator(1000)
    return signal.resample_poly(x, ratio.numerator, ratio.denominator, axis=-1)


def _check_below_nyquist(freq: float, sfreq: float, name: str) -> None:
    if freq >= sfreq / 2:
        raise ValueError(f"{name} ({freq} Hz) must be below the Nyquist frequency ({sfreq / 2} Hz)")


def design_butterworth(bandpass: BandpassArgs, sfreq: float) -> np.ndarray:
    """Second-order sections of the Butterworth filter described by ``bandpass``.

    Raises:
        ValueError: If neither cutoff is set, a cutoff is above Nyquist, or l_freq >= h_freq
    """
    l_freq, h_freq = bandpass.l_freq, bandpass.h_freq
    if l_freq is None and h_freq is None:
        raise ValueError("If bandpass is enabled, either l_freq or h_freq must be provided")
    for freq, name in ((l_freq, "l_freq"), (h_freq, "h_freq")):
        if freq is not None:
            _check_below_nyquist(freq, sfreq, name)

    if l_freq is not None and h_freq is not None:
        if l_freq >= h_freq:
            raise ValueError(f"l_freq ({l_freq} Hz) must be smaller than h_freq ({h_freq} Hz)")
        logger.info(f"Band-pass filtering {l_freq} Hz - {h_freq} Hz")
        return signal.butter(bandpass.order, [l_freq, h_freq], btype="band", output="sos", fs=sfreq)
    if l_freq is not None:
        logger.info(f"High-pass filtering at {l_freq} Hz")
        return signal.butter(bandpass.order, l_freq, btype="high", output="sos", fs=sfreq)
    logger.info(f"Low-pass filtering at {h_freq} Hz")
    return signal.butter(bandpass.order, h_freq, btype="low", output="sos", fs=sfreq)


def remove_line_noise(signals: np.ndarray, sfreq: float, freq: float) -> np.ndarray:
    """Zero-phase IIR notch at the line frequency."""
    _check_below_nyquist(freq, sfreq, "Notch frequency")
    logger.info(f"Removing {freq} Hz line noise")
    b, a = signal.iirnotch(freq, Q=NOTCH_QUALITY, fs=sfreq)
    return signal.filtfilt(b, a, signals, axis=-1)


def preprocess(
    signals: MultiChannelWaveform,
    sfreq: float,
    preprocessing: PreprocessingSettings,
) -> tuple[MultiChannelWaveform, float]:
    """Resample, band-pass and notch filter cardiovascular waveforms (each step if enabled).

    Args:
        signals: Waveforms with shape (n_channels, n_timepoints)
        sfreq: Sampling frequency in Hz
        preprocessing: Preprocessing settings

    Returns:
        Tuple of (processed waveforms, sampling frequency after resampling).

    Raises:
        ValueError: If the input is not 2D, sfreq is not positive or filter settings are invalid
    """
    if sfreq <= 0:
        raise ValueError(f"Sampling frequency must be positive, got {sfreq}")
    signals = np.asarray(signals, dtype=float)
    if signals.ndim != 2:
        raise ValueError(f"Signals must be a 2D array with shape (n_channels, n_timepoints), got {signals.shape}")

    if not preprocessing.enabled:
        logger.debug("Preprocessing is disabled, returning original data.")
        return signals, sfreq

    logger.info(f"Preprocessing {signals.shape[0]} channel(s) of {signals.shape[1] / sfreq:.1f} s")
    resample = preprocessing.resample
    if resample.enabled and resample.sfreq_new is not None and resample.sfreq_new != sfreq:
        logger.info(f"Resampling from {sfreq} Hz to {resample.sfreq_new} Hz")
        signals = resample_signal(signals, sfreq, resample.sfreq_new)
        sfreq = resample.sfreq_new

    if preprocessing.bandpass.enabled:
        sos = design_butterworth(preprocessing.bandpass, sfreq)
        signals = signal.sosfiltfilt(sos, signals, axis=-1)

    if preprocessing.notch.enabled and preprocessing.notch.freq is not None:
        signals = remove_line_noise(signals, sfreq, preprocessing.notch.freq)

    return signals, sfreq
