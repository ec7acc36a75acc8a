"""Unit tests for waveform preprocessing."""

import numpy as np
import pytest

from heartprep.preprocessing import (
    BandpassArgs,
    NotchArgs,
    PreprocessingSettings,
    ResampleArgs,
    preprocess,
    resample_signal,
)


@pytest.fixture
def waveforms() -> tuple[np.ndarray, float]:
    """Two channels with a 1.2 Hz component, slow drift and 50 Hz line noise."""
    sfreq = 250.0
    t = np.arange(2500) / sfreq
    base = np.sin(2 * np.pi * 1.2 * t) + 0.5 * np.sin(2 * np.pi * 0.1 * t) + 0.3 * np.sin(2 * np.pi * 50 * t)
    return np.vstack([base, 2 * base]), sfreq


def _amplitude_at(x: np.ndarray, sfreq: float, freq: float) -> float:
    spectrum = np.abs(np.fft.rfft(x)) / len(x) * 2
    freqs = np.fft.rfftfreq(len(x), 1 / sfreq)
    return float(spectrum[np.argmin(np.abs(freqs - freq))])


def test_disabled_returns_input(waveforms: tuple[np.ndarray, float]):
    signals, sfreq = waveforms

    processed, new_sfreq = preprocess(signals, sfreq, PreprocessingSettings())

    np.testing.assert_array_equal(processed, signals)
    assert new_sfreq == sfreq


def test_resampling(waveforms: tuple[np.ndarray, float]):
    signals, sfreq = waveforms
    settings = PreprocessingSettings(enabled=True, resample=ResampleArgs(enabled=True, sfreq_new=125))

    processed, new_sfreq = preprocess(signals, sfreq, settings)

    assert new_sfreq == 125
    assert processed.shape == (2, 1250)


def test_resample_signal_identity():
    x = np.arange(10.0)
    np.testing.assert_array_equal(resample_signal(x, 100, 100), x)


def test_highpass_removes_drift(waveforms: tuple[np.ndarray, float]):
    signals, sfreq = waveforms
    settings = PreprocessingSettings(enabled=True, bandpass=BandpassArgs(enabled=True, l_freq=0.5))

    processed, _ = preprocess(signals, sfreq, settings)

    assert _amplitude_at(processed[0], sfreq, 0.1) < 0.1
    assert _amplitude_at(processed[0], sfreq, 1.2) > 0.9


def test_bandpass_and_notch(waveforms: tuple[np.ndarray, float]):
    signals, sfreq = waveforms
    settings = PreprocessingSettings(
        enabled=True,
        bandpass=BandpassArgs(enabled=True, l_freq=0.5, h_freq=60),
        notch=NotchArgs(enabled=True, freq=50),
    )

    processed, _ = preprocess(signals, sfreq, settings)

    assert processed.shape == signals.shape
    assert _amplitude_at(processed[1], sfreq, 50) < 0.1
    assert _amplitude_at(processed[1], sfreq, 1.2) > 1.8


def test_bandpass_without_cutoffs(waveforms: tuple[np.ndarray, float]):
    signals, sfreq = waveforms
    settings = PreprocessingSettings(enabled=True, bandpass=BandpassArgs(enabled=True, l_freq=None, h_freq=None))

    with pytest.raises(ValueError):
        preprocess(signals, sfreq, settings)


def test_invalid_input():
    with pytest.raises(ValueError):
        preprocess(np.zeros(100), 250, PreprocessingSettings())
    with pytest.raises(ValueError):
        preprocess(np.zeros((1, 100)), 0, PreprocessingSettings())


def test_cutoffs_are_validated(waveforms: tuple[np.ndarray, float]):
    """Cutoffs above Nyquist and inverted band edges are rejected."""
    signals, sfreq = waveforms

    with pytest.raises(ValueError):
        preprocess(signals, sfreq, PreprocessingSettings(enabled=True, bandpass=BandpassArgs(enabled=True, h_freq=200)))
    with pytest.raises(ValueError):
        preprocess(
            signals,
            sfreq,
            PreprocessingSettings(enabled=True, bandpass=BandpassArgs(enabled=True, l_freq=40, h_freq=5)),
        )
    with pytest.raises(ValueError):
        preprocess(signals, sfreq, PreprocessingSettings(enabled=True, notch=NotchArgs(enabled=True, freq=130)))
