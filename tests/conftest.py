"""Shared test fixtures for heartprep tests."""

import neurokit2 as nk
import numpy as np
import pytest

PLANTED_SFREQ = 250
PLANTED_DURATION = 60


def make_planted_ecg(
    peaks: np.ndarray,
    n_samples: int,
    sfreq: float = PLANTED_SFREQ,
    amplitude: float = 1.2,
    noise: float = 0.05,
    seed: int = 0,
) -> np.ndarray:
    """Gaussian QRS complexes (in mV) centred on known sample indices, plus white noise."""
    rng = np.random.default_rng(seed)
    t = np.arange(n_samples)
    width = 0.012 * sfreq
    ecg = rng.normal(0.0, noise, n_samples)
    for peak in peaks:
        lo, hi = max(peak - 25, 0), min(peak + 26, n_samples)
        ecg[lo:hi] += amplitude * np.exp(-0.5 * ((t[lo:hi] - peak) / width) ** 2)
    return ecg


@pytest.fixture
def planted_ecg() -> tuple[np.ndarray, np.ndarray, int]:
    """Synthetic ECG with QRS complexes at known positions.

    Returns:
        Tuple of (ecg, peaks, sfreq). RR intervals vary between 0.76 and 0.84 s.
    """
    rng = np.random.default_rng(42)
    n_samples = PLANTED_DURATION * PLANTED_SFREQ
    rr_samples = rng.integers(190, 211, size=100)
    peaks = PLANTED_SFREQ + np.concatenate(([0], np.cumsum(rr_samples)))
    peaks = peaks[peaks < n_samples - PLANTED_SFREQ]
    return make_planted_ecg(peaks, n_samples), peaks, PLANTED_SFREQ


@pytest.fixture
def simulated_ecg() -> tuple[np.ndarray, int]:
    """One minute of simulated ECG at 70 bpm.

    Returns:
        Tuple of (ecg, sfreq)
    """
    sfreq = 250
    ecg = nk.ecg_simulate(duration=60, sampling_rate=sfreq, noise=0.05, heart_rate=70, random_state=1)
    return np.asarray(ecg), sfreq


@pytest.fixture
def simulated_ppg() -> tuple[np.ndarray, int]:
    """One minute of simulated PPG at 70 bpm, sampled at 100 Hz.

    Returns:
        Tuple of (ppg, sfreq)
    """
    sfreq = 100
    ppg = nk.ppg_simulate(duration=60, sampling_rate=sfreq, heart_rate=70, random_state=1)
    return np.asarray(ppg), sfreq


@pytest.fixture
def flat_signal() -> np.ndarray:
    """Flat line with negligible noise, same length as the planted ECG."""
    rng = np.random.default_rng(0)
    return rng.normal(0.0, 1e-4, PLANTED_DURATION * PLANTED_SFREQ)


@pytest.fixture
def rr_with_artifact() -> tuple[np.ndarray, np.ndarray]:
    """RR series with one implausibly short interval.

    Returns:
        Tuple of (rr, rr_times) in seconds
    """
    rr = np.array([0.8, 0.8, 0.3, 0.8, 0.8])
    return rr, np.cumsum(rr)


@pytest.fixture
def ecg_factory():
    """Build planted ECGs with custom peaks and sampling rate."""
    return make_planted_ecg
