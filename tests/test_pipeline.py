"""Unit tests for the NN series pipeline."""

import numpy as np
import pandas as pd
import pytest

import heartprep
from heartprep import core
from heartprep.diagnostics import WarningCollector
from heartprep.quality import QualityReport


def test_get_nn_basic(planted_ecg: tuple[np.ndarray, np.ndarray, int]):
    """Test basic functionality of get_nn with default settings."""
    ecg, planted, sfreq = planted_ecg

    result = heartprep.get_nn(ecg, sfreq=sfreq)

    assert isinstance(result, heartprep.ProcessingResult)
    assert result.channel == 0
    assert len(result.peaks) == len(planted) - 1
    assert len(result.rr) == len(result.peaks) - 1
    assert len(result.flags) == len(result.rr)
    assert len(result.nn) == len(result.nn_times) == len(result.rr)
    assert result.n_artifacts == 0
    np.testing.assert_allclose(result.nn, np.diff(planted)[1:] / sfreq, atol=2 / sfreq)


def test_flat_channel_is_excluded(planted_ecg: tuple[np.ndarray, np.ndarray, int], flat_signal: np.ndarray):
    """A flat channel is reported but never selected."""
    ecg, _, sfreq = planted_ecg
    signals = np.vstack([flat_signal, ecg])

    result = heartprep.get_nn(signals, sfreq=sfreq, channel_names=["flat", "ECG"])

    assert result.channel == "ECG"
    assert list(result.channels) == ["flat", "ECG"]
    assert isinstance(result.channels["flat"].error, heartprep.FlatSignalError)
    assert not result.channels["flat"].usable

    summary = result.channel_summary()
    assert list(summary.index) == ["flat", "ECG"]
    assert "FlatSignalError" in summary.loc["flat", "error"]
    assert summary.loc["ECG", "n_peaks"] > 0


def test_all_flat_channels(flat_signal: np.ndarray):
    with pytest.raises(heartprep.NoUsablePeaksError):
        heartprep.get_nn(np.vstack([flat_signal, flat_signal]), sfreq=250)


def test_best_channel_is_selected(planted_ecg: tuple[np.ndarray, np.ndarray, int]):
    """A channel with a missing beat loses against a clean one."""
    ecg, planted, sfreq = planted_ecg
    damaged = ecg.copy()
    for peak in planted[[10, 30, 50]]:
        damaged[peak - 25 : peak + 26] = 0.0

    result = heartprep.get_nn(np.vstack([damaged, ecg]), sfreq=sfreq)

    assert result.channel == 1
    assert result.channels[0].flagged_fraction > 0
    assert result.selection.artifact_percent == 0.0


def test_low_quality_warning_still_produces_nn(planted_ecg: tuple[np.ndarray, np.ndarray, int], monkeypatch):
    """A mean SQI of 0.85 is reported, but the NN series is produced anyway."""
    ecg, _, sfreq = planted_ecg

    def fake_score_quality(peaks, signal, sfreq, kind, settings):
        return QualityReport(scores=np.full(6, 0.85), threshold=settings.threshold)

    monkeypatch.setattr(core, "score_quality", fake_score_quality)
    collector = WarningCollector()

    result = heartprep.get_nn(ecg, sfreq=sfreq, warning_sink=collector)

    low = collector.of_kind("LowMeanQuality")
    assert len(low) == 1
    assert low[0].value == pytest.approx(0.85)
    assert low[0].threshold == pytest.approx(0.9)
    assert len(collector.of_kind("HighArtifactRatio")) == 1
    assert len(result.nn) > 0
    assert result.warnings == collector.warnings


def test_to_dataframe(planted_ecg: tuple[np.ndarray, np.ndarray, int]):
    ecg, _, sfreq = planted_ecg

    df = heartprep.get_nn(ecg, sfreq=sfreq).to_dataframe()

    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ["nn_times", "nn"]
    assert df["nn_times"].is_monotonic_increasing


@pytest.mark.parametrize("method", ["remove", "pchip", "makima"])
def test_correction_method_from_settings(planted_ecg: tuple[np.ndarray, np.ndarray, int], method: str):
    ecg, _, sfreq = planted_ecg
    settings = heartprep.Settings(correction={"method": method})

    result = heartprep.get_nn(ecg, sfreq=sfreq, settings=settings)

    assert result.method == method


def test_ppg_pipeline(simulated_ppg: tuple[np.ndarray, int]):
    ppg, sfreq = simulated_ppg
    settings = heartprep.Settings(signal_kind="PPG")

    result = heartprep.get_nn(ppg, sfreq=sfreq, settings=settings)

    assert result.quality is not None
    assert result.quality.annotations is not None
    assert 0.6 < np.median(result.nn) < 1.1


def test_parallel_matches_sequential(planted_ecg: tuple[np.ndarray, np.ndarray, int], flat_signal: np.ndarray):
    """Channel order and results do not depend on n_jobs."""
    ecg, _, sfreq = planted_ecg
    signals = np.vstack([ecg, flat_signal, -ecg])

    sequential = heartprep.get_nn(signals, sfreq, settings=heartprep.Settings(n_jobs=1))
    parallel = heartprep.get_nn(signals, sfreq, settings=heartprep.Settings(n_jobs=2))

    assert list(parallel.channels) == list(sequential.channels)
    assert parallel.channel == sequential.channel == 0
    np.testing.assert_allclose(parallel.nn, sequential.nn)


def test_preprocessing_changes_sfreq(planted_ecg: tuple[np.ndarray, np.ndarray, int]):
    """Peaks refer to the resampled signal when resampling is enabled."""
    ecg, planted, sfreq = planted_ecg
    settings = heartprep.Settings()
    settings.preprocessing.enabled = True
    settings.preprocessing.resample.enabled = True
    settings.preprocessing.resample.sfreq_new = 500

    result = heartprep.get_nn(ecg, sfreq=sfreq, settings=settings)

    assert result.sfreq == 500
    assert len(result.peaks) == len(planted) - 1


def test_get_nn_invalid_input(planted_ecg: tuple[np.ndarray, np.ndarray, int]):
    """Test get_nn with invalid input."""
    ecg, _, sfreq = planted_ecg

    with pytest.raises(ValueError):
        heartprep.get_nn(np.zeros((1, 2, 100)), sfreq=sfreq)

    with pytest.raises(ValueError):
        heartprep.get_nn(ecg, sfreq=0)

    with pytest.raises(ValueError):
        heartprep.get_nn(np.vstack([ecg, ecg]), sfreq=sfreq, channel_names=["a"])

    with pytest.raises(ValueError):
        heartprep.get_nn(np.vstack([ecg, ecg]), sfreq=sfreq, channel_names=["a", "a"])

    with pytest.raises(TypeError):
        heartprep.get_nn(ecg, sfreq=sfreq, settings=1)

    with pytest.raises(heartprep.InvalidSignalKindError):
        heartprep.get_nn(ecg, sfreq=sfreq, settings=heartprep.Settings(signal_kind="eeg"))


def test_settings_from_file(planted_ecg: tuple[np.ndarray, np.ndarray, int], tmp_path):
    ecg, _, sfreq = planted_ecg
    config = tmp_path / "heartprep.toml"
    config.write_text('signal_kind = "ecg"\n\n[correction]\nmethod = "remove"\n')

    result = heartprep.get_nn(ecg, sfreq=sfreq, settings=config)

    assert result.method == "remove"


def test_process_channel_insufficient_beats():
    """A channel with fewer than three beats is excluded, not fatal."""
    sfreq = 250
    ecg = np.random.default_rng(0).normal(0, 0.05, 10 * sfreq)
    ecg[[500, 1500]] += 3.0

    result = core.process_channel(ecg, sfreq, heartprep.Settings(), channel="short")

    assert not result.usable
    assert isinstance(result.error, (heartprep.InsufficientBeatsError, heartprep.FlatSignalError))
