"""Unit tests for signal quality scoring."""

import math

import numpy as np
import pytest

from heartprep.config import QualitySettings
from heartprep.detectors import detect_peaks
from heartprep.diagnostics import HighArtifactRatio, LowMeanQuality
from heartprep.exceptions import InvalidSignalKindError
from heartprep.quality import (
    QualityReport,
    ecg_quality,
    ppg_quality,
    score_quality,
    summarize_quality,
    template_correlation,
)


class TestQualityReport:
    """Tests for QualityReport summary statistics."""

    def test_mean_and_percent_below(self):
        report = QualityReport(scores=np.array([1.0, 0.95, 0.5, np.nan]), threshold=0.9)

        assert report.mean == pytest.approx(0.82)
        assert report.percent_below == pytest.approx(33.3)

    def test_all_missing(self):
        report = QualityReport(scores=np.full(3, np.nan))

        assert math.isnan(report.mean)
        assert math.isnan(report.percent_below)


class TestTemplateCorrelation:
    """Tests for template matching."""

    def test_identical_beats_score_one(self):
        template = np.sin(np.linspace(0, np.pi, 50))
        beats = np.tile(template, (3, 1)) * np.array([[1.0], [2.0], [0.5]])

        np.testing.assert_allclose(template_correlation(beats, template), 1.0)

    def test_inverted_beat_is_clipped_to_zero(self):
        template = np.sin(np.linspace(0, np.pi, 50))

        assert template_correlation(-template[np.newaxis, :], template)[0] == 0.0

    def test_constant_beat_scores_zero(self):
        template = np.sin(np.linspace(0, np.pi, 50))

        assert template_correlation(np.ones((1, 50)), template)[0] == 0.0


class TestECGQuality:
    """Tests for windowed ECG quality."""

    def test_scores_in_range(self, planted_ecg: tuple[np.ndarray, np.ndarray, int]):
        """Clean beats score high and every window is in [0, 1] or missing."""
        ecg, planted, sfreq = planted_ecg

        scores = ecg_quality(planted, ecg, sfreq, window=10.0)

        assert len(scores) == 6
        valid = scores[~np.isnan(scores)]
        assert np.all((valid >= 0) & (valid <= 1))
        assert np.nanmean(scores) > 0.9

    def test_window_without_beats_is_missing(self, planted_ecg: tuple[np.ndarray, np.ndarray, int]):
        ecg, planted, sfreq = planted_ecg

        scores = ecg_quality(planted[planted < 30 * sfreq], ecg, sfreq, window=10.0)

        assert np.all(np.isnan(scores[3:]))
        assert not np.any(np.isnan(scores[:3]))

    def test_noise_scores_lower(self, planted_ecg: tuple[np.ndarray, np.ndarray, int]):
        """Random positions in noise score lower than true beats."""
        ecg, planted, sfreq = planted_ecg
        noise = np.random.default_rng(3).normal(0, 0.5, len(ecg))

        clean = ecg_quality(planted, ecg, sfreq)
        noisy = ecg_quality(planted, noise, sfreq)

        assert np.nanmean(noisy) < np.nanmean(clean)


class TestPPGQuality:
    """Tests for per-beat PPG quality."""

    def test_two_beat_window_is_scored(self):
        """Two pulses are enough for a window template; a lone pulse is not."""
        sfreq = 100
        ppg = np.sin(2 * np.pi * np.arange(4000) / 100)
        onsets = np.array([100, 200, 3500])

        scores, annotations = ppg_quality(onsets, ppg, sfreq, window=30.0)

        np.testing.assert_allclose(scores[:2], [1.0, 1.0])
        assert np.isnan(scores[2])
        assert annotations == ["E", "E", "Q"]


class TestScoreQuality:
    """Tests for the quality dispatcher."""

    def test_ppg_annotations(self, simulated_ppg: tuple[np.ndarray, int]):
        """PPG beats get one score and one annotation each."""
        ppg, sfreq = simulated_ppg
        detection = detect_peaks(ppg, sfreq, kind="ppg")

        report = score_quality(detection.peaks, ppg, sfreq, kind="ppg")

        assert report.annotations is not None
        assert len(report.annotations) == len(report.scores)
        assert set(report.annotations) <= {"E", "A", "Q"}
        valid = report.valid_scores
        assert np.all((valid >= 0) & (valid <= 1))

    def test_ecg_has_no_annotations(self, planted_ecg: tuple[np.ndarray, np.ndarray, int]):
        ecg, planted, sfreq = planted_ecg

        report = score_quality(planted, ecg, sfreq, kind="ecg", settings=QualitySettings(threshold=0.8))

        assert report.annotations is None
        assert report.threshold == 0.8

    def test_invalid_kind(self, planted_ecg: tuple[np.ndarray, np.ndarray, int]):
        ecg, planted, sfreq = planted_ecg
        with pytest.raises(InvalidSignalKindError):
            score_quality(planted, ecg, sfreq, kind="bcg")


class TestSummarizeQuality:
    """Tests for quality warnings."""

    def test_low_quality_warnings(self):
        report = QualityReport(scores=np.full(6, 0.85), threshold=0.9)

        warnings = summarize_quality(report, channel="ECG1")

        assert [type(w) for w in warnings] == [LowMeanQuality, HighArtifactRatio]
        assert warnings[0].value == pytest.approx(0.85)
        assert warnings[0].channel == "ECG1"
        assert warnings[1].value == pytest.approx(100.0)

    def test_good_quality_has_no_warnings(self):
        report = QualityReport(scores=np.array([0.99, 0.95, 0.97, 0.8, 0.98]))

        assert summarize_quality(report, max_bad_percent=20) == []

    def test_missing_quality_has_no_warnings(self):
        assert summarize_quality(QualityReport(scores=np.full(2, np.nan))) == []
