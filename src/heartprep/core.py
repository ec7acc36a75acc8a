"""Main NN series orchestrator."""

import multiprocessing
from collections.abc import Sequence
from pathlib import Path

import numpy as np
from tqdm import tqdm

from ._logging import channel_logger, get_log_level, logger, set_log_level
from .config import ConfigLoader, Settings
from .constants import SIGNAL_KINDS
from .correction import correct_rr
from .detectors import DetectorRegistry, detect_peaks
from .diagnostics import QualityWarning, WarningSink, log_warning
from .exceptions import FlatSignalError, InsufficientBeatsError
from .preprocessing import preprocess
from .quality import score_quality, summarize_quality
from .results import ChannelResult, ProcessingResult
from .selection import select_channel
from .types import ChannelKey, MultiChannelWaveform, Waveform
from .utils import get_n_processes, log_end, log_start

MIN_PEAKS = 3


def process_channel(signal: Waveform, sfreq: float, settings: Settings, channel: ChannelKey = 0) -> ChannelResult:
    """Detect, score and correct the heartbeats of one channel.

    Flat channels and channels with fewer than three heartbeats do not raise: the error is
    stored on the returned result so the channel can be left out of selection.

    Args:
        signal: Waveform with shape (n_timepoints,)
        sfreq: Sampling frequency in Hz
        settings: Complete processing settings
        channel: Channel label used in logs and warnings

    Returns:
        ChannelResult for the channel.
    """
    kind = settings.signal_kind
    result = ChannelResult(channel=channel)
    log = channel_logger(channel)
    log.info(f"Detecting heartbeats from cardiovascular time series ({kind})")
    try:
        detection = detect_peaks(signal, sfreq, kind, settings.detection)
        if detection.n_peaks < MIN_PEAKS:
            raise InsufficientBeatsError(
                f"Only {detection.n_peaks} heartbeat(s) detected, at least {MIN_PEAKS} are needed."
            )
    except (FlatSignalError, InsufficientBeatsError) as e:
        log.warning(f"{e} Excluding it from channel selection.")
        result.error = e
        return result
    result.detection = detection

    if kind in SIGNAL_KINDS:
        result.quality = score_quality(detection.peaks, signal, sfreq, kind, settings.quality)
        result.warnings.extend(summarize_quality(result.quality, channel, settings.quality.max_bad_percent))
    else:
        log.debug(f"No quality scorer for signal kind '{kind}', skipping quality assessment")

    result.correction = correct_rr(
        detection.rr, detection.rr_times, settings.correction.method, settings.correction.criteria
    )
    return result


def _starmap_helper_channel(args: tuple) -> ChannelResult:
    return process_channel(*args)


def _init_worker(log_level: str) -> None:
    set_log_level(log_level)


class CardioProcessor:
    """Main orchestrator for NN series extraction.

    Coordinates preprocessing, per-channel heartbeat detection, quality scoring and RR
    correction, then keeps the channel with the fewest RR artifacts.

    Warnings are passed to ``warning_sink`` in channel order once all channels are done,
    followed by the channel selection warning if any.

    Args:
        sfreq: Sampling frequency in Hz
        settings: Complete settings for preprocessing, detection and correction
        warning_sink: Callable receiving each QualityWarning. If None, warnings are logged.

    Examples:
        processor = CardioProcessor(sfreq=500)
        result = processor.process(ecg_data, channel_names=["ECG1", "ECG2"])
        result.nn, result.artifact_percent

        collector = WarningCollector()
        processor = CardioProcessor(sfreq=500, warning_sink=collector)
    """

    def __init__(self, sfreq: float, settings: Settings | None = None, warning_sink: WarningSink | None = None):
        if sfreq <= 0:
            raise ValueError(f"Sampling frequency must be positive, got {sfreq}")
        self.sfreq = sfreq
        self.settings = settings or Settings()
        self.warning_sink = warning_sink or log_warning
        # Unknown signal kinds fail here, before any channel is processed
        DetectorRegistry.get_instance().get(self.settings.signal_kind)

    def process(
        self,
        signals: Waveform | MultiChannelWaveform,
        channel_names: Sequence[ChannelKey] | None = None,
    ) -> ProcessingResult:
        """Extract the NN series from one or more cardiovascular channels.

        Args:
            signals: Waveform with shape (n_timepoints,) or (n_channels, n_timepoints)
            channel_names: Label per channel. If None, channels are numbered from 0.

        Returns:
            ProcessingResult of the selected channel.

        Raises:
            ValueError: If the input shape or channel names are invalid
            NoUsablePeaksError: If no channel yields usable heartbeats
        """
        signals = np.asarray(signals, dtype=float)
        if signals.ndim == 1:
            signals = signals[np.newaxis, :]
        if signals.ndim != 2:
            raise ValueError(
                f"Signals must have shape (n_timepoints,) or (n_channels, n_timepoints), got {signals.shape}"
            )

        n_channels = signals.shape[0]
        keys = list(channel_names) if channel_names is not None else list(range(n_channels))
        if len(keys) != n_channels:
            raise ValueError(f"Got {len(keys)} channel names for {n_channels} channels")
        if len(set(keys)) != len(keys):
            raise ValueError(f"Channel names must be unique, got {keys}")

        sfreq = self.sfreq
        if self.settings.preprocessing.enabled:
            signals, sfreq = preprocess(signals, sfreq, self.settings.preprocessing)

        start = log_start("cardiovascular processing", n_channels)
        channel_results = self._process_channels(signals, sfreq, keys)
        channels = dict(zip(keys, channel_results))

        warnings: list[QualityWarning] = []
        for result in channel_results:
            warnings.extend(result.warnings)
        selection, selection_warnings = select_channel(channels, self.settings.correction.max_artifact_percent)
        warnings.extend(selection_warnings)
        for warning in warnings:
            self.warning_sink(warning)

        # Only the selected channel keeps its filtered waveform
        for key, channel_result in channels.items():
            if key != selection.channel and channel_result.detection is not None:
                channel_result.detection.filtered = None

        result = ProcessingResult.from_channel(channels[selection.channel], selection, channels, warnings)
        logger.info(
            "%g/%g heart beats were flagged as artifacts and removed/interpolated",
            result.n_artifacts,
            len(result.flags),
        )
        log_end("cardiovascular processing", start)
        return result

    def _process_channels(self, signals: np.ndarray, sfreq: float, keys: list[ChannelKey]) -> list[ChannelResult]:
        """Run process_channel on every channel, in input order."""
        n_channels = len(keys)
        args_list = [(signal, sfreq, self.settings, key) for signal, key in zip(signals, keys)]
        processes = get_n_processes(self.settings.n_jobs, n_channels)

        if processes == 1:
            return list(
                tqdm(
                    (process_channel(*args) for args in args_list),
                    total=n_channels,
                    desc="Channels",
                    unit="channel",
                    disable=n_channels < 2,
                )
            )
        logger.info(f"Starting parallel processing with {processes} CPUs")
        with multiprocessing.Pool(processes=processes, initializer=_init_worker, initargs=(get_log_level(),)) as pool:
            return list(
                tqdm(
                    pool.imap(_starmap_helper_channel, args_list),
                    total=n_channels,
                    desc="Channels",
                    unit="channel",
                )
            )


def get_nn(
    signals: Waveform | MultiChannelWaveform,
    sfreq: float,
    settings: Settings | str | Path | None = None,
    channel_names: Sequence[ChannelKey] | None = None,
    warning_sink: WarningSink | None = None,
) -> ProcessingResult:
    """Extract the NN series from cardiovascular recordings.

    This is the main high-level API. It handles configuration loading and runs the
    complete pipeline.

    Args:
        signals: ECG (in mV) or PPG with shape (n_timepoints,) or (n_channels, n_timepoints)
        sfreq: Sampling frequency in Hz
        settings: Configuration. Can be:
            - Settings object: Use directly
            - str or Path: Load from JSON/TOML config file
            - None: Use default settings (ECG, pchip correction)
        channel_names: Label per channel. If None, channels are numbered from 0.
        warning_sink: Callable receiving each QualityWarning. If None, warnings are logged.

    Returns:
        ProcessingResult with the NN series of the best channel.

    Raises:
        InvalidSignalKindError: If settings name an unknown signal kind
        NoUsablePeaksError: If no channel yields usable heartbeats
        FileNotFoundError: If settings is a path that doesn't exist
        ValidationError: If config file doesn't match schema

    Examples:
        result = heartprep.get_nn(ecg, sfreq=500)

        settings = heartprep.Settings(signal_kind="ppg")
        settings.correction.method = "remove"
        result = heartprep.get_nn(ppg, sfreq=100, settings=settings)

        result = heartprep.get_nn(ecg, sfreq=500, settings="config.toml")
    """
    if settings is None or settings == "default":
        settings_obj = Settings()
    elif isinstance(settings, (str, Path)):
        settings_obj = ConfigLoader.from_file(settings)
    elif isinstance(settings, Settings):
        settings_obj = settings
    else:
        raise TypeError(f"settings must be a Settings object, str, Path, or None, got {type(settings).__name__}")

    processor = CardioProcessor(sfreq, settings_obj, warning_sink=warning_sink)
    return processor.process(signals, channel_names=channel_names)
