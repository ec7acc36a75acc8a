"""Structured, non-fatal quality warnings.

Warnings never interrupt processing. Each stage returns the warnings it raised and the
processor hands them to a caller-supplied sink: any callable accepting one
:class:`QualityWarning`. The default sink writes them to the package logger.

Examples:
    collector = WarningCollector()
    result = get_nn(ecg, sfreq=500, warning_sink=collector)
    if any(isinstance(w, LowMeanQuality) for w in collector.warnings):
        ...
"""

from collections.abc import Callable
from typing import ClassVar, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict

from ._logging import logger
from .constants import MIN_HRV_DURATION
from .types import ChannelKey


class QualityWarning(BaseModel):
    """Base model for quality warnings.

    Attributes:
        value: Metric value that triggered the warning
        threshold: Threshold the value was compared against
        channel: Channel the warning refers to, if any
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    value: float
    threshold: float
    channel: ChannelKey | None = None

    template: ClassVar[str] = "{value:g} (threshold {threshold:g})"

    @property
    def message(self) -> str:
        """Human-readable description of the warning."""
        text = self.template.format(value=self.value, threshold=self.threshold)
        if self.channel is not None:
            return f"Channel {self.channel}: {text}"
        return text


class LowMeanQuality(QualityWarning):
    """Mean signal quality index below the recommended minimum."""

    kind: Literal["LowMeanQuality"] = "LowMeanQuality"
    template: ClassVar[str] = (
        "Mean signal quality index (SQI): {value:g}. Minimum recommended SQI = {threshold:g} "
        "before correction of RR artifacts (Vest et al., 2018)."
    )


class HighArtifactRatio(QualityWarning):
    """Too large a share of quality windows below the SQI threshold."""

    kind: Literal["HighArtifactRatio"] = "HighArtifactRatio"
    template: ClassVar[str] = (
        "{value:g}% of the signal quality index (SQI) is below the minimum threshold before "
        "correction of RR artifacts. Maximum portion recommended is {threshold:g}%."
    )


class ChannelArtifactRatioExceeded(QualityWarning):
    """The best channel still has too many RR intervals flagged as artifacts."""

    kind: Literal["ChannelArtifactRatioExceeded"] = "ChannelArtifactRatioExceeded"
    template: ClassVar[str] = (
        "{value:g}% of the RR series on the best electrode was flagged as artifact. "
        "Maximum recommendation is {threshold:g}%."
    )


class ShortRecording(QualityWarning):
    """Recording shorter than needed for reliable frequency-domain HRV."""

    kind: Literal["ShortRecording"] = "ShortRecording"
    template: ClassVar[str] = (
        "Recording length is {value:g} s. At least {threshold:g} s are recommended "
        "for reliable HRV metrics (Shaffer & Ginsberg, 2017)."
    )


WarningSink = Callable[[QualityWarning], None]


def log_warning(warning: QualityWarning) -> None:
    """Default sink: write the warning to the package logger."""
    logger.warning(warning.message)


class WarningCollector:
    """Sink that keeps every warning it receives.

    Args:
        forward: Optional second sink to pass warnings on to (e.g. :func:`log_warning`)
    """

    def __init__(self, forward: WarningSink | None = None):
        self.warnings: list[QualityWarning] = []
        self.forward = forward

    def __call__(self, warning: QualityWarning) -> None:
        self.warnings.append(warning)
        if self.forward is not None:
            self.forward(warning)

    def of_kind(self, kind: str) -> list[QualityWarning]:
        """Return the collected warnings of one kind, e.g. ``"LowMeanQuality"``."""
        return [w for w in self.warnings if w.kind == kind]

    def __len__(self) -> int:
        return len(self.warnings)


def check_recording_length(
    nn_times: np.ndarray,
    min_duration: float = MIN_HRV_DURATION,
    channel: ChannelKey | None = None,
) -> list[QualityWarning]:
    """Check that an NN series is long enough for frequency-band HRV features.

    Args:
        nn_times: NN timestamps in seconds
        min_duration: Minimum recommended duration in seconds
        channel: Channel the series comes from

    Returns:
        A list with one :class:`ShortRecording` warning, or an empty list.
    """
    duration = float(nn_times[-1]) if len(nn_times) else 0.0
    if duration < min_duration:
        return [ShortRecording(value=round(duration, 1), threshold=min_duration, channel=channel)]
    return []
