"""Selection of the best cardiovascular channel."""

from collections.abc import Mapping

from ._logging import logger
from .constants import MAX_BAD_PERCENT
from .diagnostics import ChannelArtifactRatioExceeded, QualityWarning
from .exceptions import NoUsablePeaksError
from .results import ChannelResult, ChannelSelection
from .types import ChannelKey


def select_channel(
    results: Mapping[ChannelKey, ChannelResult],
    max_artifact_percent: float = MAX_BAD_PERCENT,
) -> tuple[ChannelSelection, list[QualityWarning]]:
    """Pick the channel with the fewest RR artifacts.

    Failed channels are skipped. On ties the channel that comes first in ``results`` wins.

    Args:
        results: Channel results in input order
        max_artifact_percent: Artifact percentage on the winner above which a warning is emitted

    Returns:
        Tuple of (selection record, warnings).

    Raises:
        NoUsablePeaksError: If no channel produced an NN series
    """
    usable = [(key, result) for key, result in results.items() if result.usable]
    if not usable:
        failures = "; ".join(f"{key}: {result.error}" for key, result in results.items())
        raise NoUsablePeaksError(f"No usable heartbeats on any of {len(results)} channel(s) ({failures})")

    key, best = min(usable, key=lambda item: item[1].flagged_fraction)
    selection = ChannelSelection(channel=key, flagged_fraction=best.flagged_fraction)
    logger.debug(f"Selected channel {key} out of {len(usable)} usable channel(s)")

    warnings: list[QualityWarning] = []
    if selection.artifact_percent > max_artifact_percent:
        warnings.append(
            ChannelArtifactRatioExceeded(
                value=round(selection.artifact_percent, 2), threshold=max_artifact_percent, channel=key
            )
        )
    else:
        logger.info(
            f"Keeping only the heart electrode with the best signal quality ({key}): "
            f"{selection.artifact_percent:.2f}% of the RR series is flagged as artifact."
        )
    return selection, warnings
