"""RR artifact classification and NN series generation.

An RR interval is an artifact when it is physiologically implausible (outside
``[min_rr, max_rr]`` or not finite) or when it departs abruptly from the local rhythm:
more than ``max_change`` relative deviation from the median of the last
``reference_beats`` normal intervals (ectopic beats, missed or extra detections).

If the rhythm genuinely shifts, the first intervals of the new rhythm are rejected as
abrupt changes. Once ``reference_beats`` consecutive rejected intervals agree with each
other, they are accepted as the new reference.
"""

from collections import deque
from dataclasses import dataclass

import numpy as np

from .._logging import logger
from ..config.models import ArtifactCriteria
from ..utils import drop_first_beat
from .strategies import get_strategy


@dataclass
class CorrectionResult:
    """NN series produced from one RR series.

    Attributes:
        nn: NN intervals in seconds
        nn_times: NN timestamps in seconds, same length as nn
        flags: Artifact flag per RR interval (first interval excluded)
        method: Correction method used
    """

    nn: np.ndarray
    nn_times: np.ndarray
    flags: np.ndarray
    method: str

    @property
    def n_artifacts(self) -> int:
        return int(np.count_nonzero(self.flags))

    @property
    def flagged_fraction(self) -> float:
        """Share of RR intervals flagged as artifacts (0 to 1)."""
        if len(self.flags) == 0:
            return 0.0
        return self.n_artifacts / len(self.flags)

    @property
    def artifact_percent(self) -> float:
        return self.flagged_fraction * 100


def flag_artifacts(rr: np.ndarray, criteria: ArtifactCriteria | None = None) -> np.ndarray:
    """Classify each RR interval as normal (False) or artifact (True).

    Args:
        rr: RR intervals in seconds
        criteria: Classification bounds. If None, uses adult human defaults.

    Returns:
        Boolean array with the same length as rr.
    """
    criteria = criteria or ArtifactCriteria()
    rr = np.asarray(rr, dtype=float)
    with np.errstate(invalid="ignore"):
        flags = ~np.isfinite(rr) | (rr < criteria.min_rr) | (rr > criteria.max_rr)

    plausible = rr[~flags]
    if plausible.size == 0:
        return flags

    fallback = float(np.median(plausible))
    accepted: deque[float] = deque(maxlen=criteria.reference_beats)
    rejected: list[int] = []
    for i in range(len(rr)):
        if flags[i]:
            # An implausible interval breaks any run of rejected ones
            rejected.clear()
            continue
        reference = float(np.median(accepted)) if accepted else fallback
        if abs(rr[i] - reference) <= criteria.max_change * reference:
            accepted.append(rr[i])
            rejected.clear()
            continue

        flags[i] = True
        rejected.append(i)
        if len(rejected) >= criteria.reference_beats:
            run = rr[rejected[-criteria.reference_beats :]]
            center = float(np.median(run))
            if np.all(np.abs(run - center) <= criteria.max_change * center):
                # Sustained rhythm change: adopt it as the new reference
                new_rhythm = rejected[-criteria.reference_beats :]
                flags[new_rhythm] = False
                accepted.clear()
                accepted.extend(rr[new_rhythm])
                rejected.clear()
    return flags


def correct_rr(
    rr: np.ndarray,
    rr_times: np.ndarray,
    method: str = "pchip",
    criteria: ArtifactCriteria | None = None,
) -> CorrectionResult:
    """Flag RR artifacts and build the NN series.

    The first RR interval and its flag are always discarded (filter warm-up), whatever
    the method.

    Args:
        rr: RR intervals in seconds
        rr_times: RR timestamps in seconds, same length as rr
        method: 'remove' or one of the interpolation methods ('pchip', 'linear', 'cubic',
            'nearest', 'next', 'previous', 'spline', 'makima')
        criteria: Artifact classification bounds

    Returns:
        CorrectionResult with the NN series, timestamps and flags.

    Raises:
        UnsupportedCorrectionMethodError: If method is not recognized
        ValueError: If rr and rr_times differ in length

    Examples:
        result = correct_rr(detection.rr, detection.rr_times, method="remove")
        result.nn, result.artifact_percent
    """
    strategy = get_strategy(method)
    rr = np.asarray(rr, dtype=float)
    rr_times = np.asarray(rr_times, dtype=float)
    if rr.shape != rr_times.shape or rr.ndim != 1:
        raise ValueError(f"rr and rr_times must be 1D with equal length, got {rr.shape} and {rr_times.shape}")

    flags = flag_artifacts(rr, criteria)
    values, keep = strategy.apply(rr, rr_times, flags)
    values, times, keep, flags = drop_first_beat(values, rr_times, keep, flags)

    result = CorrectionResult(nn=values[keep], nn_times=times[keep], flags=flags, method=method)
    logger.debug(
        f"{result.n_artifacts}/{len(flags)} RR intervals flagged as artifacts ({method}), "
        f"{len(result.nn)} NN intervals"
    )
    return result
