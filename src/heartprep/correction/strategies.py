"""Strategies for replacing or removing artifactual RR intervals.

Every strategy receives the full RR series, its timestamps and the artifact flags, and
returns the corrected values on the same grid together with a mask of the intervals to
keep. Interpolating strategies only rewrite flagged slots: normal intervals always pass
through unchanged.
"""

import numpy as np
from scipy.interpolate import (
    Akima1DInterpolator,
    CubicHermiteSpline,
    CubicSpline,
    PchipInterpolator,
    interp1d,
)

from .._logging import logger
from ..constants import CORRECTION_METHODS
from ..exceptions import UnsupportedCorrectionMethodError


class CorrectionStrategy:
    """Base class for correction strategies.

    Subclasses must define:
    - name: str attribute (the method name used in settings)
    - apply(self, rr, rr_times, flags) method implementation
    """

    name: str = ""

    def apply(self, rr: np.ndarray, rr_times: np.ndarray, flags: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Correct an RR series.

        Args:
            rr: RR intervals in seconds
            rr_times: Timestamps of the RR intervals in seconds, increasing
            flags: True where the interval is an artifact

        Returns:
            Tuple of (values aligned with rr, boolean mask of intervals to keep).
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RemoveArtifacts(CorrectionStrategy):
    """Drop artifactual intervals; the NN series becomes shorter."""

    name = "remove"

    def apply(self, rr, rr_times, flags):
        return np.asarray(rr, dtype=float).copy(), ~flags


class Interpolator(CorrectionStrategy):
    """Replace artifactual intervals by resampling the normal ones onto the full grid.

    Flagged slots before the first or after the last normal interval take the value of
    the nearest normal interval instead of being extrapolated.
    """

    #: Fewest normal intervals the method needs, linear interpolation is used below it
    min_points: int = 2

    def fill(self, grid_times: np.ndarray, known_times: np.ndarray, known_values: np.ndarray) -> np.ndarray:
        """Evaluate the interpolant built on the known points at grid_times."""
        raise NotImplementedError

    def apply(self, rr, rr_times, flags):
        nn = np.asarray(rr, dtype=float).copy()
        keep = np.ones(len(nn), dtype=bool)
        if not np.any(flags):
            return nn, keep

        known = ~flags
        known_times, known_values = rr_times[known], nn[known]
        if len(known_values) == 0:
            logger.warning("Every RR interval is flagged as artifact, nothing to interpolate from")
            return nn, keep
        if len(known_values) == 1:
            nn[flags] = known_values[0]
            return nn, keep

        targets = rr_times[flags]
        if len(known_values) < self.min_points:
            values = np.interp(targets, known_times, known_values)
        else:
            values = self.fill(targets, known_times, known_values)
        values = np.where(targets < known_times[0], known_values[0], values)
        values = np.where(targets > known_times[-1], known_values[-1], values)
        nn[flags] = values
        return nn, keep


class PchipInterpolation(Interpolator):
    """Shape-preserving piecewise cubic Hermite interpolation (default)."""

    name = "pchip"

    def fill(self, grid_times, known_times, known_values):
        return PchipInterpolator(known_times, known_values, extrapolate=False)(grid_times)


class LinearInterpolation(Interpolator):
    name = "linear"

    def fill(self, grid_times, known_times, known_values):
        return np.interp(grid_times, known_times, known_values)


class CubicInterpolation(Interpolator):
    """Cubic Hermite interpolation with central-difference slopes.

    Only well-defined on regularly spaced points; irregular spacing falls back to a
    cubic spline.
    """

    name = "cubic"

    def fill(self, grid_times, known_times, known_values):
        steps = np.diff(known_times)
        if np.allclose(steps, steps[0], rtol=1e-6):
            slopes = np.gradient(known_values, known_times)
            return CubicHermiteSpline(known_times, known_values, slopes, extrapolate=False)(grid_times)
        logger.debug("Irregularly spaced RR intervals, 'cubic' falls back to 'spline'")
        return SplineInterpolation().fill(grid_times, known_times, known_values)


class _NeighborInterpolation(Interpolator):
    """Piecewise-constant fill from a neighbouring normal interval."""

    def fill(self, grid_times, known_times, known_values):
        interpolant = interp1d(known_times, known_values, kind=self.name, bounds_error=False, fill_value=np.nan)
        return interpolant(grid_times)


class NearestInterpolation(_NeighborInterpolation):
    name = "nearest"


class NextInterpolation(_NeighborInterpolation):
    name = "next"


class PreviousInterpolation(_NeighborInterpolation):
    name = "previous"


class SplineInterpolation(Interpolator):
    """Piecewise cubic spline with not-a-knot end conditions."""

    name = "spline"

    def fill(self, grid_times, known_times, known_values):
        return CubicSpline(known_times, known_values, bc_type="not-a-knot", extrapolate=False)(grid_times)


class MakimaInterpolation(Interpolator):
    """Modified Akima cubic interpolation (less overshoot on flat runs)."""

    name = "makima"
    min_points = 3

    def fill(self, grid_times, known_times, known_values):
        return Akima1DInterpolator(known_times, known_values, method="makima")(grid_times)


STRATEGIES: dict[str, type[CorrectionStrategy]] = {
    cls.name: cls
    for cls in (
        RemoveArtifacts,
        PchipInterpolation,
        LinearInterpolation,
        CubicInterpolation,
        NearestInterpolation,
        NextInterpolation,
        PreviousInterpolation,
        SplineInterpolation,
        MakimaInterpolation,
    )
}


def get_strategy(method: str) -> CorrectionStrategy:
    """Return the correction strategy for a method name.

    Raises:
        UnsupportedCorrectionMethodError: If method is not one of the recognized names
    """
    try:
        return STRATEGIES[method]()
    except KeyError:
        raise UnsupportedCorrectionMethodError(
            f"Unsupported RR correction method '{method}'. Choose one of: {CORRECTION_METHODS}"
        ) from None
