"""Shared helpers used across the processing stages."""

import math
import os
import sys
import time

import numpy as np

from ._logging import logger


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's built-in ``round`` rounds halves to even, which would shorten
    the envelope windows at sampling rates such as 250 Hz (``250 / 100 = 2.5``).
    """
    return int(math.floor(abs(value) + 0.5) * (1 if value >= 0 else -1))


def drop_first_beat(*arrays: np.ndarray) -> tuple[np.ndarray, ...]:
    """Discard the first element of every array.

    The first heartbeat is unreliable because of filter warm-up, so it is removed from
    every beat-aligned output in a single place.

    Args:
        *arrays: Beat- or interval-aligned arrays (peaks, RR, NN, flags, ...)

    Returns:
        Tuple of arrays without their first element, in the input order.
    """
    return tuple(np.asarray(a)[1:] for a in arrays)


def _available_cpus() -> int:
    count = os.process_cpu_count() if sys.version_info >= (3, 13) else os.cpu_count()
    if count is None:
        logger.warning("Could not determine CPU count, defaulting to 1")
        return 1
    return count


def get_n_processes(n_jobs: int | None, n_tasks: int) -> int:
    """Number of worker processes for per-channel processing.

    ``n_jobs`` follows the joblib convention: None or -1 uses every CPU, a positive
    value is taken as is, and -2, -3, ... leave one, two, ... CPUs free. Zero is
    invalid and falls back to a single process. The result never exceeds the number
    of channels.
    """
    if n_jobs == 0:
        logger.warning(f"Invalid n_jobs value: {n_jobs}, defaulting to 1")
        wanted = 1
    elif n_jobs is not None and n_jobs > 0:
        wanted = n_jobs
    else:
        wanted = _available_cpus() + (n_jobs or -1) + 1

    n_processes = min(max(wanted, 1), max(n_tasks, 1))
    logger.debug(f"Using {n_processes} process(es) for {n_tasks} channel(s)")
    return n_processes


def log_start(stage: str, n_channels: int) -> float:
    """Log the start of a processing stage and return the current time."""
    logger.info("Starting %s for %s channel(s)...", stage, n_channels)
    return time.time()


def log_end(stage: str, start_time: float) -> None:
    """Log the end of a processing stage with the elapsed time."""
    logger.info("Completed %s. Time taken: %.1f s", stage, time.time() - start_time)
