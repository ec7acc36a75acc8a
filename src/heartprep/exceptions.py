"""Exceptions raised by heartprep.

Channel-local failures (:class:`FlatSignalError`, :class:`InsufficientBeatsError`) are
caught by the processing pipeline and recorded on the channel result. Caller errors and
the total absence of usable channels propagate.
"""


class HeartPrepError(ValueError):
    """Base class for all heartprep errors."""


class FlatSignalError(HeartPrepError):
    """The waveform carries no usable cardiac activity."""


class InsufficientBeatsError(HeartPrepError):
    """Too few beats were detected to build an NN series."""


class NoUsablePeaksError(HeartPrepError):
    """No channel produced a usable series of heartbeats."""


class InvalidSignalKindError(HeartPrepError):
    """The signal kind has no registered peak detector."""


class UnsupportedCorrectionMethodError(HeartPrepError):
    """The requested RR correction method is not recognized."""
