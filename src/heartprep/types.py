"""Type definitions for cardiovascular data structures."""

from typing import Annotated, TypeAlias

import numpy as np
import numpy.typing as npt

# Single cardiovascular channel in mV (ECG) or arbitrary units (PPG)
Waveform: TypeAlias = Annotated[
    npt.NDArray[np.floating],
    "Shape: (n_timepoints,)",
]

# Several cardiovascular channels recorded together
MultiChannelWaveform: TypeAlias = Annotated[
    npt.NDArray[np.floating],
    "Shape: (n_channels, n_timepoints)",
]

PeakIndices: TypeAlias = Annotated[
    npt.NDArray[np.int64],
    "Shape: (n_peaks,), strictly increasing sample indices",
]

ChannelKey: TypeAlias = int | str
