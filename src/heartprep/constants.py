"""Constants for cardiovascular signal processing."""

from typing import Literal, get_args

import numpy as np

SignalKind = Literal["ecg", "ppg"]
SIGNAL_KINDS: list[str] = list(get_args(SignalKind))

# Sombrero-hat band-pass kernel designed at 250 Hz (Behar et al., 2014)
SOMBRERO_SFREQ = 250
SOMBRERO_COEFFS = np.array(
    [
        -7.757327341237223e-05,
        -2.357742589814283e-04,
        -6.689305101192819e-04,
        -0.001770119249103,
        -0.004364327211358,
        -0.010013251577232,
        -0.021344241245400,
        -0.042182820580118,
        -0.077080889653194,
        -0.129740392318591,
        -0.200064921294891,
        -0.280328573340852,
        -0.352139052257134,
        -0.386867664739069,
        -0.351974030208595,
        -0.223363323458050,
        0,
        0.286427448595213,
        0.574058766243311,
        0.788100265785590,
        0.867325070584078,
        0.788100265785590,
        0.574058766243311,
        0.286427448595213,
        0,
        -0.223363323458050,
        -0.351974030208595,
        -0.386867664739069,
        -0.352139052257134,
        -0.280328573340852,
        -0.200064921294891,
        -0.129740392318591,
        -0.077080889653194,
        -0.042182820580118,
        -0.021344241245400,
        -0.010013251577232,
        -0.004364327211358,
        -0.001770119249103,
        -6.689305101192819e-04,
        -2.357742589814283e-04,
        -7.757327341237223e-05,
    ]
)

# PPG onset detection is tuned for adult waveforms at this rate
PPG_SFREQ = 125

# Minimum SQI and maximum share of bad data recommended by Vest et al. (2018)
SQI_THRESHOLD = 0.9
MAX_BAD_PERCENT = 20.0

# Minimum recording length for reliable frequency-domain HRV (Shaffer & Ginsberg, 2017)
MIN_HRV_DURATION = 300.0

CorrectionMethod = Literal[
    "remove",
    "pchip",
    "linear",
    "cubic",
    "nearest",
    "next",
    "previous",
    "spline",
    "makima",
]
CORRECTION_METHODS: list[str] = list(get_args(CorrectionMethod))
