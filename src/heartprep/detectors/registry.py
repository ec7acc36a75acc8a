"""Plugin registry for heartbeat detectors."""

from importlib.metadata import entry_points

from .._logging import logger
from ..config.models import PeakDetectionSettings
from ..constants import SIGNAL_KINDS
from ..exceptions import InvalidSignalKindError
from ..types import Waveform
from .base import PeakDetection, PeakDetectorProtocol
from .pantompkins import PanTompkinsDetector
from .pulse import PulseOnsetDetector


class DetectorRegistry:
    """Registry mapping signal kinds to detector classes.

    The built-in ECG and PPG detectors are always available. Other packages can provide
    detectors for further signal kinds through the 'heartprep.detectors' entry point group:

        [project.entry-points."heartprep.detectors"]
        bcg = "my_package.bcg:BCGDetector"

    Examples:
        registry = DetectorRegistry.get_instance()
        detector_class = registry.get("ecg")
        registry.register("custom", CustomDetector)
    """

    _instance: "DetectorRegistry | None" = None
    _detectors: dict[str, type[PeakDetectorProtocol]]

    def __init__(self):
        """Initialize the registry with the built-in detectors and discover plugins."""
        self._detectors = {
            PanTompkinsDetector.name: PanTompkinsDetector,
            PulseOnsetDetector.name: PulseOnsetDetector,
        }
        self._discover_plugins()

    @classmethod
    def get_instance(cls) -> "DetectorRegistry":
        """Get the singleton registry instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _discover_plugins(self) -> None:
        """Discover and register detectors via entry points."""
        for ep in entry_points(group="heartprep.detectors"):
            if ep.name in self._detectors:
                logger.debug(f"Detector plugin '{ep.name}' shadows a registered detector, skipping")
                continue
            try:
                self._detectors[ep.name] = ep.load()
                logger.debug(f"Discovered detector plugin: {ep.name}")
            except Exception as e:
                logger.warning(f"Failed to load detector plugin '{ep.name}': {e}")

    def register(self, name: str, detector_class: type[PeakDetectorProtocol]) -> None:
        """Manually register a detector for a signal kind.

        Raises:
            ValueError: If name is already registered or the class lacks a 'detect' method
        """
        if name in self._detectors:
            raise ValueError(
                f"Detector '{name}' is already registered. Use a different name or unregister the existing one first."
            )
        if not hasattr(detector_class, "detect"):
            raise ValueError(f"Detector class {detector_class} does not implement PeakDetectorProtocol.")

        self._detectors[name] = detector_class
        logger.info(f"Registered detector: {name}")

    def unregister(self, name: str) -> None:
        """Unregister a detector.

        Raises:
            KeyError: If detector is not registered
            ValueError: If name is one of the built-in signal kinds
        """
        if name in SIGNAL_KINDS:
            raise ValueError(f"Built-in detector '{name}' cannot be unregistered")
        if name not in self._detectors:
            raise KeyError(f"Detector '{name}' is not registered")
        del self._detectors[name]
        logger.info(f"Unregistered detector: {name}")

    def get(self, name: str) -> type[PeakDetectorProtocol]:
        """Get the detector class for a signal kind.

        Raises:
            InvalidSignalKindError: If no detector handles this signal kind
        """
        if name not in self._detectors:
            raise InvalidSignalKindError(
                f"Heart signal should be one of {self.list_detectors()}, got '{name}'"
            )
        return self._detectors[name]

    def list_detectors(self) -> list[str]:
        """List all registered signal kinds."""
        return list(self._detectors.keys())

    def has_detector(self, name: str) -> bool:
        """Check if a detector is registered for a signal kind."""
        return name in self._detectors


def detect_peaks(
    signal: Waveform,
    sfreq: float,
    kind: str = "ecg",
    settings: PeakDetectionSettings | None = None,
) -> PeakDetection:
    """Detect heartbeats in a single cardiovascular channel.

    Args:
        signal: Raw waveform with shape (n_timepoints,). ECG must be in mV.
        sfreq: Sampling frequency in Hz
        kind: 'ecg' for R-peaks, 'ppg' for pulse onsets
        settings: Detector parameters. If None, uses defaults.

    Returns:
        PeakDetection with peak indices, timestamps, RR and heart rate.

    Raises:
        InvalidSignalKindError: If kind has no registered detector
        FlatSignalError: If the waveform is a flat line

    Examples:
        detection = detect_peaks(ecg, sfreq=500, kind="ecg")
        detection.heart_rate.mean()
    """
    detector_class = DetectorRegistry.get_instance().get(kind.lower())
    return detector_class(settings).detect(signal, sfreq)
