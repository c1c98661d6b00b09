"""Detector registry and the built-in detector catalogue."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from .detectors import Detector
from .detectors.empty_function_body import EmptyFunctionBodyDetector
from .detectors.floating_pragma import FloatingPragmaDetector
from .detectors.msg_value_in_loop import MsgValueInLoopDetector
from .detectors.post_increment import PostIncrementDetector
from .detectors.revert_string import RevertStringDetector
from .detectors.tx_origin import TxOriginUsageDetector
from .detectors.wsteth_stethpertoken import WstethStethPerTokenDetector
from .errors import DuplicateDetectorError, UnknownDetectorError
from .severity import Severity

DetectorFactory = Callable[[], Detector]

BUILTIN_DETECTORS: List[DetectorFactory] = [
    WstethStethPerTokenDetector,
    MsgValueInLoopDetector,
    TxOriginUsageDetector,
    FloatingPragmaDetector,
    EmptyFunctionBodyDetector,
    PostIncrementDetector,
    RevertStringDetector,
]


class DetectorRegistry:
    """Hold detector factories keyed by their unique id.

    The registry keeps one prototype instance per factory for metadata
    lookups; runs always build fresh instances through ``create``.
    """

    def __init__(self, factories: Iterable[DetectorFactory] = ()) -> None:
        self._factories: Dict[str, DetectorFactory] = {}
        self._prototypes: Dict[str, Detector] = {}
        for factory in factories:
            self.register(factory)

    def register(self, factory: DetectorFactory) -> Detector:
        prototype = factory()
        detector_id = prototype.id()
        if not detector_id:
            raise ValueError(f"{type(prototype).__name__} does not declare an id")
        if detector_id in self._factories:
            raise DuplicateDetectorError(detector_id)
        self._factories[detector_id] = factory
        self._prototypes[detector_id] = prototype
        return prototype

    def __contains__(self, detector_id: object) -> bool:
        return detector_id in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def ids(self) -> List[str]:
        return sorted(self._factories)

    def get(self, detector_id: str) -> Optional[Detector]:
        return self._prototypes.get(detector_id)

    def all(self) -> List[Detector]:
        return [self._prototypes[detector_id] for detector_id in self.ids()]

    def by_severity(self, severity: Severity) -> List[Detector]:
        return [detector for detector in self.all() if detector.severity() is severity]

    def create(self, detector_id: str) -> Detector:
        return self._factories[detector_id]()

    def select(
        self,
        ids: Optional[Iterable[str]] = None,
        severities: Optional[Iterable[Severity]] = None,
        exclude: Optional[Iterable[str]] = None,
        min_severity: Optional[Severity] = None,
    ) -> List[str]:
        """Resolve a filter request into sorted detector ids.

        Every id named in ``ids`` or ``exclude`` must be registered, otherwise
        ``UnknownDetectorError`` is raised listing all of the unknown ones.
        """

        requested = list(ids) if ids is not None else []
        excluded = list(exclude) if exclude is not None else []
        unknown = [detector_id for detector_id in requested + excluded if detector_id not in self._factories]
        if unknown:
            raise UnknownDetectorError(unknown)

        selected = set(requested) if requested else set(self._factories)
        selected -= set(excluded)
        if severities is not None:
            allowed = {Severity.parse(severity) for severity in severities}
            selected = {detector_id for detector_id in selected if self._prototypes[detector_id].severity() in allowed}
        if min_severity is not None:
            threshold = Severity.parse(min_severity)
            selected = {
                detector_id
                for detector_id in selected
                if self._prototypes[detector_id].severity().at_least(threshold)
            }
        return sorted(selected)


def builtin_registry() -> DetectorRegistry:
    return DetectorRegistry(BUILTIN_DETECTORS)
