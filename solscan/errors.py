"""Error taxonomy and non-fatal run records."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional


class SolscanError(Exception):
    """Base class for every error raised by the scanner."""


class EngineError(SolscanError):
    """A run was rejected or aborted by the analysis engine."""


class UnknownDetectorError(EngineError):
    def __init__(self, ids: Iterable[str]) -> None:
        self.ids = tuple(sorted(set(ids)))
        super().__init__(f"Unknown detector id(s): {', '.join(self.ids)}")


class DuplicateDetectorError(EngineError):
    def __init__(self, detector_id: str) -> None:
        self.detector_id = detector_id
        super().__init__(f"Detector id '{detector_id}' is already registered")


class AccumulatorError(EngineError):
    """A location accumulator was used outside its run lifecycle."""


class DetectorStateError(EngineError):
    """A detector was used without an accumulator attached."""


class RunCancelled(EngineError):
    """The run was cancelled between two files."""


class SourceParseError(SolscanError):
    def __init__(self, path: str, line: Optional[int] = None) -> None:
        self.path = path
        self.line = line
        where = f"{path}:{line}" if line else path
        super().__init__(f"Syntax error in {where}")


class ConfigError(SolscanError):
    """Invalid configuration file or option value."""


@dataclass(frozen=True)
class DetectorError:
    """A defect raised inside one detector's observer."""

    detector_id: str
    file: str
    line: int
    message: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class TraversalWarning:
    """A node the visitor could not interpret and skipped."""

    file: str
    line: int
    column: int
    node_type: str
    message: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)
