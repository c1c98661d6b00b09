"""Detector contract shared by every built-in and third-party detector."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from solscan.errors import AccumulatorError, DetectorStateError
from solscan.result import Location
from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory, Observer

if TYPE_CHECKING:
    from solscan.source import SourceFile

LOOP_STATEMENTS = frozenset({"for_statement", "while_statement", "do_while_statement"})


class LocationAccumulator:
    """Lock-protected list of locations, drained exactly once per run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locations: List[Location] = []
        self._drained = False

    def append(self, location: Location) -> None:
        with self._lock:
            if self._drained:
                raise AccumulatorError("append after the accumulator was drained")
            self._locations.append(location)

    def drain(self) -> List[Location]:
        with self._lock:
            if self._drained:
                raise AccumulatorError("accumulator drained twice")
            self._drained = True
            locations, self._locations = self._locations, []
        return locations

    @property
    def drained(self) -> bool:
        with self._lock:
            return self._drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._locations)


class Detector(ABC):
    """Capability object implementing one bug or gas pattern check.

    Subclasses set the metadata class attributes and implement
    ``register_callbacks``, which is called once per scanned file and should
    subscribe observers through ``observe``. Observers record matches with
    ``report``; the accumulator they write into is owned by the engine and
    attached for the duration of a single run.
    """

    ID: str = ""
    NAME: str = ""
    SEVERITY: Severity = Severity.NC
    DESCRIPTION: str = ""
    GAS_SAVINGS: Optional[int] = None
    EXAMPLE: Optional[str] = None

    def __init__(self) -> None:
        self._accumulator: Optional[LocationAccumulator] = None

    def id(self) -> str:
        return self.ID

    def name(self) -> str:
        return self.NAME

    def severity(self) -> Severity:
        return self.SEVERITY

    def description(self) -> str:
        return self.DESCRIPTION

    def gas_savings(self) -> Optional[int]:
        if self.SEVERITY is not Severity.GAS:
            return None
        return self.GAS_SAVINGS

    def example(self) -> Optional[str]:
        return self.EXAMPLE

    def attach(self, accumulator: LocationAccumulator) -> None:
        self._accumulator = accumulator

    def accumulator(self) -> LocationAccumulator:
        if self._accumulator is None:
            raise DetectorStateError(f"Detector '{self.id()}' has no accumulator attached")
        return self._accumulator

    @abstractmethod
    def register_callbacks(self, visitor: ASTVisitor) -> None:
        """Subscribe this detector's observers on ``visitor``."""

    def observe(self, visitor: ASTVisitor, category: NodeCategory, observer: Observer) -> None:
        visitor.subscribe(category, observer, owner=self.id())

    def report(self, node: Any, source_file: "SourceFile") -> None:
        self.accumulator().append(source_file.location(node))

    def describe(self) -> str:
        lines = [
            f"Id: {self.id()}",
            f"Name: {self.name()}",
            f"Severity: {self.severity().value}",
            f"Description: {self.description()}",
        ]
        if self.gas_savings() is not None:
            lines.append(f"Gas savings: ~{self.gas_savings()}")
        if self.example():
            lines.append(f"Example:\n{self.example()}")
        return "\n".join(lines)


# ----------------------------------------------------------------------
# Node helpers shared by the built-in detectors
# ----------------------------------------------------------------------
def ancestors(node: Any) -> Iterator[Any]:
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def inside_loop(node: Any) -> bool:
    return any(parent.type in LOOP_STATEMENTS for parent in ancestors(node))


def callee_text(node: Any, source_file: "SourceFile") -> str:
    """Return the source text of a call's callee, e.g. ``x.stEthPerToken``."""

    function = node.child_by_field_name("function")
    if function is not None:
        return source_file.node_text(function).strip()
    text = source_file.node_text(node)
    return text.split("(", 1)[0].strip()


def member_name(callee: str) -> Optional[str]:
    """Return the member name of a ``receiver.member`` callee, if any."""

    if "." not in callee:
        return None
    return callee.rsplit(".", 1)[1].strip() or None
