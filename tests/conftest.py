from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pytest

from solscan.detectors import Detector, callee_text, member_name
from solscan.registry import DetectorRegistry
from solscan.severity import Severity
from solscan.source import SourceFile, parse_source
from solscan.visitor import NodeCategory


@dataclass
class FakeNode:
    """Stand-in for a tree-sitter node with just the attributes the visitor reads."""

    type: str
    children: List["FakeNode"] = field(default_factory=list)
    is_named: bool = True
    is_missing: bool = False
    start_point: Tuple[int, int] = (0, 0)
    start_byte: int = 0
    end_byte: int = 0
    parent: Optional["FakeNode"] = None

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self


@dataclass
class FakeTree:
    root_node: object


def fake_source(root: object, path: str = "Fake.sol", text: str = "") -> SourceFile:
    return SourceFile(path=path, text=text, tree=FakeTree(root))


def make_member_call_detector(detector_id: str, member: str, severity: Severity = Severity.HIGH):
    """Build a detector class matching calls whose callee member is ``member``."""

    class MemberCallDetector(Detector):
        ID = detector_id
        NAME = f"Call to {member}"
        SEVERITY = severity
        DESCRIPTION = f"Matches calls to `.{member}()`."

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

        def _on_expression(self, node, source_file):
            if node.type == "call_expression" and member_name(callee_text(node, source_file)) == member:
                self.report(node, source_file)

    MemberCallDetector.__name__ = f"MemberCallDetector_{member}"
    return MemberCallDetector


class ExplodingDetector(Detector):
    ID = "exploding"
    NAME = "Always fails"
    SEVERITY = Severity.LOW
    DESCRIPTION = "Raises from its observer."

    def register_callbacks(self, visitor):
        self.observe(visitor, NodeCategory.SOURCE_UNIT, self._on_source_unit)

    def _on_source_unit(self, node, source_file):
        raise RuntimeError("unexpected internal state")


StEthPerTokenDetector = make_member_call_detector("steth-per-token", "stEthPerToken")
GetStEthDetector = make_member_call_detector("get-steth", "getStETHByWstETH", Severity.MEDIUM)


def parse(text: str, path: str = "Contract.sol") -> SourceFile:
    return parse_source(path, text)


@pytest.fixture
def registry() -> DetectorRegistry:
    return DetectorRegistry([StEthPerTokenDetector, GetStEthDetector])
