"""Flag ``pragma solidity`` directives that do not pin a compiler version."""

from __future__ import annotations

import re

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector

PRAGMA_PATTERN = re.compile(r"^pragma\s+solidity\s+(?P<version>[^;]+);?$", re.DOTALL)
FLOATING_MARKERS = re.compile(r"[\^~<>*]")


class FloatingPragmaDetector(Detector):
    ID = "floating-pragma"
    NAME = "Unspecific Compiler Version Pragma"
    SEVERITY = Severity.LOW
    DESCRIPTION = (
        "Contracts should be deployed with the compiler version they were tested with. A floating "
        "pragma allows a different, possibly buggy, compiler release to be used. Pin an exact version."
    )
    EXAMPLE = """```solidity
pragma solidity ^0.8.0; // prefer: pragma solidity 0.8.20;
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.DIRECTIVE, self._on_directive)

    def _on_directive(self, node, source_file) -> None:
        if node.type != "pragma_directive":
            return
        match = PRAGMA_PATTERN.match(source_file.node_text(node).strip())
        if match and FLOATING_MARKERS.search(match.group("version")):
            self.report(node, source_file)
