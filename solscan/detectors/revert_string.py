"""Flag ``require`` calls carrying a revert reason string."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector, callee_text

STRING_LITERALS = frozenset({"string_literal", "string", "unicode_string_literal"})


class RevertStringDetector(Detector):
    ID = "revert-string"
    NAME = "Use Custom Errors Instead of Revert Strings"
    SEVERITY = Severity.GAS
    DESCRIPTION = (
        "Revert reason strings are stored in bytecode and ABI-encoded at runtime. Custom errors "
        "(Solidity >= 0.8.4) are cheaper to deploy and to revert with."
    )
    GAS_SAVINGS = 50
    EXAMPLE = """```solidity
require(msg.sender == owner, "Ownable: caller is not the owner");
// prefer:
if (msg.sender != owner) revert NotOwner();
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

    def _on_expression(self, node, source_file) -> None:
        if node.type != "call_expression" or callee_text(node, source_file) != "require":
            return
        arguments = [child for child in node.named_children if child.type == "call_argument"]
        if len(arguments) >= 2 and is_string_literal(arguments[1]):
            self.report(node, source_file)


def is_string_literal(node) -> bool:
    """Follow single-child wrappers down from ``node`` looking for a string literal."""

    while node is not None:
        if node.type in STRING_LITERALS:
            return True
        named = node.named_children
        node = named[0] if len(named) == 1 else None
    return False
