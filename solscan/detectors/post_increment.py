"""Flag postfix increments and decrements."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector


class PostIncrementDetector(Detector):
    ID = "post-increment"
    NAME = "Prefer Prefix Increment/Decrement"
    SEVERITY = Severity.GAS
    DESCRIPTION = (
        "`i++` keeps a copy of the old value on the stack. When the result is unused, `++i` does the "
        "same work for less gas."
    )
    GAS_SAVINGS = 5
    EXAMPLE = """```solidity
for (uint256 i = 0; i < n; i++) {} // prefer ++i
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

    def _on_expression(self, node, source_file) -> None:
        if node.type != "update_expression":
            return
        text = source_file.node_text(node).rstrip()
        if text.endswith("++") or text.endswith("--"):
            self.report(node, source_file)
