"""Flag ``tx.origin`` usage."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector


class TxOriginUsageDetector(Detector):
    ID = "tx-origin-usage"
    NAME = "Use of tx.origin"
    SEVERITY = Severity.MEDIUM
    DESCRIPTION = (
        "`tx.origin` is the externally owned account that started the transaction. Using it for "
        "authorization lets any contract the user interacts with act on their behalf. Use "
        "`msg.sender` for access control."
    )
    EXAMPLE = """```solidity
function withdraw() external {
    require(tx.origin == owner);
    payable(msg.sender).transfer(address(this).balance);
}
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

    def _on_expression(self, node, source_file) -> None:
        if node.type == "member_expression" and "".join(source_file.node_text(node).split()) == "tx.origin":
            self.report(node, source_file)
