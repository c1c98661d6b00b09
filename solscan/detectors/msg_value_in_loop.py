"""Flag ``msg.value`` read inside a loop."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector, inside_loop


class MsgValueInLoopDetector(Detector):
    ID = "msg-value-in-loop"
    NAME = "Use of msg.value Inside a Loop"
    SEVERITY = Severity.HIGH
    DESCRIPTION = (
        "`msg.value` does not change between loop iterations. Crediting it once per iteration lets a "
        "caller spend the same ether several times, e.g. in batched deposits or multicall paths. "
        "Track the remaining value in a local variable instead."
    )
    EXAMPLE = """```solidity
function batchDeposit(address[] calldata receivers) external payable {
    for (uint256 i = 0; i < receivers.length; i++) {
        balances[receivers[i]] += msg.value;
    }
}
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

    def _on_expression(self, node, source_file) -> None:
        if node.type != "member_expression":
            return
        if "".join(source_file.node_text(node).split()) != "msg.value":
            return
        if inside_loop(node):
            self.report(node, source_file)
