"""Flag calls to ``wstETH.stEthPerToken()``."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector, callee_text, member_name

TARGET_MEMBER = "stEthPerToken"


class WstethStethPerTokenDetector(Detector):
    """Potentially unsafe use of the stETH-per-wstETH rate."""

    ID = "wsteth-stethpertoken-usage"
    NAME = "Potentially Unsafe Use of wstETH.stEthPerToken()"
    SEVERITY = Severity.HIGH
    DESCRIPTION = (
        "`wstETH.stEthPerToken()` returns the amount of stETH per wstETH, not an ETH-denominated rate. "
        "Treating it as ETH, or combining it directly with ETH/USD price feeds, misprices positions "
        "whenever stETH trades away from ETH. Convert to stETH units first and price them with a "
        "stETH/USD feed or the market stETH/ETH rate."
    )
    EXAMPLE = """```solidity
function valueInUsd(uint256 amount) public view returns (uint256) {
    uint256 rate = wsteth.stEthPerToken(); // stETH per wstETH, not ETH
    (, int256 ethUsd,,,) = ethUsdFeed.latestRoundData();
    return amount * rate * uint256(ethUsd) / 1e26;
}
```"""

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

    def _on_expression(self, node, source_file) -> None:
        if node.type != "call_expression":
            return
        if member_name(callee_text(node, source_file)) == TARGET_MEMBER:
            self.report(node, source_file)
