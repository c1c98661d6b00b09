"""Flag functions declared with an empty body."""

from __future__ import annotations

from solscan.severity import Severity
from solscan.visitor import ASTVisitor, NodeCategory

from . import Detector


class EmptyFunctionBodyDetector(Detector):
    ID = "empty-function-body"
    NAME = "Function With Empty Body"
    SEVERITY = Severity.LOW
    DESCRIPTION = (
        "A function with an empty body is either unfinished or silently succeeds where callers expect "
        "an effect. Implement it, revert explicitly, or document why it is intentionally empty."
    )

    def register_callbacks(self, visitor: ASTVisitor) -> None:
        self.observe(visitor, NodeCategory.FUNCTION, self._on_function)

    def _on_function(self, node, source_file) -> None:
        if node.type != "function_definition":
            return
        body = node.child_by_field_name("body")
        if body is None:
            return
        if "".join(source_file.node_text(body).split()) == "{}":
            self.report(node, source_file)
