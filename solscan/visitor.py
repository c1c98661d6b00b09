"""Single-pass syntax tree visitor with per-category observer dispatch."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from .errors import DetectorError, EngineError, TraversalWarning

if TYPE_CHECKING:
    from .source import SourceFile

log = logging.getLogger(__name__)

Observer = Callable[[Any, "SourceFile"], None]

UNKNOWN_OWNER = "<unattributed>"


class NodeCategory(str, Enum):
    """Syntactic categories observers can subscribe to."""

    SOURCE_UNIT = "source_unit"
    DIRECTIVE = "directive"
    CONTRACT = "contract"
    FUNCTION = "function"
    VARIABLE = "variable"
    DECLARATION = "declaration"
    STATEMENT = "statement"
    EXPRESSION = "expression"
    TYPE = "type"
    OTHER = "other"


_EXACT_CATEGORIES: Dict[str, NodeCategory] = {
    "source_file": NodeCategory.SOURCE_UNIT,
    "contract_declaration": NodeCategory.CONTRACT,
    "interface_declaration": NodeCategory.CONTRACT,
    "library_declaration": NodeCategory.CONTRACT,
    "function_definition": NodeCategory.FUNCTION,
    "constructor_definition": NodeCategory.FUNCTION,
    "modifier_definition": NodeCategory.FUNCTION,
    "fallback_receive_definition": NodeCategory.FUNCTION,
    "state_variable_declaration": NodeCategory.VARIABLE,
    "variable_declaration": NodeCategory.VARIABLE,
    "constant_variable_declaration": NodeCategory.VARIABLE,
    "expression": NodeCategory.EXPRESSION,
    "identifier": NodeCategory.EXPRESSION,
    "type_name": NodeCategory.TYPE,
    "primitive_type": NodeCategory.TYPE,
    "user_defined_type": NodeCategory.TYPE,
}

# Grammar nodes that only wrap one child spanning the same source range.
_WRAPPER_TYPES = frozenset({"expression", "type_name"})

_SUFFIX_CATEGORIES: Tuple[Tuple[str, NodeCategory], ...] = (
    ("_directive", NodeCategory.DIRECTIVE),
    ("_statement", NodeCategory.STATEMENT),
    ("_expression", NodeCategory.EXPRESSION),
    ("_literal", NodeCategory.EXPRESSION),
    ("_declaration", NodeCategory.DECLARATION),
    ("_definition", NodeCategory.DECLARATION),
    ("_type", NodeCategory.TYPE),
)


def categorize(node_type: str) -> NodeCategory:
    """Map a tree-sitter node type name to its syntactic category."""

    category = _EXACT_CATEGORIES.get(node_type)
    if category is not None:
        return category
    for suffix, candidate in _SUFFIX_CATEGORIES:
        if node_type.endswith(suffix):
            return candidate
    return NodeCategory.OTHER


def _is_wrapper(node: Any, node_type: str, children: List[Any]) -> bool:
    if node_type not in _WRAPPER_TYPES:
        return False
    named = [child for child in children if getattr(child, "is_named", True)]
    if len(named) != 1:
        return False
    try:
        return (named[0].start_byte, named[0].end_byte) == (node.start_byte, node.end_byte)
    except AttributeError:
        return False


class ASTVisitor:
    """Walk one parsed file once, dispatching named nodes to subscribed observers.

    Observers registered for a category run in registration order for every
    node of that category, in source order. Wrapper nodes that cover exactly
    the span of their only named child are walked but not dispatched, so each
    syntactic element reaches observers once. A raising observer is recorded
    in ``errors`` against its owner and does not stop the walk; nodes whose
    shape cannot be read are skipped together with their subtree and recorded
    in ``warnings``.
    """

    def __init__(self, source_file: "SourceFile") -> None:
        self.source_file = source_file
        self._observers: Dict[NodeCategory, List[Tuple[Observer, str]]] = {
            category: [] for category in NodeCategory
        }
        self.errors: List[DetectorError] = []
        self.warnings: List[TraversalWarning] = []

    def subscribe(self, category: NodeCategory, observer: Observer, owner: Optional[str] = None) -> None:
        self._observers[NodeCategory(category)].append((observer, owner or UNKNOWN_OWNER))

    def observer_count(self, category: Optional[NodeCategory] = None) -> int:
        if category is not None:
            return len(self._observers[NodeCategory(category)])
        return sum(len(observers) for observers in self._observers.values())

    def walk(self, root: Any = None) -> int:
        """Visit every node under ``root`` (the file's root by default); return nodes dispatched."""

        stack = [self.source_file.root if root is None else root]
        dispatched = 0
        while stack:
            node = stack.pop()
            shape = self._read_shape(node)
            if shape is None:
                continue
            node_type, is_named, children = shape
            if is_named and not _is_wrapper(node, node_type, children):
                self._dispatch(node, categorize(node_type))
                dispatched += 1
            stack.extend(reversed(children))
        return dispatched

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _read_shape(self, node: Any) -> Optional[Tuple[str, bool, List[Any]]]:
        try:
            node_type = node.type
            children = list(node.children)
            is_named = bool(getattr(node, "is_named", True))
            is_missing = bool(getattr(node, "is_missing", False))
        except (AttributeError, TypeError) as exc:
            self._warn(node, "<unreadable>", f"unreadable node shape: {exc}")
            return None
        if not isinstance(node_type, str):
            self._warn(node, repr(node_type), "node type is not a string")
            return None
        if node_type == "ERROR" or is_missing:
            self._warn(node, node_type, "unrecognized node skipped")
            return None
        return node_type, is_named, children

    def _dispatch(self, node: Any, category: NodeCategory) -> None:
        for observer, owner in self._observers[category]:
            try:
                observer(node, self.source_file)
            except EngineError:
                raise
            except Exception as exc:
                line = self._line_of(node)
                message = f"{type(exc).__name__}: {exc}"
                log.warning("Detector %s failed on %s:%s: %s", owner, self.source_file.path, line, message)
                self.errors.append(
                    DetectorError(detector_id=owner, file=self.source_file.path, line=line, message=message)
                )

    def _warn(self, node: Any, node_type: str, message: str) -> None:
        line = self._line_of(node)
        column = self._column_of(node)
        log.warning("%s:%s:%s: %s (%s)", self.source_file.path, line, column, message, node_type)
        self.warnings.append(
            TraversalWarning(
                file=self.source_file.path,
                line=line,
                column=column,
                node_type=node_type,
                message=message,
            )
        )

    @staticmethod
    def _line_of(node: Any) -> int:
        try:
            return int(node.start_point[0]) + 1
        except (AttributeError, TypeError, IndexError, ValueError):
            return 0

    @staticmethod
    def _column_of(node: Any) -> int:
        try:
            return int(node.start_point[1]) + 1
        except (AttributeError, TypeError, IndexError, ValueError):
            return 0
