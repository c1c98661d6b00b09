"""Tree-sitter front end: parsed Solidity files and node location helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

import tree_sitter
import tree_sitter_solidity

from .errors import ConfigError, SourceParseError
from .result import Location
from .utils import iter_code_files, read_text_file

SOLIDITY_LANGUAGE = tree_sitter.Language(tree_sitter_solidity.language())

log = logging.getLogger(__name__)


@dataclass
class SourceFile:
    """A parsed source file handed to the engine.

    The engine only borrows ``tree`` for the duration of one walk.
    """

    path: str
    text: str
    tree: Any
    source_bytes: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.source_bytes = self.text.encode("utf-8")

    @property
    def root(self) -> Any:
        return self.tree.root_node

    def node_text(self, node: Any) -> str:
        """Decode the exact source text covered by ``node``."""

        return self.source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def location(self, node: Any, snippet: bool = True) -> Location:
        """Build a 1-indexed Location for ``node``; the column counts characters."""

        row, byte_column = node.start_point[0], node.start_point[1]
        line_start = node.start_byte - byte_column
        prefix = self.source_bytes[line_start:node.start_byte].decode("utf-8", errors="replace")
        return Location(
            file=self.path,
            line=row + 1,
            column=len(prefix) + 1,
            snippet=self.node_text(node) if snippet else None,
        )


def create_solidity_parser() -> tree_sitter.Parser:
    return tree_sitter.Parser(SOLIDITY_LANGUAGE)


def iter_nodes(root: Any) -> Iterator[Any]:
    """Iterative preorder traversal of the syntax tree."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _first_error_line(root: Any) -> Optional[int]:
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
    return None


def parse_source(path: str, text: str, parser: Optional[tree_sitter.Parser] = None) -> SourceFile:
    """Parse Solidity ``text``; raise SourceParseError when the tree has syntax errors."""

    parser = parser or create_solidity_parser()
    tree = parser.parse(text.encode("utf-8"))
    if tree.root_node.has_error:
        raise SourceParseError(path, _first_error_line(tree.root_node))
    return SourceFile(path=path, text=text, tree=tree)


def load_sources(paths: Iterable[str], exclude: Iterable[str] = ()) -> List[SourceFile]:
    """Discover, read and parse ``*.sol`` files; unreadable or unparsable files are skipped."""

    paths = list(paths)
    missing = [path for path in paths if not Path(path).exists()]
    if missing:
        raise ConfigError(f"Scope path(s) not found: {', '.join(str(path) for path in missing)}")

    parser = create_solidity_parser()
    sources: List[SourceFile] = []
    for path in iter_code_files(paths, extensions=(".sol",), exclude=exclude):
        try:
            text = read_text_file(path)
        except UnicodeDecodeError as exc:
            log.warning("Skipping %s: not valid UTF-8 (%s)", path, exc)
            continue
        try:
            sources.append(parse_source(str(path), text, parser=parser))
        except SourceParseError as exc:
            log.warning("Skipping %s: %s", path, exc)
            continue
        log.debug("parsed %s", path)
    return sources
