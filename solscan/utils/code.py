"""Source code helper utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Iterable


def _is_excluded(path: Path, excluded: tuple[Path, ...]) -> bool:
    for candidate in excluded:
        if path == candidate or candidate in path.parents:
            return True
    return False


def iter_code_files(
    root_paths: Iterable[str],
    extensions: tuple[str, ...] = (".sol",),
    exclude: Iterable[str] = (),
) -> Generator[Path, None, None]:
    """Yield code files beneath the provided paths in a stable, sorted order."""

    excluded = tuple(Path(item).resolve() for item in exclude)
    seen = set()
    for root in root_paths:
        root_path = Path(root)
        candidates = [root_path] if root_path.is_file() else sorted(root_path.rglob("*"))
        for path in candidates:
            if path.suffix not in extensions or not path.is_file():
                continue
            resolved = path.resolve()
            if resolved in seen or _is_excluded(resolved, excluded):
                continue
            seen.add(resolved)
            yield path
