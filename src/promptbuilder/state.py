"""
Persisted list of tracked files.

The backing file is a JSON object ``{"files": [...]}`` where each element holds
``relative_path`` and ``absolute_path``. The location itself is never stored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Set

from .core import FileEntry, ParseError, ReadError, WriteError


@dataclass
class State:
    path: Path
    files: List[FileEntry] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.files

    def to_json(self) -> str:
        return json.dumps(
            {"files": [entry.to_dict() for entry in self.files]}, indent=2
        )


def _parse_entries(document: Any) -> List[FileEntry]:
    if not isinstance(document, dict):
        raise ParseError("expected a JSON object at top level")
    # a document without "files" is read like an empty file
    raw_files = document.get("files", [])
    if not isinstance(raw_files, list):
        raise ParseError("'files' must be a list")

    entries: List[FileEntry] = []
    for idx, raw in enumerate(raw_files):
        if not isinstance(raw, dict):
            raise ParseError(f"entry {idx} is not an object")
        rel, absolute = raw.get("relative_path"), raw.get("absolute_path")
        if not isinstance(rel, str) or not isinstance(absolute, str):
            raise ParseError(
                f"entry {idx} needs string 'relative_path' and 'absolute_path'"
            )
        entries.append(FileEntry(relative_path=rel, absolute_path=Path(absolute)))
    return entries


def load(path: Path) -> State:
    """Read the state at *path*; a missing or blank file is an empty state."""
    path = Path(path)
    if not path.exists():
        return State(path=path)
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(e) from e
    if not contents.strip():
        return State(path=path)
    try:
        document = json.loads(contents)
    except json.JSONDecodeError as e:
        raise ParseError(e) from e
    return State(path=path, files=_parse_entries(document))


def save(state: State) -> None:
    """Overwrite the backing file, creating its parent directories first."""
    try:
        state.path.parent.mkdir(parents=True, exist_ok=True)
        state.path.write_text(state.to_json(), encoding="utf-8")
    except OSError as e:
        raise WriteError(e) from e


def add_entries(state: State, candidates: Iterable[str]) -> int:
    """
    Append candidate paths whose canonical path is not tracked yet.

    Each candidate is kept verbatim as ``relative_path``; a path that cannot
    be resolved raises :class:`ReadError` and *state* is left untouched.
    Returns the number of entries appended.
    """
    known: Set[Path] = {entry.absolute_path for entry in state.files}
    pending: List[FileEntry] = []
    for candidate in candidates:
        entry = FileEntry.from_path(candidate)
        if entry.absolute_path in known:
            continue
        known.add(entry.absolute_path)
        pending.append(entry)
    state.files.extend(pending)
    return len(pending)
