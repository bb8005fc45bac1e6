"""
Core logic for promptbuilder package: errors, file entries and the tree walk.
"""

from __future__ import annotations

import glob
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pathspec
from colorama import Fore, Style

# Exceptions
class PromptBuilderError(Exception): ...
class UserError(PromptBuilderError): ...
class ConfigFileError(PromptBuilderError): ...


class FilesystemError(PromptBuilderError):
    """Base for read/write/canonicalize failures."""


class ReadError(FilesystemError):
    def __init__(self, detail: object) -> None:
        super().__init__(f"Failed to read file: {detail}")


class WriteError(FilesystemError):
    def __init__(self, detail: object) -> None:
        super().__init__(f"Failed to write file: {detail}")


class ParseError(PromptBuilderError):
    def __init__(self, detail: object) -> None:
        super().__init__(f"Failed to parse state file: {detail}")


class WalkError(PromptBuilderError):
    def __init__(self, detail: object) -> None:
        super().__init__(f"Failed file walker: {detail}")


# Defaults & helpers
IGNORE_FILENAMES: Tuple[str, ...] = (".gitignore", ".ignore")  # later file wins
ALWAYS_EXCLUDED: List[str] = ["*.lock"]
ALWAYS_EXCLUDED_SPEC = pathspec.PathSpec.from_lines("gitwildmatch", ALWAYS_EXCLUDED)

_GLOB_CHARS = frozenset("*?[")


def log(msg: str, color: str = "") -> None:
    """Write a ``[promptbuilder]`` diagnostic line to stderr."""
    if color:
        sys.stderr.write(f"{color}[promptbuilder] {msg}{Style.RESET_ALL}\n")
    else:
        sys.stderr.write(f"[promptbuilder] {msg}\n")


def warn(msg: str) -> None:
    sys.stderr.write(f"{Fore.YELLOW}{msg}{Style.RESET_ALL}\n")


@dataclass
class FileEntry:
    relative_path: str
    absolute_path: Path

    @classmethod
    def from_path(cls, path: str) -> "FileEntry":
        """Build an entry for *path*, resolving symlinks. The file must exist."""
        try:
            absolute = Path(path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ReadError(e) from e
        return cls(relative_path=path, absolute_path=absolute)

    def to_dict(self) -> Dict[str, str]:
        return {
            "relative_path": self.relative_path,
            "absolute_path": str(self.absolute_path),
        }


# Ignore-file utilities
def _compile(lines: Sequence[str], source: str) -> "pathspec.PathSpec":
    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", lines)
    except ValueError as e:  # GitWildMatchPatternError
        raise WalkError(f"invalid pattern in '{source}': {e}") from e


def load_ignore_spec(directory: str) -> Optional["pathspec.PathSpec"]:
    """Compile the ignore files of *directory*, or ``None`` if it has none."""
    lines: List[str] = []
    sources: List[str] = []
    for name in IGNORE_FILENAMES:
        ignore_path = os.path.join(directory, name)
        if not os.path.isfile(ignore_path):
            continue
        try:
            with open(ignore_path, "r", encoding="utf-8") as fh:
                lines.extend(fh.read().splitlines())
        except (OSError, UnicodeDecodeError) as e:
            raise WalkError(f"could not read ignore file '{ignore_path}': {e}") from e
        sources.append(ignore_path)
    if not sources:
        return None
    return _compile(lines, ", ".join(sources))


def load_extra_patterns(config_path: Path) -> "pathspec.PathSpec":
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            lines = [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    return _compile(lines, str(config_path))


# A rule set bound to the directory its patterns are relative to.
_Rules = List[Tuple[str, "pathspec.PathSpec"]]


def _match_status(spec: "pathspec.PathSpec", rel: str) -> Optional[bool]:
    """True if ignored, False if re-included by a negation, None if unmatched."""
    status = None
    for pattern in spec.patterns:
        if pattern.include is not None and pattern.match_file(rel):
            status = pattern.include
    return status


def is_ignored(path: str, rules: _Rules, is_dir: bool = False) -> bool:
    """Check *path* against hierarchical *rules*, deepest directory first."""
    abs_path = os.path.abspath(path)
    for base, spec in reversed(rules):
        rel = os.path.relpath(abs_path, base).replace(os.sep, "/")
        if is_dir:
            rel += "/"
        status = _match_status(spec, rel)
        if status is not None:
            return status
    return False


def _parent_rules(root: str) -> _Rules:
    """Ignore rules from the ancestors of *root* up to the enclosing repository."""
    ancestors: List[str] = []
    current = os.path.dirname(os.path.abspath(root))
    while True:
        ancestors.append(current)
        if os.path.exists(os.path.join(current, ".git")):
            break
        parent = os.path.dirname(current)
        if parent == current:
            # not inside a repository: parents contribute nothing
            return []
        current = parent

    rules: _Rules = []
    for directory in reversed(ancestors):
        spec = load_ignore_spec(directory)
        if spec is not None:
            rules.append((directory, spec))
    return rules


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _is_lock_file(path: str) -> bool:
    return ALWAYS_EXCLUDED_SPEC.match_file(os.path.basename(path))


# File discovery
def expand_roots(patterns: Sequence[str]) -> List[str]:
    """Turn command-line arguments into existing paths to walk."""
    roots: List[str] = []
    for pattern in patterns:
        if os.path.lexists(pattern):
            roots.append(pattern)
            continue
        if _GLOB_CHARS.intersection(pattern):
            matches = sorted(glob.glob(pattern, recursive=True))
            if matches:
                roots.extend(matches)
                continue
        raise WalkError(f"{pattern}: No such file or directory")
    return roots


def _walk_root(
    root: str,
    extra_spec: Optional["pathspec.PathSpec"],
    verbose: bool,
) -> List[str]:
    if not os.path.isdir(root):
        if os.path.isfile(root) and not _is_lock_file(root):
            return [root]
        if verbose:
            log(f"- Skipping {root}", Fore.YELLOW)
        return []

    def _on_error(err: OSError) -> None:
        raise WalkError(err)

    abs_root = os.path.abspath(root)

    def _extra_ignored(path: str, is_dir: bool) -> bool:
        if extra_spec is None:
            return False
        rel = os.path.relpath(os.path.abspath(path), abs_root).replace(os.sep, "/")
        return extra_spec.match_file(rel + "/" if is_dir else rel)

    found: List[str] = []
    inherited: Dict[str, _Rules] = {root: _parent_rules(root)}
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        rules = inherited.pop(dirpath, [])
        own = load_ignore_spec(dirpath)
        if own is not None:
            rules = rules + [(os.path.abspath(dirpath), own)]

        kept_dirs = []
        for name in dirnames:
            sub = os.path.join(dirpath, name)
            if (
                _is_hidden(name)
                or _is_lock_file(sub)
                or is_ignored(sub, rules, is_dir=True)
                or _extra_ignored(sub, is_dir=True)
            ):
                if verbose:
                    log(f"- Pruning {sub}")
                continue
            inherited[sub] = rules
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for name in filenames:
            path = os.path.join(dirpath, name)
            if (
                _is_hidden(name)
                or _is_lock_file(path)
                or is_ignored(path, rules)
                or _extra_ignored(path, is_dir=False)
            ):
                continue
            if os.path.isfile(path):
                found.append(path)
    return found


def walk_files(
    patterns: Sequence[str],
    extra_spec: Optional["pathspec.PathSpec"] = None,
    verbose: bool = False,
) -> List[str]:
    """
    Collect regular files under every path in *patterns*.

    ``patterns[0]`` is the traversal root; the remaining entries are walked in
    the same pass. Hidden entries, paths matched by ``.gitignore``/``.ignore``
    rules (or *extra_spec*) and ``*.lock`` files are left out. The order is the
    walk order.
    """
    if not patterns:
        raise WalkError("no paths given")

    found: List[str] = []
    for root in expand_roots(patterns):
        if verbose:
            log(f"Scanning {root} …")
        found.extend(_walk_root(root, extra_spec, verbose))

    if verbose:
        log(f"{len(found)} files found.")
    return found
