"""
Command handlers: add, list, clear, print and info.

Every handler writes its report to *out* and raises a
:class:`~promptbuilder.core.PromptBuilderError` on failure.
"""

from __future__ import annotations

import sys
from typing import Optional, Sequence, TextIO

import pathspec
from colorama import Fore

from .config import Settings
from .core import ReadError, UserError, log, walk_files
from .state import State, add_entries, save


def handle_add(
    state: State,
    files: Sequence[str],
    extra_spec: Optional["pathspec.PathSpec"] = None,
    verbose: bool = False,
    out: Optional[TextIO] = None,
) -> int:
    out = out or sys.stdout
    candidates = walk_files(files, extra_spec=extra_spec, verbose=verbose)
    added = add_entries(state, candidates)
    if added > 0:
        save(state)
        if verbose:
            log(f"Saved {len(state.files)} entries to {state.path}", Fore.GREEN)
        out.write(f"{added} file(s) added successfully.\n")
    else:
        out.write("No new files added.\n")
    return added


def handle_list(state: State, long: bool = False, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    if state.is_empty():
        out.write("No files have been added yet.\n")
        return
    out.write("Files in state:\n")
    for entry in state.files:
        if long:
            out.write(f"- {entry.relative_path} ({entry.absolute_path})\n")
        else:
            out.write(f"- {entry.relative_path}\n")


def handle_clear(state: State, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    state.files.clear()
    save(state)
    out.write("State cleared.\n")


def handle_print(state: State, out: Optional[TextIO] = None) -> None:
    """Dump every tracked file inside ``<files>``; stop at the first unreadable one."""
    out = out or sys.stdout
    if state.is_empty():
        raise UserError("No files to print!")

    out.write("<files>\n")
    for entry in state.files:
        try:
            with entry.absolute_path.open("r", encoding="utf-8", newline="") as fh:
                contents = fh.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(e) from e
        out.write(f'<file path="{entry.relative_path}">\n')
        out.write(f"{contents}\n")
        out.write("</file>\n")
    out.write("</files>\n")


def handle_info(settings: Settings, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    out.write(f"State path: {settings.state_path}\n")
