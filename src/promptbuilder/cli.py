"""
CLI entrypoint for promptbuilder package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import init as colorama_init

from . import __version__
from .commands import handle_add, handle_clear, handle_info, handle_list, handle_print
from .config import Settings, resolve_state_path
from .core import PromptBuilderError, load_extra_patterns, log
from .state import load


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="promptbuilder",
        description="Track project files and print their contents for LLM prompts.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--state",
        help="State file to use (default: $PROMPTBUILDER_STATE or the config dir)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = p.add_subparsers(dest="command", metavar="COMMAND", required=True)

    add = sub.add_parser("add", help="Adds files to the state")
    add.add_argument(
        "files",
        nargs="+",
        help="Directory, file or glob to walk; the first one is the traversal root",
    )
    add.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )

    lst = sub.add_parser("list", help="Lists the files currently in the state")
    lst.add_argument(
        "-l", "--long", action="store_true", help="Show absolute paths too"
    )

    sub.add_parser("clear", help="Clears the state")
    sub.add_parser("print", help="Prints the file contents")
    sub.add_parser("info", help="Prints details about this application")
    return p.parse_args(argv)


def run(ns: argparse.Namespace) -> None:
    settings = Settings(
        state_path=resolve_state_path(ns.state),
        verbose=ns.verbose,
    )
    if ns.command == "info":
        handle_info(settings)
        return

    if settings.verbose:
        log(f"Using state {settings.state_path}")
    state = load(settings.state_path)

    if ns.command == "add":
        if ns.config:
            settings.extra_spec = load_extra_patterns(ns.config.resolve())
            if settings.verbose:
                log(f"Loaded extra patterns from {ns.config}")
        handle_add(
            state,
            ns.files,
            extra_spec=settings.extra_spec,
            verbose=settings.verbose,
        )
    elif ns.command == "list":
        handle_list(state, long=ns.long)
    elif ns.command == "clear":
        handle_clear(state)
    elif ns.command == "print":
        handle_print(state)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        colorama_init()
        run(ns)
    except PromptBuilderError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
