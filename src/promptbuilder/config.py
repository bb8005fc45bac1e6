"""
Where the state lives, resolved once per invocation and passed in.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import pathspec

from .core import warn

ENV_STATE_PATH = "PROMPTBUILDER_STATE"
STATE_FILENAME = "state.json"
FALLBACK_STATE_PATH = Path(STATE_FILENAME)

# organization / application identifiers of the config directory
QUALIFIER = "org"
ORGANIZATION = "sweb"
APPLICATION = "PromptBuilder"


@dataclass
class Settings:
    state_path: Path
    verbose: bool = False
    extra_spec: Optional["pathspec.PathSpec"] = None


def _home(env: Mapping[str, str]) -> Optional[Path]:
    home = env.get("HOME") or env.get("USERPROFILE")
    if home and os.path.isabs(home):
        return Path(home)
    # no usable variable: ask the account database (pwd on POSIX)
    home = os.path.expanduser("~")
    if home != "~" and os.path.isabs(home):
        return Path(home)
    return None


def config_dir(
    env: Mapping[str, str] = os.environ,
    platform: str = sys.platform,
) -> Optional[Path]:
    """Per-OS application config directory, or ``None`` if it can't be told."""
    if platform.startswith("win"):
        appdata = env.get("APPDATA")
        if not appdata:
            return None
        return Path(appdata) / ORGANIZATION / APPLICATION / "config"

    home = _home(env)
    if platform == "darwin":
        if home is None:
            return None
        return (
            home / "Library" / "Application Support"
            / f"{QUALIFIER}.{ORGANIZATION}.{APPLICATION}"
        )

    xdg = env.get("XDG_CONFIG_HOME", "")
    if os.path.isabs(xdg):
        return Path(xdg) / APPLICATION.lower()
    if home is None:
        return None
    return home / ".config" / APPLICATION.lower()


def resolve_state_path(
    override: Optional[str] = None,
    env: Mapping[str, str] = os.environ,
    platform: str = sys.platform,
) -> Path:
    """
    Pick the state file: *override*, then ``$PROMPTBUILDER_STATE``, then the
    config directory. Falls back to ``./state.json`` with a warning.
    """
    if override:
        return Path(override).expanduser()
    from_env = env.get(ENV_STATE_PATH)
    if from_env:
        return Path(from_env).expanduser()

    directory = config_dir(env, platform)
    if directory is None:
        warn(
            "Warning: Could not determine config directory. "
            "Using current directory for state"
        )
        return FALLBACK_STATE_PATH
    return directory / STATE_FILENAME
