# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Utility functions for xdot.

This module contains general-purpose utilities used throughout xdot,
including diagnostics output, path identity and redirect-marker handling.
"""

from __future__ import annotations

import os
import pwd
import sys
from typing import Optional

VERSION = "0.3.0"
PROGRAM_NAME = "xdot"

# Prefix of top-level package entries whose children go to a redirected dir
REDIRECT_MARKER = "@"

# Debug level and test mode are module-level state
_debug_level = 0
_test_mode = False


def set_debug_level(level: int) -> None:
    """Set verbosity level for debug()."""
    global _debug_level
    _debug_level = level


def set_test_mode(on_or_off: bool) -> None:
    """Set test mode on or off."""
    global _test_mode
    _test_mode = bool(on_or_off)


def debug(level: int, *args) -> None:
    """
    Log to STDERR based on debug_level setting.

    Verbosity rules:
        0: errors and actions only
        >= 1: (skips and descents are reported on stdout instead)
        >= 2: planning of packages and entries
        >= 3: redirect resolution, per-node trace
        >= 4: identity checks

    Supports two calling conventions:
        debug(level, msg)
        debug(level, indent_level, msg)
    """
    if len(args) >= 2 and isinstance(args[0], int):
        indent_level = args[0]
        msg = args[1]
    elif len(args) >= 1:
        indent_level = 0
        msg = args[0]
    else:
        return

    if _debug_level >= level:
        indent = "    " * indent_level
        if _test_mode:
            print(f"# {indent}{msg}")
        else:
            print(f"{indent}{msg}", file=sys.stderr)


def report(msg: str, simulate: bool = False) -> None:
    """Print a user-facing action line to stdout."""
    if simulate:
        msg = f"DRY RUN: {msg}"
    print(msg, flush=True)


def node_identity(path: str) -> Optional[tuple[int, int]]:
    """
    Return the (device, inode) pair of ``path``, following symlinks.

    Returns None if the path cannot be stat'ed for any reason.
    """
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_dev, st.st_ino)


def same_object(path_a: str, path_b: str) -> bool:
    """
    Check whether two paths denote the same filesystem object.

    Absence (or unreadability) of either path is not an error, the paths
    are simply not the same object.
    """
    id_a = node_identity(path_a)
    if id_a is None:
        debug(4, 2, f"same_object: {path_a} does not exist")
        return False
    id_b = node_identity(path_b)
    debug(4, 2, f"same_object: {path_a} {id_a} vs {path_b} {id_b}")
    return id_a == id_b


def strip_redirect_marker(name: str) -> Optional[str]:
    """
    Return the redirect key of a top-level entry name.

    If the name starts with the redirect marker, returns the rest of the
    name (the marker is removed exactly once). Otherwise returns None.
    """
    if name.startswith(REDIRECT_MARKER):
        return name[len(REDIRECT_MARKER):]
    return None


def get_homedir_from_passwd(username: str | None = None) -> str | None:
    try:
        if username is not None:
            return pwd.getpwnam(username).pw_dir
        return pwd.getpwuid(os.getuid()).pw_dir
    except KeyError:
        return None


def home_directory() -> str | None:
    """Find the invoking user's home directory ($HOME, else passwd)."""
    return os.environ.get("HOME") or get_homedir_from_passwd()
