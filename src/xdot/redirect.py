# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Resolution of redirected package entries.

A top-level package entry named ``@KEY`` is not linked into the destination
root. Its children are merged into the directory named by KEY instead: the
value of KEY in the override mapping (normally the process environment), or,
for the XDG base directory variables, the conventional default location
under the home directory.
"""

from __future__ import annotations

import functools
import os
from typing import Mapping

from xdot.types import XdotRedirectError
from xdot.util import debug

XDG_DEFAULTS = {
    "XDG_DATA_HOME": ".local/share",
    "XDG_STATE_HOME": ".local/state",
    "XDG_CACHE_HOME": ".cache",
    "XDG_CONFIG_HOME": ".config",
}


def default_redirects(home: str) -> dict[str, str]:
    """Return the XDG default directories for the given home directory."""
    return {key: os.path.join(home, rel) for key, rel in XDG_DEFAULTS.items()}


def resolve_redirect(
    key: str, overrides: Mapping[str, str], defaults: Mapping[str, str]
) -> str:
    """Resolve a redirect key to a directory.

    Args:
        key: The entry name with the redirect marker stripped
        overrides: Explicit key -> directory mapping, consulted first
        defaults: Fallback mapping for the well-known keys

    Raises:
        XdotRedirectError: if the key is in neither mapping, or the
            override is not an absolute path
    """
    if value := overrides.get(key):
        if not os.path.isabs(value):
            raise XdotRedirectError(
                key, f"Environment variable `{key}` is not an absolute path: {value}"
            )
        debug(3, 1, f"redirect {key} => {value} (override)")
        return value

    if key in defaults:
        debug(3, 1, f"redirect {key} => {defaults[key]} (default)")
        return defaults[key]

    raise XdotRedirectError(key)


class RedirectResolver:
    """Resolves redirect keys for one run.

    The default directories are computed once, on first use.
    """

    def __init__(self, home: str, overrides: Mapping[str, str]):
        self.home = home
        self.overrides = overrides

    @functools.cached_property
    def defaults(self) -> dict[str, str]:
        return default_redirects(self.home)

    def resolve(self, key: str) -> str:
        return resolve_redirect(key, self.overrides, self.defaults)
