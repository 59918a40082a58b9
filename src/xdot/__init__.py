# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
xdot - symlink your dotfiles from package directories

Each package is a directory under the package root (``~/.xdot`` by default)
whose tree is mirrored onto the destination root with symbolic links.
Top-level entries named ``@VAR`` have their contents linked into the
directory named by VAR instead (for example ``@XDG_CONFIG_HOME``).

Basic usage::

    from xdot import link, unlink

    # Link packages
    result = link("zsh", "nvim", dir="/home/user/.xdot", target="/")
    if not result.success:
        print("Failed:", result.failures)

    # Remove the links again
    result = unlink("nvim", dir="/home/user/.xdot", target="/")

With configuration reuse::

    import os
    from xdot import link, XdotConfig

    config = XdotConfig(dir="/home/user/.xdot", home="/home/user", overrides=os.environ)
    link("pkg1", config=config)
    link("pkg2", config=config)

Dry run::

    result = link("pkg", dir="/home/user/.xdot", simulate=True)
    print("Would perform:", result.mutations)
"""

from xdot.linker import link, unlink, discover_packages
from xdot.redirect import resolve_redirect, RedirectResolver
from xdot.types import (
    Task,
    TaskAction,
    XdotConfig,
    XdotResult,
    XdotError,
    XdotCLIError,
    XdotRedirectError,
    XdotConflictError,
    XdotIOError,
    XdotProgrammingError,
)
from xdot.util import VERSION as __version__, same_object

# CLI entry point
from xdot.cli import main

__all__ = [
    "link",
    "unlink",
    "discover_packages",
    "resolve_redirect",
    "RedirectResolver",
    "same_object",
    "Task",
    "TaskAction",
    "XdotConfig",
    "XdotResult",
    "XdotError",
    "XdotCLIError",
    "XdotRedirectError",
    "XdotConflictError",
    "XdotIOError",
    "XdotProgrammingError",
    "__version__",
    "main",
]
