# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Type definitions for xdot.

This module contains the enums, dataclasses and exceptions that define the
core data structures used throughout xdot.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


class TaskAction(Enum):
    """Actions that can be performed on destination nodes."""

    CREATE = "create"
    REMOVE = "remove"
    SKIP = "skip"


@dataclass(slots=True)
class Task:
    """
    A deferred filesystem operation.

    Tasks are queued while a package is planned and executed only after the
    whole package has been planned without conflicts.
    """

    action: TaskAction
    path: str
    source: Optional[str] = None  # The symlink destination (absolute)


@dataclass(frozen=True)
class XdotConfig:
    """
    Configuration for a link/unlink run.

    Attributes:
        dir: The package root containing one directory per package
        target: The destination root for entries without a redirect marker
        home: Home directory, used for the XDG default directories
        verbose: Verbosity level (0-4)
        unlink: If True, remove matching links instead of creating them
        simulate: If True, don't make filesystem changes (dry run)
        overrides: Redirect key -> directory mapping (usually os.environ)
        test_mode: Test mode (debug output to stdout instead of stderr)
    """

    dir: str
    target: str = "/"
    home: Optional[str] = None
    verbose: int = 0
    unlink: bool = False
    simulate: bool = False
    overrides: Mapping[str, str] = field(default_factory=dict)
    test_mode: bool = False

    @property
    def home_dir(self) -> str:
        """Home directory, defaulting to the parent of the package root."""
        return self.home or os.path.dirname(os.path.abspath(self.dir))


@dataclass
class XdotResult:
    """
    Outcome of a link/unlink run.

    Attributes:
        tasks: Tasks performed (or, when simulating, that would be performed)
        failures: Package name -> error message for packages that failed
    """

    tasks: list[Task] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def mutations(self) -> list[Task]:
        """Tasks that change the filesystem (everything except skips)."""
        return [t for t in self.tasks if t.action != TaskAction.SKIP]


class XdotError(Exception):
    """Base error for xdot. ``errno`` is used as the process exit status."""

    def __init__(self, message: str, errno: int = 1):
        super().__init__(message)
        self.message = message
        self.errno = errno


class XdotCLIError(XdotError):
    """Invalid invocation or configuration, raised before touching files."""

    def __init__(self, message: str, errno: int = 2):
        super().__init__(message, errno)


class XdotRedirectError(XdotError):
    """A redirect key could not be resolved to a directory."""

    def __init__(self, key: str, message: Optional[str] = None):
        super().__init__(
            message or f"Unable to find environment variable `{key}`"
        )
        self.key = key


class XdotConflictError(XdotError):
    """Something unrelated already exists where a link is needed."""

    def __init__(self, path: str, message: Optional[str] = None):
        super().__init__(message or f"{path} already exists")
        self.path = path


class XdotIOError(XdotError):
    """Unexpected filesystem failure on ``path``."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class XdotProgrammingError(XdotError):
    """Internal invariant violated. This is a bug."""
