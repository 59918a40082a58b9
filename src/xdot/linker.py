# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Core link operations - merge package trees into the filesystem.

This module provides the public API for linking and unlinking packages,
as well as the internal _Linker class that handles planning and execution.
"""

from __future__ import annotations

import dataclasses
import os
import stat
import sys
from typing import Sequence

from xdot.redirect import RedirectResolver
from xdot.types import (
    Task,
    TaskAction,
    XdotCLIError,
    XdotConfig,
    XdotConflictError,
    XdotError,
    XdotIOError,
    XdotProgrammingError,
    XdotResult,
)
from xdot.util import (
    PROGRAM_NAME,
    debug,
    report,
    same_object,
    set_debug_level,
    set_test_mode,
    strip_redirect_marker,
)


# =============================================================================
# Public API
# =============================================================================


def link(
    *package_names: str,
    config: XdotConfig | None = None,
    **kwargs,
) -> XdotResult:
    """Link packages into the destination tree.

    Args:
        *package_names: Names of packages to link (in the package root)
        config: Optional XdotConfig for configuration
        **kwargs: Override config fields (dir, target, simulate, etc.)

    Returns:
        XdotResult with the tasks performed and any per-package failures
    """
    cfg = _make_config(config, **kwargs)
    return _Linker(cfg).run(package_names)


def unlink(
    *package_names: str,
    config: XdotConfig | None = None,
    **kwargs,
) -> XdotResult:
    """Remove the links that linking the packages would create.

    Only symlinks that resolve to the exact package file are removed.

    Args:
        *package_names: Names of packages to unlink
        config: Optional XdotConfig for configuration
        **kwargs: Override config fields (dir, target, simulate, etc.)

    Returns:
        XdotResult with the tasks performed and any per-package failures
    """
    kwargs["unlink"] = True
    cfg = _make_config(config, **kwargs)
    return _Linker(cfg).run(package_names)


def discover_packages(package_dir: str) -> list[str]:
    """Return the names of all packages in the package root.

    Every immediate subdirectory is a package, except hidden ones.
    """
    try:
        listing = os.listdir(package_dir)
    except OSError as e:
        raise XdotIOError(
            package_dir, f"cannot read directory: {package_dir} ({e.strerror})"
        ) from e

    return sorted(
        name
        for name in listing
        if not name.startswith(".")
        and os.path.isdir(os.path.join(package_dir, name))
    )


def _make_config(config: XdotConfig | None, **kwargs) -> XdotConfig:
    """Create an XdotConfig from optional base config and overrides."""
    if config is None:
        if "dir" not in kwargs:
            raise XdotCLIError("No package directory specified")
        return XdotConfig(**kwargs)
    elif kwargs:
        return dataclasses.replace(config, **kwargs)
    else:
        return config


# =============================================================================
# Internal Linker class
# =============================================================================


class _Linker:
    """
    Internal class that manages state during link/unlink planning and execution.

    Each package is planned completely before any of its tasks are executed,
    so a conflict anywhere in a package leaves its destination untouched.
    """

    def __init__(self, config: XdotConfig):
        self.c = config
        self.dir = os.path.abspath(config.dir)
        self.target = os.path.abspath(config.target)
        self.redirects = RedirectResolver(config.home_dir, config.overrides)

        set_debug_level(config.verbose)
        set_test_mode(config.test_mode)
        debug(2, 0, f"package dir is {self.dir}")
        debug(2, 0, f"destination root is {self.target}")

        # Per-package planning state
        self.tasks: list[Task] = []
        self.link_task_for: dict[str, Task] = {}

        # Tasks executed so far, across packages
        self.performed: list[Task] = []

    def run(self, packages: Sequence[str]) -> XdotResult:
        """Plan and execute each package in turn.

        A package that fails is reported and skipped; the remaining packages
        are still processed.
        """
        if not packages:
            raise XdotCLIError("No packages specified")

        if self.c.simulate:
            print("Dry run mode, no changes will be made.")

        failures: dict[str, str] = {}
        for package in packages:
            try:
                self.plan_package(package)
                self.process_tasks()
            except XdotProgrammingError:
                raise
            except XdotError as e:
                print(f"{PROGRAM_NAME}: ERROR: {package}: {e.message}", file=sys.stderr)
                failures[package] = e.message

        return XdotResult(tasks=list(self.performed), failures=failures)

    def plan_package(self, package: str) -> None:
        """Plan link or unlink tasks for every entry of one package."""
        self.tasks = []
        self.link_task_for = {}

        if not package or package in (".", "..") or "/" in package:
            raise XdotError(f"Invalid package name: `{package}`")

        pkg_path = os.path.join(self.dir, package)
        if not os.path.isdir(pkg_path):
            raise XdotError(
                f"The package directory {self.dir} does not contain package {package}"
            )

        verb = "Unlinking" if self.c.unlink else "Linking"
        report(f"{verb} config for `{package}` ({pkg_path})")

        try:
            listing = os.listdir(pkg_path)
        except OSError as e:
            raise XdotIOError(
                pkg_path, f"Unable to read package content: {pkg_path} ({e.strerror})"
            ) from e

        debug(2, 0, f"Planning package {package}...")
        for node in sorted(listing):
            source = os.path.join(pkg_path, node)
            key = strip_redirect_marker(node)

            if key is None:
                self.link_node(source, os.path.join(self.target, node))
                continue

            if os.path.islink(source) or not os.path.isdir(source):
                raise XdotConflictError(
                    source, f"redirected entry {source} is not a directory"
                )
            destination = self.redirects.resolve(key)
            # A missing redirect target holds nothing to unlink
            if not self.c.unlink and not os.path.isdir(destination):
                raise XdotIOError(
                    destination,
                    f"redirect target for `{node}` is not a directory: {destination}",
                )
            debug(2, 1, f"Redirecting contents of {node} to {destination}")
            self.link_contents(source, destination)
        debug(2, 0, f"Planning package {package}... done")

    def link_contents(self, source_dir: str, destination_dir: str) -> None:
        """Merge the children of ``source_dir`` into ``destination_dir``.

        Note: link_node() and link_contents() are mutually recursive."""
        try:
            listing = os.listdir(source_dir)
        except OSError as e:
            raise XdotIOError(
                source_dir, f"Unable to descend into {source_dir} ({e.strerror})"
            ) from e

        for node in sorted(listing):
            self.link_node(
                os.path.join(source_dir, node), os.path.join(destination_dir, node)
            )

    def link_node(self, source: str, destination: str) -> None:
        """Link ``source`` at ``destination``, or merge into an existing directory.

        Note: link_node() and link_contents() are mutually recursive."""
        debug(3, 0, f"Linking entry {source} at {destination}")

        if destination in self.link_task_for:
            planned = self.link_task_for[destination]
            if planned.source != source:
                raise XdotConflictError(
                    destination,
                    f"{destination} is already planned to link to {planned.source}",
                )
            debug(3, 1, f"{destination} duplicates previous action")
            return

        if same_object(destination, source):
            if not self.c.unlink:
                self._note(f"Skipping preexisting symlink: {destination}")
                self._add_task(TaskAction.SKIP, destination, source)
            elif os.path.islink(destination):
                self._add_task(TaskAction.REMOVE, destination, source)
            else:
                raise XdotConflictError(
                    destination,
                    f"{destination} is not a symlink to {source}, refusing to remove it",
                )
            return

        try:
            st = os.stat(destination)
        except FileNotFoundError:
            st = None
        except OSError as e:
            raise XdotIOError(
                destination, f"Unable to read metadata of {destination} ({e.strerror})"
            ) from e

        if st is None:
            self._link_missing_node(source, destination)
        elif not stat.S_ISDIR(st.st_mode):
            raise XdotConflictError(destination)
        elif os.path.islink(source) or not os.path.isdir(source):
            raise XdotConflictError(
                destination,
                f"cannot link non-directory {source} over existing directory {destination}",
            )
        else:
            self._note(f"Descending into preexisting directory: {destination}")
            self.link_contents(source, destination)

    def _link_missing_node(self, source: str, destination: str) -> None:
        """Handle a destination that does not resolve to anything."""
        if self.c.unlink:
            self._note(f"Skipping non-existent file: {destination}")
            self._add_task(TaskAction.SKIP, destination, source)
        elif os.path.islink(destination):
            raise XdotConflictError(
                destination, f"{destination} is a broken symlink"
            )
        else:
            self._add_task(TaskAction.CREATE, destination, source)

    def _note(self, msg: str) -> None:
        """Report a skip or descent, only when verbose."""
        if self.c.verbose >= 1:
            report(msg)

    def _add_task(self, action: TaskAction, path: str, source: str) -> None:
        debug(3, 1, f"{action.value.upper()}: {path} => {source}")
        task = Task(action=action, path=path, source=source)
        self.tasks.append(task)
        self.link_task_for[path] = task

    def process_tasks(self) -> None:
        """Process each task of the planned package."""
        debug(2, 0, "Processing tasks...")
        for task in self.tasks:
            self._process_task(task)
            self.performed.append(task)
        debug(2, 0, "Processing tasks... done")

    def _process_task(self, task: Task) -> None:
        """Report a single task and, unless simulating, perform it."""
        match task.action:
            case TaskAction.CREATE:
                report(f"{task.path} => {task.source}", self.c.simulate)
                if self.c.simulate:
                    return
                try:
                    os.symlink(task.source, task.path)
                except OSError as e:
                    raise XdotIOError(
                        task.path,
                        f"Unable to symlink {task.path} => {task.source} ({e.strerror})",
                    ) from e

            case TaskAction.REMOVE:
                report(f"Removing symlink: {task.path}", self.c.simulate)
                if self.c.simulate:
                    return
                try:
                    os.unlink(task.path)
                except OSError as e:
                    raise XdotIOError(
                        task.path,
                        f"Unable to remove symlink {task.path} ({e.strerror})",
                    ) from e

            case TaskAction.SKIP:
                pass

            case _:
                raise XdotProgrammingError(f"bad task action: {task.action.value}")
