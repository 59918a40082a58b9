"""
Pytest configuration for xdot tests.

Every test gets a scratch environment with its own home directory, package
root and destination root, so nothing outside the pytest temp dir is ever
touched.
"""

import os
import subprocess
import sys

import pytest

from xdot import XdotConfig, link, unlink


class XdotTestEnv:
    """Test environment for running xdot."""

    def __init__(self, tmpdir):
        self.tmpdir = str(tmpdir)
        self.home = os.path.join(self.tmpdir, "home")
        self.package_dir = os.path.join(self.home, ".xdot")
        self.target_dir = os.path.join(self.tmpdir, "target")
        os.makedirs(self.package_dir)
        os.makedirs(self.target_dir)

    def package_path(self, name, path=""):
        pkg_dir = os.path.join(self.package_dir, name)
        return os.path.join(pkg_dir, path) if path else pkg_dir

    def target_path(self, path):
        return os.path.join(self.target_dir, path)

    def create_package(self, name, files):
        """
        Create a package in the package directory.

        files: dict mapping relative paths to content (or None for directories)
        """
        pkg_dir = os.path.join(self.package_dir, name)
        os.makedirs(pkg_dir, exist_ok=True)

        for path, content in files.items():
            full_path = os.path.join(pkg_dir, path)
            os.makedirs(os.path.dirname(full_path), exist_ok=True)

            if content is None:
                os.makedirs(full_path, exist_ok=True)
            else:
                with open(full_path, "w") as f:
                    f.write(content)

    def create_target_file(self, path, content):
        """Create a file in the target directory."""
        full_path = self.target_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w") as f:
            f.write(content)

    def create_target_dir(self, path):
        """Create a directory in the target directory."""
        os.makedirs(self.target_path(path), exist_ok=True)

    def create_target_link(self, path, dest):
        """Create a symlink in the target directory."""
        full_path = self.target_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        os.symlink(dest, full_path)

    def get_filesystem_state(self, root=None):
        """
        Get a snapshot of a directory tree (the target directory by default).

        Returns a dict mapping paths to tuples:
        - ('dir', mode) for directories
        - ('file', content, mode) for files
        - ('link', target) for symlinks
        """
        root_dir = root or self.target_dir
        state = {}
        for root_path, dirs, files in os.walk(root_dir, followlinks=False):
            rel_root = os.path.relpath(root_path, root_dir)
            if rel_root == ".":
                rel_root = ""

            for name in sorted(dirs) + sorted(files):
                path = os.path.join(rel_root, name) if rel_root else name
                full_path = os.path.join(root_path, name)
                st = os.lstat(full_path)
                if os.path.islink(full_path):
                    state[path] = ("link", os.readlink(full_path))
                elif os.path.isdir(full_path):
                    state[path] = ("dir", st.st_mode)
                else:
                    with open(full_path, "r") as fh:
                        state[path] = ("file", fh.read(), st.st_mode)

        return state

    def config(self, **kwargs):
        kwargs.setdefault("overrides", {})
        return XdotConfig(
            dir=self.package_dir, target=self.target_dir, home=self.home, **kwargs
        )

    def link(self, *packages, **kwargs):
        return link(*packages, config=self.config(**kwargs))

    def unlink(self, *packages, **kwargs):
        return unlink(*packages, config=self.config(**kwargs))

    def run_xdot(self, args, env=None):
        """Run the xdot CLI and return (returncode, stdout, stderr)."""
        cmd = [sys.executable, "-m", "xdot"] + list(args)

        run_env = {
            key: value
            for key, value in os.environ.items()
            if not key.startswith("XDG_") and key != "XDOT_DIR"
        }
        run_env["HOME"] = self.home
        if env:
            run_env.update(env)

        proc = subprocess.run(
            cmd,
            capture_output=True,
            cwd=self.tmpdir,
            env=run_env,
        )
        stdout_str = proc.stdout.decode("utf-8", errors="replace")
        stderr_str = proc.stderr.decode("utf-8", errors="replace")
        return proc.returncode, stdout_str, stderr_str


@pytest.fixture
def xdot_env(tmp_path):
    """Create a fresh xdot test environment."""
    return XdotTestEnv(tmp_path)


def check_link(env, path, dest):
    """Assert that path (relative to target) is a symlink to dest."""
    full_path = env.target_path(path)
    assert os.path.islink(full_path), f"{path} should be a symlink"
    assert os.readlink(full_path) == dest, f"{path} => {os.readlink(full_path)}, expected {dest}"


def check_dir(env, path):
    """Assert that path (relative to target) is a real directory."""
    full_path = env.target_path(path)
    assert os.path.isdir(full_path) and not os.path.islink(full_path), (
        f"{path} should be a directory"
    )


def check_file(env, path, content):
    """Assert that path (relative to target) is a regular file with content."""
    full_path = env.target_path(path)
    assert os.path.isfile(full_path) and not os.path.islink(full_path), (
        f"{path} should be a regular file"
    )
    with open(full_path) as f:
        assert f.read() == content


def check_not_exists(env, path):
    """Assert that path (relative to target) does not exist."""
    full_path = env.target_path(path)
    assert not os.path.lexists(full_path), f"{path} should not exist"


def task_summary(result):
    """Reduce the tasks of a result to comparable tuples."""
    return [(t.action, t.path, t.source) for t in result.tasks]
