# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Command-line interface for xdot.

This module contains the CLI functions including argument parsing,
configuration file handling, and the main entry point.
"""

from __future__ import annotations

import os
import re
import shlex
import sys
import traceback
from typing import Sequence

from xdot.linker import _Linker, discover_packages
from xdot.types import XdotCLIError, XdotConfig, XdotError, XdotProgrammingError
from xdot.util import PROGRAM_NAME, VERSION, get_homedir_from_passwd, home_directory

RC_FILE = ".xdotrc"
DIR_ENV_VAR = "XDOT_DIR"
DEFAULT_DIR = ".xdot"


def main() -> None:
    """Main entry point for xdot command."""
    try:
        _main()
    except XdotProgrammingError as e:
        print(
            f"\n{PROGRAM_NAME}: INTERNAL ERROR: {e.message}\n{traceback.format_exc()}",
            file=sys.stderr,
        )
        print(
            "This _is_ a bug. Please submit a bug report so we can fix it!",
            file=sys.stderr,
        )
        sys.exit(e.errno)
    except XdotError as e:
        print(f"{PROGRAM_NAME}: ERROR: {e.message}", file=sys.stderr)
        sys.exit(e.errno)


def _main() -> None:
    """Main implementation (can raise XdotError)."""
    home = home_directory()
    if not home:
        raise XdotCLIError("$HOME is not set")

    options, packages = process_options(sys.argv[1:], home)

    config = XdotConfig(
        dir=options["dir"],
        target=options.get("target", "/"),
        home=home,
        verbose=options.get("verbose", 0),
        unlink=options.get("unlink", False),
        simulate=options.get("simulate", False),
        overrides=os.environ,
    )

    result = _Linker(config).run(packages)
    if not result.success:
        sys.exit(1)


def process_options(args: Sequence[str], home: str) -> tuple[dict, list[str]]:
    """Parse and process command line and .xdotrc options.

    Returns: (options, packages)
    """
    cli_options, cli_packages = parse_cli_options(args)
    rc_options, rc_packages = get_config_file_options(home)

    # Command line options win over .xdotrc ones
    options = dict(rc_options)
    options.update(cli_options)
    packages = cli_packages or rc_packages

    sanitize_path_options(options, home)

    if options.get("all"):
        packages = discover_packages(options["dir"])
    check_packages(packages)

    return (options, [package.rstrip("/") for package in packages])


def _parse_bundled_options(chars: str, options: dict) -> None:
    """Parse bundled short options like -nvD."""
    for i, char in enumerate(chars):
        rest = chars[i + 1:]
        match char:
            case "n":
                options["simulate"] = True
            case "D":
                options["unlink"] = True
            case "a":
                options["all"] = True
            case "v":
                options["verbose"] = options.get("verbose", 0) + 1
            case "h":
                show_usage_and_exit()
            case "V":
                show_version_and_exit()
            case "d" | "t" if rest:
                options["dir" if char == "d" else "target"] = rest
                return
            case "d" | "t":
                show_usage_and_exit(f"Option {char} requires an argument")
            case _:
                show_usage_and_exit(f"Unknown option: {char}")


def parse_cli_options(args: Sequence[str]) -> tuple[dict, list[str]]:
    """Parse command line options.

    Returns: (options, packages)
    """
    options: dict = {}
    packages: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--":
            packages.extend(args[i + 1:])
            break

        # Options with values
        elif arg in ("-d", "--dir") and i + 1 < len(args):
            i += 1
            options["dir"] = args[i]
        elif arg.startswith("--dir="):
            options["dir"] = arg[6:]

        elif arg in ("-t", "--target") and i + 1 < len(args):
            i += 1
            options["target"] = args[i]
        elif arg.startswith("--target="):
            options["target"] = arg[9:]
        elif arg in ("--dir", "--target"):
            show_usage_and_exit(f"Option {arg[2:]} requires an argument")

        # Verbose option with optional value
        elif arg in ("-v", "--verbose"):
            options["verbose"] = options.get("verbose", 0) + 1
        elif arg.startswith("--verbose="):
            if not re.fullmatch(r"\d+", arg[10:]):
                show_usage_and_exit(f"Invalid verbosity level: {arg[10:]}")
            options["verbose"] = int(arg[10:])

        # Boolean flags
        elif arg in ("-n", "--dry-run", "--simulate"):
            options["simulate"] = True
        elif arg in ("-D", "--unlink"):
            options["unlink"] = True
        elif arg in ("-a", "--all"):
            options["all"] = True

        # Help and version
        elif arg in ("-h", "--help"):
            show_usage_and_exit()
        elif arg in ("-V", "--version"):
            show_version_and_exit()

        elif not arg.startswith("-") or arg == "-":
            packages.append(arg)

        elif arg.startswith("--"):
            opt_name = arg[2:].split("=", 1)[0]
            show_usage_and_exit(f"Unknown option: {opt_name}")

        else:
            # Bundled short options: -nv is parsed as -n -v
            _parse_bundled_options(arg[1:], options)

        i += 1

    return (options, packages)


def sanitize_path_options(options: dict, home: str) -> None:
    """Validate and set defaults for dir and target options."""
    if "dir" not in options:
        dir_env = os.environ.get(DIR_ENV_VAR)
        options["dir"] = dir_env if dir_env else os.path.join(home, DEFAULT_DIR)

    if not os.path.isdir(options["dir"]):
        raise XdotCLIError(f"--dir value '{options['dir']}' is not a valid directory")
    options["dir"] = os.path.abspath(options["dir"])

    if "target" in options:
        if not os.path.isdir(options["target"]):
            raise XdotCLIError(
                f"--target value '{options['target']}' is not a valid directory"
            )
        options["target"] = os.path.abspath(options["target"])


def check_packages(packages: Sequence[str]) -> None:
    """Validate package names."""
    if not packages:
        raise XdotCLIError("No packages specified")

    for package in packages:
        package = package.rstrip("/")
        if "/" in package:
            raise XdotCLIError("Slashes are not permitted in package names")


def get_config_file_options(home: str) -> tuple[dict, list[str]]:
    """Read default options from ~/.xdotrc, if there is one.

    Returns: (rc_options, rc_packages)
    """
    defaults: list[str] = []
    file_path = os.path.join(home, RC_FILE)

    try:
        with open(file_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                try:
                    defaults.extend(shlex.split(line))
                except ValueError:
                    defaults.extend(line.split())
    except (FileNotFoundError, PermissionError):
        pass
    except IsADirectoryError:
        raise XdotCLIError(f"Could not open {file_path} for reading")

    rc_options, rc_packages = parse_cli_options(defaults)

    if "target" in rc_options:
        rc_options["target"] = expand_filepath(rc_options["target"], "--target option")
    if "dir" in rc_options:
        rc_options["dir"] = expand_filepath(rc_options["dir"], "--dir option")

    return (rc_options, rc_packages)


def expand_filepath(path: str, source: str) -> str:
    """Expand environment variables and tilde in file paths."""
    path = expand_environment_variables(path, source)
    path = expand_tilde_to_homedir(path)
    return path


def expand_environment_variables(path: str, source: str) -> str:
    """Expand environment variables in path.

    Replace non-escaped $VAR and ${VAR} with os.environ[VAR].
    """

    def replace_var(match):
        var = match.group(1)
        try:
            return os.environ[var]
        except KeyError:
            raise XdotCLIError(
                f"{source} references undefined environment variable ${var}; aborting!"
            )

    path = re.sub(r"(?<!\\)\$\{([^}]+)}", replace_var, path)
    path = re.sub(r"(?<!\\)\$(\w+)", replace_var, path)
    path = path.replace("\\$", "$")

    return path


def expand_tilde_to_homedir(path: str) -> str:
    """Expand tilde to user's home directory path."""
    if "\\~" in path:
        return path.replace("\\~", "~")

    if not path.startswith("~"):
        return path

    # Split ~username/rest into parts
    tilde_part, slash, rest = path.partition("/")
    username = tilde_part.removeprefix("~")

    if username:
        home = get_homedir_from_passwd(username=username)
    else:
        home = home_directory()

    if not home:
        return path
    return home + slash + rest


def show_usage_and_exit(msg: str | None = None) -> None:
    """Print program usage message and exit."""
    if msg:
        print(f"{PROGRAM_NAME}: {msg}", file=sys.stderr)

    print(f"""Usage: {PROGRAM_NAME} [options] [--] package...
Symlink your dotfiles from `~/{DEFAULT_DIR}`.

Top-level package entries named @VAR are not linked themselves; their
contents are linked into the directory named by the environment variable
VAR (XDG_CONFIG_HOME, XDG_DATA_HOME, XDG_STATE_HOME and XDG_CACHE_HOME
fall back to their standard locations).

Options:
  -d DIR, --dir=DIR     Set package dir to DIR (default is $XDOT_DIR or ~/{DEFAULT_DIR})
  -t DIR, --target=DIR  Link entries into DIR (default is /)
  -a, --all             Process every package in the package dir
  -D, --unlink          Remove symlinks.
  -n, --dry-run         Don't modify the file system.
  -v, --verbose[=N]     Increase verbosity (-v adds 1; --verbose=N sets level)
  -h, --help            Show this help message and exit.
  -V, --version         Show version information and exit.""")

    sys.exit(2 if msg else 0)


def show_version_and_exit() -> None:
    """Print version and exit."""
    print(f"{PROGRAM_NAME} {VERSION}")
    sys.exit(0)


if __name__ == "__main__":
    main()
