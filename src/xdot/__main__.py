# xdot - symlink dotfiles from package directories
# Copyright (C) 2025 xdot contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from xdot.cli import main

main()
