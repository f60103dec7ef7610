# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/cli/args/__init__.py
"""
Argument parsing for the vradrain CLI.
"""
from __future__ import annotations

from .builder import HelpFormatter
from .groups import COMMANDS
from .helpers import resolve_password
from .parser import build_parser, parse_args_with_config
from .validators import validate_args

__all__ = [
    "COMMANDS",
    "HelpFormatter",
    "build_parser",
    "parse_args_with_config",
    "resolve_password",
    "validate_args",
]
