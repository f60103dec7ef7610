# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import re
from typing import Any, Dict, List

from ...core.exceptions import EXIT_USAGE, Fatal
from .groups import COMMANDS
from .helpers import _merged_cmd, _merged_get, _require


def _missing(args: argparse.Namespace, conf: Dict[str, Any], keys: List[str]) -> List[str]:
    return [k for k in keys if not _require(_merged_get(args, conf, k))]


def _flag(key: str) -> str:
    return "--" + key.replace("_", "-")


def _validate_port(value: Any, flag: str) -> None:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise Fatal(EXIT_USAGE, f"{flag} must be an integer, got {value!r}")
    if not 1 <= port <= 65535:
        raise Fatal(EXIT_USAGE, f"{flag} out of range: {port}")


def validate_args(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    """
    Check the merged (config + CLI) settings before any connection is made.
    Raises Fatal(code=2) with a message naming the offending flag.
    """
    cmd = _merged_cmd(args, conf)
    if not cmd:
        raise Fatal(EXIT_USAGE, f"No operation selected: pass --cmd or set `cmd:` in YAML ({', '.join(COMMANDS)})")
    if cmd not in COMMANDS:
        raise Fatal(EXIT_USAGE, f"Unknown cmd {cmd!r}; expected one of: {', '.join(COMMANDS)}")
    args.cmd = cmd

    required = ["vcenter", "vc_user", "zvm", "zvm_user"]
    if cmd == "drain-host":
        required += ["source_host", "target_host"]
    else:
        required += ["cluster"]

    missing = _missing(args, conf, required)
    if missing:
        raise Fatal(EXIT_USAGE, f"{cmd}: missing required setting(s): {', '.join(_flag(k) for k in missing)}")

    _validate_port(_merged_get(args, conf, "vc_port"), "--vc-port")
    _validate_port(_merged_get(args, conf, "zvm_port"), "--zvm-port")

    if cmd == "drain-host":
        src = str(_merged_get(args, conf, "source_host")).strip()
        dst = str(_merged_get(args, conf, "target_host")).strip()
        if src.casefold() == dst.casefold():
            raise Fatal(EXIT_USAGE, f"--source-host and --target-host must differ (both are {src})")
        poll = getattr(args, "poll_interval", None)
        if poll is not None and float(poll) < 0:
            raise Fatal(EXIT_USAGE, f"--poll-interval must be >= 0, got {poll}")

    pattern = _merged_get(args, conf, "appliance_pattern")
    if _require(pattern):
        try:
            re.compile(str(pattern))
        except re.error as e:
            raise Fatal(EXIT_USAGE, f"--appliance-pattern is not a valid regex: {e}")
