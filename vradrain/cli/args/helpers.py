# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/cli/args/helpers.py
from __future__ import annotations

import argparse
import getpass
import os
import sys
from typing import Any, Dict, Optional


def _require(v: Any) -> bool:
    """True if v is meaningfully present (treats empty/whitespace-only strings as missing)."""
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip() != ""
    return True


def _merged_get(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> Any:
    """
    Prefer CLI override if present (non-empty), else config.
    """
    v = getattr(args, key, None)
    if _require(v):
        return v
    return conf.get(key)


def _merged_secret(args: argparse.Namespace, conf: Dict[str, Any], value_key: str, env_key: str) -> Optional[str]:
    """
    Resolve a secret from (CLI value) or (CLI env var name) or (YAML value) or (YAML env var name).
    Example: (vc_password, vc_password_env)
    """
    direct = _merged_get(args, conf, value_key)
    if _require(direct):
        return str(direct)

    envname = _merged_get(args, conf, env_key)
    if _require(envname):
        return os.environ.get(str(envname), None)

    return None


def _merged_cmd(args: argparse.Namespace, conf: Dict[str, Any]) -> Optional[str]:
    for v in (getattr(args, "cmd", None), conf.get("cmd"), conf.get("command")):
        if _require(v):
            return str(v).strip()
    return None


def _prompt_secret(label: str) -> Optional[str]:
    """Ask on the terminal; None when stdin is not interactive."""
    try:
        interactive = sys.stdin.isatty()
    except (AttributeError, ValueError):
        interactive = False
    if not interactive:
        return None
    return getpass.getpass(f"{label}: ")


def resolve_password(
    args: argparse.Namespace,
    conf: Dict[str, Any],
    value_key: str,
    env_key: str,
    label: str,
) -> Optional[str]:
    return _merged_secret(args, conf, value_key, env_key) or _prompt_secret(label)
