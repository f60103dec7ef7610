# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/config/config_loader.py
from __future__ import annotations

import argparse
import glob
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.exceptions import Fatal


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _normalize_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    # YAML authors write either "source-host" or "source_host"; argparse dests use "_".
    out: Dict[str, Any] = {}
    for k, v in d.items():
        key = str(k).strip().replace("-", "_")
        out[key] = _normalize_keys(v) if isinstance(v, dict) else v
    return out


class Config:
    @staticmethod
    def expand_configs(logger: logging.Logger, cfgs: Sequence[str]) -> List[Path]:
        """
        Expand ~, env vars and globs. Order is preserved; a glob expands in
        sorted order. Missing files are fatal.
        """
        out: List[Path] = []
        for raw in cfgs:
            s = os.path.expandvars(os.path.expanduser(str(raw)))
            matches = sorted(glob.glob(s)) if any(ch in s for ch in "*?[") else [s]
            if not matches:
                raise Fatal(2, f"Config glob matched nothing: {raw}")
            for m in matches:
                p = Path(m)
                if not p.is_file():
                    raise Fatal(2, f"Config file not found: {p}")
                out.append(p.resolve())
        logger.debug("Config files: %s", ", ".join(str(p) for p in out) or "-")
        return out

    @staticmethod
    def load_one(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise Fatal(2, f"Cannot read config {path}: {e}")

        try:
            if path.suffix.lower() == ".json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as e:
            raise Fatal(2, f"Invalid config {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise Fatal(2, f"Config {path} must be a mapping at top level, got {type(data).__name__}")
        logger.debug("Loaded config %s (%d keys)", path, len(data))
        return _normalize_keys(data)

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        """Later files override earlier ones; nested mappings are merged."""
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_one(logger, Path(p)))
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Push config values into the parser as defaults so explicit CLI flags
        still win. Keys with no matching argparse dest are ignored (logged).
        """
        dests = {a.dest for a in parser._actions}  # noqa: SLF001
        known = {k: v for k, v in conf.items() if k in dests}
        unknown = sorted(k for k in conf if k not in dests)
        if unknown:
            logger.debug("Config keys without a CLI flag (kept in conf only): %s", ", ".join(unknown))
        parser.set_defaults(**known)
