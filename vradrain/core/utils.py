# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/core/utils.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union


class U:
    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return repr(obj)

    @staticmethod
    def pct(done: int, total: int) -> float:
        if total <= 0:
            return 100.0
        return (float(done) / float(total)) * 100.0

    @staticmethod
    def write_json_atomic(path: Union[str, Path], obj: Any, *, logger: Optional[logging.Logger] = None) -> Path:
        """
        Write ``obj`` as pretty JSON via temp file + os.replace so a crash
        never leaves a truncated report behind.
        """
        fp = Path(path).expanduser().resolve()
        fp.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{fp.name}.", dir=str(fp.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(U.json_dump(obj))
                f.write("\n")
            os.replace(tmp, fp)
        except OSError:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        if logger is not None:
            logger.info("Report written: %s", fp)
        return fp
