# SPDX-License-Identifier: LGPL-3.0-or-later
#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import sys
import traceback
from typing import Optional

from vradrain.cli.args.parser import parse_args_with_config
from vradrain.core.exceptions import EXIT_INTERRUPTED, Fatal, VraDrainError, format_exception_for_cli
from vradrain.orchestrator.orchestrator import Orchestrator


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger, level: str, msg: str) -> None:
    """
    Best-effort logging without assuming logger exists or has a given method.
    """
    if logger is None:
        _print_stderr(msg)
        return

    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def main(argv: Optional[list] = None) -> None:
    logger: Optional[object] = None

    # Phase 1: parse (Fatal can happen here)
    try:
        args, conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        _print_stderr(f"💥 ERROR    {format_exception_for_cli(e)}")
        raise SystemExit(getattr(e, "code", 1))
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        raise SystemExit(EXIT_INTERRUPTED)

    verbose = int(getattr(args, "verbose", 0) or 0)

    # Phase 2: run
    try:
        rc = Orchestrator(logger, args, conf).run()
    except VraDrainError as e:
        # Fatal, precondition and connection errors all carry their exit code.
        _safe_log(logger, "error", format_exception_for_cli(e, verbose=verbose))
        rc = getattr(e, "code", 1)
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = EXIT_INTERRUPTED
    except Exception as e:
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = 1

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
