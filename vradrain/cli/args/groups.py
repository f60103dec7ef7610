# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse

from ...core.naming import DEFAULT_APPLIANCE_PATTERN
from ...orchestrator.drain import DEFAULT_POLL_INTERVAL_S
from ...replication.client import DEFAULT_PORT as ZVM_DEFAULT_PORT
from ...replication.client import DEFAULT_TIMEOUT_S as ZVM_DEFAULT_TIMEOUT_S

COMMANDS = ("drain-host", "rebalance-cluster")


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Global config/logging (two-phase parse relies on these)
    # ------------------------------------------------------------------
    from ... import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged normalized config and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv trace")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Quieter: -q warnings, -qq errors")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON log lines.")


def _add_project_control(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--cmd",
        dest="cmd",
        default=None,
        help=f"Operation (normally from YAML `cmd:`): {', '.join(COMMANDS)}",
    )


def _add_global_operation_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Enumerate and print the plan; make no reassignment, maintenance or power calls.",
    )
    p.add_argument(
        "--report-json",
        dest="report_json",
        default=None,
        help="Write the run result (per-phase counts and failures) to this JSON file.",
    )
    p.add_argument("--no-progress", dest="no_progress", action="store_true", help="Disable progress output.")
    p.add_argument(
        "--appliance-pattern",
        dest="appliance_pattern",
        default=DEFAULT_APPLIANCE_PATTERN,
        help="Regex matching replication appliance VM names (never migrated, only powered off).",
    )


def _add_vsphere_core_knobs(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("vSphere / vCenter")
    g.add_argument("--vcenter", dest="vcenter", default=None, help="vCenter hostname or IP.")
    g.add_argument("--vc-port", dest="vc_port", type=int, default=443)
    g.add_argument("--vc-user", dest="vc_user", default=None)
    g.add_argument("--vc-password", dest="vc_password", default=None, help="Prefer --vc-password-env.")
    g.add_argument("--vc-password-env", dest="vc_password_env", default=None, help="Env var holding the vCenter password.")
    g.add_argument("--vc-insecure", dest="vc_insecure", action="store_true", help="Skip TLS verification.")
    g.add_argument("--vc-timeout", dest="vc_timeout", type=float, default=None, help="Socket timeout in seconds.")


def _add_zvm_knobs(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Replication manager (ZVM)")
    g.add_argument("--zvm", dest="zvm", default=None, help="Replication manager hostname or IP.")
    g.add_argument("--zvm-port", dest="zvm_port", type=int, default=ZVM_DEFAULT_PORT)
    g.add_argument("--zvm-user", dest="zvm_user", default=None)
    g.add_argument("--zvm-password", dest="zvm_password", default=None, help="Prefer --zvm-password-env.")
    g.add_argument("--zvm-password-env", dest="zvm_password_env", default=None, help="Env var holding the ZVM password.")
    g.add_argument("--zvm-insecure", dest="zvm_insecure", action="store_true", help="Skip TLS verification.")
    g.add_argument("--zvm-timeout", dest="zvm_timeout", type=float, default=ZVM_DEFAULT_TIMEOUT_S)


def _add_drain_knobs(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("drain-host")
    g.add_argument("--source-host", dest="source_host", default=None, help="Host to drain.")
    g.add_argument("--target-host", dest="target_host", default=None, help="Host that takes over protection.")
    g.add_argument(
        "--maintenance",
        dest="maintenance",
        action="store_true",
        help="After migrating, enter maintenance mode, wait for the host to empty and power off its appliances.",
    )
    g.add_argument(
        "--poll-interval",
        dest="poll_interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL_S,
        help="Seconds between guest-list polls while waiting for the host to drain.",
    )


def _add_rebalance_knobs(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("rebalance-cluster")
    g.add_argument("--cluster", dest="cluster", default=None, help="Cluster whose hosts share the workloads.")
