# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/orchestrator/orchestrator.py

from __future__ import annotations

import argparse
import logging
from contextlib import ExitStack
from typing import Any, Dict, Optional, Union

from ..cli.args.helpers import _merged_get, resolve_password
from ..core.cancel import CancellationToken, install_signal_handlers, restore_signal_handlers
from ..core.exceptions import EXIT_ABORTED, EXIT_USAGE, Fatal, QueryError
from ..core.logger import Log
from ..core.models import DrainResult, RebalanceResult
from ..core.naming import DEFAULT_APPLIANCE_PATTERN, AppliancePolicy
from ..core.utils import U
from ..replication.client import ZVMClient
from ..replication.directory import ReplicationDirectory
from ..vmware.client import VSphereClient
from ..vmware.topology import ClusterTopology, UnreachableTopology
from .drain import DEFAULT_POLL_INTERVAL_S, HostDrainOrchestrator
from .progress import create_progress_reporter
from .rebalance import ClusterRebalancer

Result = Union[DrainResult, RebalanceResult]


class Orchestrator:
    """
    Top-level run: resolve credentials, open both endpoints, dispatch the
    selected operation and write the report.
    """

    def __init__(self, logger: logging.Logger, args: argparse.Namespace, conf: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.args = args
        self.conf = conf or {}
        self.cancel = CancellationToken()
        self.result: Optional[Result] = None
        self.policy = AppliancePolicy()

        self.logger.debug(
            "🧠 Orchestrator init: cmd=%r dry_run=%r",
            getattr(args, "cmd", None),
            getattr(args, "dry_run", False),
        )

    def _get(self, key: str, default: Any = None) -> Any:
        v = _merged_get(self.args, self.conf, key)
        return default if v is None else v

    def _password(self, value_key: str, env_key: str, label: str) -> str:
        pw = resolve_password(self.args, self.conf, value_key, env_key, label)
        if not pw:
            flag = "--" + value_key.replace("_", "-")
            raise Fatal(EXIT_USAGE, f"{label} is required: pass {flag}, {flag}-env or run on a terminal to be prompted")
        return pw

    # Endpoint factories; tests replace these.

    def _open_directory(self) -> ZVMClient:
        return ZVMClient(
            self.logger,
            str(self._get("zvm")),
            str(self._get("zvm_user")),
            self._password("zvm_password", "zvm_password_env", "Replication manager password"),
            port=int(self._get("zvm_port")),
            insecure=bool(self._get("zvm_insecure", False)),
            timeout=self._get("zvm_timeout"),
        )

    def _open_topology(self) -> VSphereClient:
        return VSphereClient(
            self.logger,
            str(self._get("vcenter")),
            str(self._get("vc_user")),
            self._password("vc_password", "vc_password_env", "vCenter password"),
            port=int(self._get("vc_port", 443)),
            insecure=bool(self._get("vc_insecure", False)),
            timeout=self._get("vc_timeout"),
        )

    def _policy(self) -> AppliancePolicy:
        return AppliancePolicy(str(self._get("appliance_pattern", DEFAULT_APPLIANCE_PATTERN)))

    def _dispatch(self, directory: ReplicationDirectory, topology: ClusterTopology) -> Result:
        cmd = self.args.cmd
        dry_run = bool(self._get("dry_run", False))
        progress = create_progress_reporter(self.logger, show_progress=not self._get("no_progress", False))

        if cmd == "drain-host":
            drainer = HostDrainOrchestrator(
                self.logger,
                directory,
                topology,
                policy=self.policy,
                poll_interval_s=float(self._get("poll_interval", DEFAULT_POLL_INTERVAL_S)),
                progress=progress,
                cancel=self.cancel,
                dry_run=dry_run,
            )
            return drainer.drain_host(
                str(self._get("source_host")),
                str(self._get("target_host")),
                enter_maintenance=bool(self._get("maintenance", False)),
            )

        rebalancer = ClusterRebalancer(
            self.logger,
            directory,
            topology,
            policy=self.policy,
            progress=progress,
            dry_run=dry_run,
        )
        return rebalancer.rebalance_cluster(str(self._get("cluster")))

    def _write_report(self, result: Result) -> None:
        path = self._get("report_json")
        if not path:
            return
        try:
            U.write_json_atomic(path, result.to_jsonable(), logger=self.logger)
        except OSError as e:
            raise Fatal(1, f"Cannot write report {path}: {e}")

    def _enter_topology(self, stack: ExitStack) -> ClusterTopology:
        """
        A drain does not need vSphere until the maintenance phase, so a failed
        connect there degrades to recorded failures. A rebalance cannot start
        without the host list and still aborts.
        """
        endpoint = self._open_topology()
        try:
            return stack.enter_context(endpoint)
        except QueryError as e:
            if self.args.cmd != "drain-host":
                raise
            Log.warn(self.logger, f"vSphere unavailable, maintenance steps will fail: {e}")
            return UnreachableTopology(e)

    def run(self) -> int:
        previous = install_signal_handlers(self.cancel, self.logger)
        try:
            self.policy = self._policy()
            self.logger.debug("Appliance pattern: %s", self.policy.pattern)

            with ExitStack() as stack:
                directory = stack.enter_context(self._open_directory())
                topology = self._enter_topology(stack)
                result = self._dispatch(directory, topology)
        finally:
            restore_signal_handlers(previous)

        self.result = result
        self._write_report(result)

        if isinstance(result, RebalanceResult) and result.aborted is not None:
            Log.fail(self.logger, f"Rebalance of {result.cluster} aborted: {result.aborted.reason}")
            return EXIT_ABORTED
        if not result.ok:
            Log.warn(self.logger, f"Completed with {len(result.failures)} item failure(s)")
        return 0
