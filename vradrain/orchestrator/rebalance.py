# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/orchestrator/rebalance.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Set

from ..core.exceptions import PreconditionError, QueryError
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..core.models import Host, ProtectionAssignment, RebalancePlan, RebalanceResult
from ..core.naming import AppliancePolicy
from ..replication.directory import ReplicationDirectory
from ..vmware.topology import ClusterTopology
from .progress import NoopProgressReporter, ProgressReporter


class ClusterRebalancer:
    """
    Spread every protected workload of a cluster evenly over its connected
    hosts.

    The assignment list is walked once with a single cursor; assignment ``i``
    goes to ``hosts[i % len(hosts)]``. Each host therefore ends up with
    floor(n/m) or ceil(n/m) workloads. The cursor is shared by the whole list,
    so the walk does not try to minimise the number of moves.
    """

    def __init__(
        self,
        logger: logging.Logger,
        directory: ReplicationDirectory,
        topology: ClusterTopology,
        *,
        policy: Optional[AppliancePolicy] = None,
        progress: Optional[ProgressReporter] = None,
        dry_run: bool = False,
    ) -> None:
        self.logger = logger
        self.directory = directory
        self.topology = topology
        self.policy = policy or AppliancePolicy()
        self.progress = progress or NoopProgressReporter()
        self.dry_run = bool(dry_run)

    def rebalance_cluster(self, cluster: str) -> RebalanceResult:
        cluster = (cluster or "").strip()
        if not cluster:
            raise PreconditionError(code=2, msg="Cluster name must not be empty")

        result = RebalanceResult(cluster=cluster, dry_run=self.dry_run)
        log = Log.bind(self.logger, cluster=cluster)
        Log.banner(log, f"Rebalance {cluster}{' (dry-run)' if self.dry_run else ''}")

        try:
            hosts = self.topology.list_connected_hosts(cluster)
        except QueryError as e:
            result.aborted = result.record_failure(cluster, str(e), "resolve_hosts")
            Log.fail(log, f"Could not resolve hosts of {cluster}; nothing to rebalance: {e}")
            return result

        result.hosts = [h.name for h in hosts]
        log.info("%d connected host(s): %s", len(hosts), ", ".join(result.hosts) or "-")

        plan = self.build_plan(cluster, hosts, result, log)
        result.total = len(plan)
        if not plan.hosts:
            Log.warn(log, f"No connected hosts in {cluster}; nothing to rebalance")
        else:
            self._round_robin_assign(plan, result, log)

        self._log_summary(result, log)
        return result

    def build_plan(self, cluster: str, hosts: List[Host], result: RebalanceResult, log: Any) -> RebalancePlan:
        """
        Concatenate (host, workload) pairs in host order, then in the order
        the replication manager returned them. A host whose query fails stays
        in the round-robin sequence but contributes no assignments. A workload
        reported more than once keeps its first position.
        """
        assignments: List[ProtectionAssignment] = []
        seen: Set[str] = set()
        for host in hosts:
            try:
                workloads = self.directory.list_workloads_protected_by(host)
            except QueryError as e:
                result.record_failure(host.name, str(e), "enumerate")
                Log.warn(log, f"Could not list workloads protected by {host.name}: {e}", host=host.name)
                continue
            for w in workloads:
                if self.policy.is_infrastructure_appliance(w.name):
                    Log.warn(log, f"Ignoring appliance {w.name} reported as a protected workload")
                    continue
                if w.name in seen:
                    Log.warn(log, f"Ignoring duplicate report of {w.name} on {host.name}", workload=w.name)
                    continue
                seen.add(w.name)
                assignments.append(ProtectionAssignment(workload=w, protecting_host=host))
            log.debug("%s protects %d workload(s)", host.name, len(workloads))
        return RebalancePlan(cluster=cluster, hosts=tuple(hosts), assignments=tuple(assignments))

    def _round_robin_assign(self, plan: RebalancePlan, result: RebalanceResult, log: Any) -> None:
        total = len(plan)
        if total == 0:
            log.info("No protected workloads in %s", plan.cluster)
            return

        with log_step(log, f"Distributing {total} workload(s) over {len(plan.hosts)} host(s)"):
            self.progress.start(f"Rebalancing {plan.cluster}", total)
            try:
                for assignment, target in plan.targets():
                    w = assignment.workload
                    current = assignment.protecting_host
                    result.mapping.append((w.name, target.name))
                    ok = True

                    if current == target:
                        result.already_placed += 1
                        log.debug("%s already on %s", w.name, target.name)
                    elif self.dry_run:
                        Log.step(log, f"[dry-run] would reassign {w.name}: {current.name} → {target.name}")
                    else:
                        try:
                            self.directory.reassign_protecting_host(w, current, target)
                            result.moved += 1
                        except QueryError as e:
                            ok = False
                            result.record_failure(w.name, str(e), "reassign")
                            Log.warn(log, f"Failed to reassign {w.name} {current.name} → {target.name}: {e}", workload=w.name)

                    result.processed += 1
                    self.progress.advance(w.name, ok)
            finally:
                self.progress.finish()

    def _log_summary(self, result: RebalanceResult, log: Any) -> None:
        Log.banner(log, "Rebalance summary")
        log.info(
            "processed=%d moved=%d already_placed=%d failed=%d",
            result.processed,
            result.moved,
            result.already_placed,
            len(result.failures),
        )
        for f in result.failures:
            Log.warn(log, f"{f.phase}: {f.item}: {f.reason}")
        if result.ok:
            Log.ok(log, f"{result.cluster} balanced over {len(result.hosts)} host(s)")
