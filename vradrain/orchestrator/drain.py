# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/orchestrator/drain.py
"""
Host drain: move every workload protected by a source host to a target host,
then optionally put the source into maintenance mode, wait for its guests to
leave and power off the replication appliances left on it.

Phases run strictly in order and each item is attempted once. Item failures
are recorded in the DrainResult and never abort the run. Running two drains
(or a drain and a rebalance) against overlapping hosts at the same time is
not coordinated here; callers must serialize such runs themselves.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Union

from ..core.cancel import CancellationToken, ensure_token
from ..core.exceptions import PreconditionError, QueryError
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..core.models import DrainPlan, DrainResult, Host
from ..core.naming import AppliancePolicy
from ..replication.directory import ReplicationDirectory
from ..vmware.topology import ClusterTopology
from .progress import NoopProgressReporter, ProgressReporter

DEFAULT_POLL_INTERVAL_S = 10.0

HostLike = Union[str, Host]


def _as_host(h: HostLike, what: str) -> Host:
    name = h.name if isinstance(h, Host) else str(h or "")
    name = name.strip()
    if not name:
        raise PreconditionError(code=2, msg=f"{what} host must not be empty")
    return h if isinstance(h, Host) and h.name == name else Host(name=name)


class HostDrainOrchestrator:
    def __init__(
        self,
        logger: logging.Logger,
        directory: ReplicationDirectory,
        topology: ClusterTopology,
        *,
        policy: Optional[AppliancePolicy] = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        progress: Optional[ProgressReporter] = None,
        cancel: Optional[CancellationToken] = None,
        dry_run: bool = False,
    ) -> None:
        if poll_interval_s < 0:
            raise ValueError(f"Invalid poll interval: {poll_interval_s}")
        self.logger = logger
        self.directory = directory
        self.topology = topology
        self.policy = policy or AppliancePolicy()
        self.poll_interval_s = float(poll_interval_s)
        self.progress = progress or NoopProgressReporter()
        self.cancel = ensure_token(cancel)
        self.dry_run = bool(dry_run)

    def drain_host(self, source: HostLike, target: HostLike, enter_maintenance: bool = False) -> DrainResult:
        src = _as_host(source, "Source")
        dst = _as_host(target, "Target")
        if src.name.casefold() == dst.name.casefold():
            raise PreconditionError(
                code=2,
                msg=f"Source and target host must differ (both are {src.name})",
                context={"source": src.name, "target": dst.name},
            )

        result = DrainResult(
            source=src.name,
            target=dst.name,
            enter_maintenance=bool(enter_maintenance),
            dry_run=self.dry_run,
        )
        log = Log.bind(self.logger, source=src.name, target=dst.name)
        Log.banner(log, f"Drain {src.name} → {dst.name}{' (dry-run)' if self.dry_run else ''}")

        plan = self._enumerate_workloads(src, dst, result, log)
        self._migrate_each(plan, result, log)

        if not enter_maintenance:
            for phase in (result.maintenance, result.wait_for_drain, result.shutdown_appliances):
                phase.skip("maintenance mode not requested")
        elif self.dry_run:
            for phase in (result.maintenance, result.wait_for_drain, result.shutdown_appliances):
                phase.skip("dry run")
            Log.step(log, f"[dry-run] would put {src.name} into maintenance mode and power off its appliances")
        elif not self._enter_maintenance(src, result, log):
            result.wait_for_drain.skip("maintenance request failed")
            result.shutdown_appliances.skip("maintenance request failed")
        elif not self._wait_for_drain(src, result, log):
            result.shutdown_appliances.skip("drain wait cancelled")
        else:
            self._shutdown_appliances(src, result, log)

        self._log_summary(result, log)
        return result

    # Phases

    def _enumerate_workloads(self, src: Host, dst: Host, result: DrainResult, log: Any) -> DrainPlan:
        phase = result.enumeration
        try:
            workloads = self.directory.list_workloads_protected_by(src)
        except QueryError as e:
            phase.record_failure(src.name, str(e))
            Log.warn(log, f"Could not list workloads protected by {src.name}: {e}")
            return DrainPlan(source=src, target=dst)
        phase.record_ok()

        relocatable = []
        for w in workloads:
            if self.policy.is_infrastructure_appliance(w.name):
                Log.warn(log, f"Ignoring appliance {w.name} reported as a protected workload")
                continue
            relocatable.append(w)

        plan = DrainPlan.build(src, dst, relocatable)
        result.plan = [w.name for w in plan.workloads]
        log.info("%d workload(s) protected by %s", len(plan), src.name)
        return plan

    def _migrate_each(self, plan: DrainPlan, result: DrainResult, log: Any) -> None:
        phase = result.migrate
        if not plan.workloads:
            phase.skip("no workloads")
            log.info("Nothing to migrate off %s", plan.source.name)
            return
        if self.dry_run:
            phase.skip("dry run")
            for w in plan.workloads:
                Log.step(log, f"[dry-run] would reassign {w.name}: {plan.source.name} → {plan.target.name}")
            return

        total = len(plan)
        with log_step(log, f"Migrating {total} workload(s) to {plan.target.name}"):
            self.progress.start(f"Migrating workloads off {plan.source.name}", total)
            try:
                for w in plan.workloads:
                    ok = True
                    try:
                        self.directory.reassign_protecting_host(w, plan.source, plan.target)
                        phase.record_ok()
                    except QueryError as e:
                        ok = False
                        phase.record_failure(w.name, str(e))
                        Log.warn(log, f"Failed to reassign {w.name}: {e}", workload=w.name)
                    self.progress.advance(w.name, ok)
            finally:
                self.progress.finish()

    def _enter_maintenance(self, src: Host, result: DrainResult, log: Any) -> bool:
        phase = result.maintenance
        try:
            self.topology.set_maintenance_mode(src)
        except QueryError as e:
            phase.record_failure(src.name, str(e))
            Log.warn(log, f"Maintenance mode request for {src.name} failed: {e}")
            return False
        phase.record_ok()
        Log.ok(log, f"Maintenance mode requested for {src.name}")
        return True

    def _wait_for_drain(self, src: Host, result: DrainResult, log: Any) -> bool:
        """
        Poll the guest list on ``src`` until only appliances remain.

        There is no timeout: the loop ends when the filtered list is empty or
        the cancellation token fires. Failed polls are recorded and retried
        after the same interval.
        """
        phase = result.wait_for_drain
        remaining = []
        Log.step(log, f"Waiting for {src.name} to drain (poll every {self.poll_interval_s:g}s)")
        while True:
            if self.cancel.cancelled:
                return self._drain_cancelled(src, result, remaining, log)

            result.polls += 1
            try:
                names = self.topology.list_guest_vms(src)
            except QueryError as e:
                phase.record_failure(src.name, f"poll {result.polls}: {e}")
                Log.warn(log, f"Guest listing on {src.name} failed (poll {result.polls}): {e}")
            else:
                remaining = self.policy.workloads(names)
                if not remaining:
                    phase.record_ok()
                    Log.ok(log, f"{src.name} drained after {result.polls} poll(s)")
                    return True
                log.info("%d guest(s) still on %s: %s", len(remaining), src.name, ", ".join(remaining))

            if self.cancel.sleep(self.poll_interval_s):
                return self._drain_cancelled(src, result, remaining, log)

    def _drain_cancelled(self, src: Host, result: DrainResult, remaining: list, log: Any) -> bool:
        result.cancelled = True
        reason = self.cancel.reason or "cancelled"
        result.wait_for_drain.record_failure(
            src.name, f"{reason} with {len(remaining)} guest(s) still on the host"
        )
        Log.warn(log, f"Drain wait on {src.name} cancelled ({reason}); appliances left running")
        return False

    def _shutdown_appliances(self, src: Host, result: DrainResult, log: Any) -> None:
        phase = result.shutdown_appliances
        try:
            names = self.topology.list_guest_vms(src)
        except QueryError as e:
            phase.record_failure(src.name, str(e))
            Log.warn(log, f"Could not list appliances on {src.name}: {e}")
            return

        appliances = self.policy.appliances(names)
        if not appliances:
            log.info("No appliances running on %s", src.name)
            return

        self.progress.start(f"Powering off appliances on {src.name}", len(appliances))
        try:
            for vm in appliances:
                ok = True
                try:
                    self.topology.shutdown_guest(vm)
                    phase.record_ok()
                    Log.ok(log, f"Powered off {vm}")
                except QueryError as e:
                    ok = False
                    phase.record_failure(vm, str(e))
                    Log.warn(log, f"Failed to power off {vm}: {e}", vm=vm)
                self.progress.advance(vm, ok)
        finally:
            self.progress.finish()

    def _log_summary(self, result: DrainResult, log: Any) -> None:
        Log.banner(log, "Drain summary")
        for p in result.phases():
            if p.skipped:
                log.info("%-20s skipped (%s)", p.name, p.skip_reason)
            else:
                log.info("%-20s %d ok, %d failed", p.name, p.succeeded, p.failed)
        for f in result.failures:
            Log.warn(log, f"{f.phase}: {f.item}: {f.reason}")
        if result.ok:
            Log.ok(log, f"Migrated {result.migrated}/{len(result.plan)} workload(s) off {result.source}")
        else:
            Log.warn(log, f"Completed with {len(result.failures)} failure(s); migrated {result.migrated}/{len(result.plan)}")
