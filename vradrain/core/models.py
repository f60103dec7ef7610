# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/core/models.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .naming import AppliancePolicy

CONNECTED = "connected"


@dataclass(frozen=True)
class Workload:
    """A replicated VM. Identity is the VM name."""

    name: str
    identifier: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Host:
    name: str
    connection_state: str = field(default=CONNECTED, compare=False)

    @property
    def connected(self) -> bool:
        return self.connection_state == CONNECTED

    def is_infrastructure_appliance(self, policy: AppliancePolicy) -> bool:
        return policy.is_infrastructure_appliance(self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ProtectionAssignment:
    workload: Workload
    protecting_host: Host


@dataclass(frozen=True)
class DrainPlan:
    """Workloads protected by ``source`` at the start of a drain run."""

    source: Host
    target: Host
    workloads: Tuple[Workload, ...] = ()

    @classmethod
    def build(cls, source: Host, target: Host, workloads: Iterable[Workload]) -> "DrainPlan":
        seen = set()
        ordered: List[Workload] = []
        for w in workloads:
            if w.name in seen:
                continue
            seen.add(w.name)
            ordered.append(w)
        return cls(source=source, target=target, workloads=tuple(ordered))

    def __len__(self) -> int:
        return len(self.workloads)


@dataclass(frozen=True)
class RebalancePlan:
    """
    Assignment list plus the round-robin host sequence, both fixed for the run.
    """

    cluster: str
    hosts: Tuple[Host, ...]
    assignments: Tuple[ProtectionAssignment, ...] = ()

    def targets(self) -> Iterator[Tuple[ProtectionAssignment, Host]]:
        m = len(self.hosts)
        if m == 0:
            return
        for i, assignment in enumerate(self.assignments):
            yield assignment, self.hosts[i % m]

    def __len__(self) -> int:
        return len(self.assignments)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemFailure:
    item: str
    reason: str
    phase: str = ""


@dataclass
class PhaseReport:
    name: str
    attempted: int = 0
    succeeded: int = 0
    failures: List[ItemFailure] = field(default_factory=list)
    skipped: bool = False
    skip_reason: Optional[str] = None

    def record_ok(self) -> None:
        self.attempted += 1
        self.succeeded += 1

    def record_failure(self, item: str, reason: str) -> ItemFailure:
        self.attempted += 1
        f = ItemFailure(item=item, reason=reason, phase=self.name)
        self.failures.append(f)
        return f

    def skip(self, reason: str) -> None:
        self.skipped = True
        self.skip_reason = reason

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass
class DrainResult:
    source: str
    target: str
    enter_maintenance: bool = False
    dry_run: bool = False
    plan: List[str] = field(default_factory=list)

    enumeration: PhaseReport = field(default_factory=lambda: PhaseReport("enumerate"))
    migrate: PhaseReport = field(default_factory=lambda: PhaseReport("migrate"))
    maintenance: PhaseReport = field(default_factory=lambda: PhaseReport("maintenance"))
    wait_for_drain: PhaseReport = field(default_factory=lambda: PhaseReport("wait_for_drain"))
    shutdown_appliances: PhaseReport = field(default_factory=lambda: PhaseReport("shutdown_appliances"))

    # guest-list calls made while waiting for the host to drain
    polls: int = 0
    cancelled: bool = False

    def phases(self) -> List[PhaseReport]:
        return [self.enumeration, self.migrate, self.maintenance, self.wait_for_drain, self.shutdown_appliances]

    @property
    def migrated(self) -> int:
        return self.migrate.succeeded

    @property
    def failures(self) -> List[ItemFailure]:
        out: List[ItemFailure] = []
        for p in self.phases():
            out.extend(p.failures)
        return out

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled

    def to_jsonable(self) -> Dict[str, Any]:
        d = asdict(self)
        d["migrated"] = self.migrated
        d["ok"] = self.ok
        return d


@dataclass
class RebalanceResult:
    cluster: str
    hosts: List[str] = field(default_factory=list)
    dry_run: bool = False

    total: int = 0
    processed: int = 0
    moved: int = 0
    already_placed: int = 0

    # (workload, target host) in processing order
    mapping: List[Tuple[str, str]] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)
    aborted: Optional[ItemFailure] = None

    def record_failure(self, item: str, reason: str, phase: str) -> ItemFailure:
        f = ItemFailure(item=item, reason=reason, phase=phase)
        self.failures.append(f)
        return f

    @property
    def ok(self) -> bool:
        return self.aborted is None and not self.failures

    def to_jsonable(self) -> Dict[str, Any]:
        d = asdict(self)
        d["mapping"] = [{"workload": w, "target": h} for w, h in self.mapping]
        d["ok"] = self.ok
        return d
