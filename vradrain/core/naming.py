# SPDX-License-Identifier: LGPL-3.0-or-later
# vradrain/core/naming.py
"""
Infrastructure appliance naming convention.

Replication appliances are ordinary guests as far as vSphere is concerned;
the only thing that tells them apart from workload VMs is their name. The
convention lives here so the drain-wait filter and the shutdown filter
cannot disagree.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Pattern

from .exceptions import PreconditionError

DEFAULT_APPLIANCE_PATTERN = r"^Z-VRA-"


@dataclass(frozen=True)
class AppliancePolicy:
    pattern: str = DEFAULT_APPLIANCE_PATTERN
    _rx: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            rx = re.compile(self.pattern)
        except re.error as e:
            raise PreconditionError(
                code=2, msg=f"invalid appliance name pattern {self.pattern!r}: {e}", cause=e
            )
        object.__setattr__(self, "_rx", rx)

    def is_infrastructure_appliance(self, name: str) -> bool:
        return bool(self._rx.search(name or ""))

    def appliances(self, names: Iterable[str]) -> List[str]:
        return [n for n in names if self.is_infrastructure_appliance(n)]

    def workloads(self, names: Iterable[str]) -> List[str]:
        return [n for n in names if not self.is_infrastructure_appliance(n)]
