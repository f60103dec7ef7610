# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/replication/directory.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..core.models import Host, Workload


class ReplicationDirectory(ABC):
    """
    Narrow view of the replication manager used by the orchestrators.

    Implementations raise ``QueryError`` for every remote failure. An empty
    list is a valid answer and is never used to signal an error.
    """

    @abstractmethod
    def list_workloads_protected_by(self, host: Host) -> List[Workload]:
        """Workloads whose protecting (recovery) host is ``host``."""
        ...

    @abstractmethod
    def reassign_protecting_host(self, workload: Workload, current_host: Host, new_host: Host) -> None:
        """Move ``workload``'s protecting host from ``current_host`` to ``new_host``."""
        ...
