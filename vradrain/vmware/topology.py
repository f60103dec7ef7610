# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/vmware/topology.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..core.exceptions import QueryError
from ..core.models import Host


class ClusterTopology(ABC):
    """
    Narrow view of the virtualization platform used by the orchestrators.
    Every remote failure surfaces as ``QueryError``.
    """

    @abstractmethod
    def list_connected_hosts(self, cluster: str) -> List[Host]:
        """Connected hosts of ``cluster`` in platform order."""
        ...

    @abstractmethod
    def list_guest_vms(self, host: Host) -> List[str]:
        """Names of the guests registered on ``host``."""
        ...

    @abstractmethod
    def set_maintenance_mode(self, host: Host) -> None:
        """Submit the maintenance-mode transition; does not wait for completion."""
        ...

    @abstractmethod
    def shutdown_guest(self, vm_name: str) -> None:
        """Force the guest off, no confirmation."""
        ...


class UnreachableTopology(ClusterTopology):
    """
    Stand-in used when the platform session could not be opened. Every call
    fails with the original connect error, so a drain still migrates and
    records the maintenance request as failed.
    """

    def __init__(self, error: QueryError):
        self.error = error

    def _fail(self) -> None:
        raise QueryError(code=self.error.code, msg=f"vSphere unavailable: {self.error.msg}", cause=self.error)

    def list_connected_hosts(self, cluster: str) -> List[Host]:
        self._fail()
        return []

    def list_guest_vms(self, host: Host) -> List[str]:
        self._fail()
        return []

    def set_maintenance_mode(self, host: Host) -> None:
        self._fail()

    def shutdown_guest(self, vm_name: str) -> None:
        self._fail()
