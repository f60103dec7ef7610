# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vradrain/__init__.py
"""
vradrain - replication protection drain and rebalance for vSphere hosts

Moves the replication protection of workloads between hypervisor hosts by
driving a replication manager (ZVM) and vCenter together.

Usage as a library:

    from vradrain import HostDrainOrchestrator, VSphereClient, ZVMClient

    with ZVMClient(logger, "zvm.example.com", "admin", pw) as zvm, \\
            VSphereClient(logger, "vcenter.example.com", "administrator", pw) as vc:
        result = HostDrainOrchestrator(logger, zvm, vc).drain_host("esx01", "esx02")
"""

__version__ = "0.1.0"

from .core import AppliancePolicy, CancellationToken, Fatal, PreconditionError, QueryError, VraDrainError
from .core.models import DrainResult, Host, ProtectionAssignment, RebalanceResult, Workload
from .orchestrator import ClusterRebalancer, HostDrainOrchestrator
from .replication import ReplicationDirectory, ZVMClient
from .vmware import ClusterTopology, VSphereClient

__all__ = [
    "__version__",
    # Orchestration
    "ClusterRebalancer",
    "HostDrainOrchestrator",
    # Collaborators
    "ClusterTopology",
    "ReplicationDirectory",
    "VSphereClient",
    "ZVMClient",
    # Model
    "AppliancePolicy",
    "CancellationToken",
    "DrainResult",
    "Host",
    "ProtectionAssignment",
    "RebalanceResult",
    "Workload",
    # Errors
    "Fatal",
    "PreconditionError",
    "QueryError",
    "VraDrainError",
]
