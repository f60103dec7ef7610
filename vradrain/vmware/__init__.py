# vradrain/vmware/__init__.py
from .client import VSphereClient
from .topology import ClusterTopology, UnreachableTopology

__all__ = ["ClusterTopology", "UnreachableTopology", "VSphereClient"]
