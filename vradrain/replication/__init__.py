# vradrain/replication/__init__.py
from .client import ZVMClient
from .directory import ReplicationDirectory

__all__ = ["ReplicationDirectory", "ZVMClient"]
