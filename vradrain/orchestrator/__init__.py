# vradrain/orchestrator/__init__.py
from .drain import HostDrainOrchestrator
from .progress import ProgressReporter, create_progress_reporter
from .rebalance import ClusterRebalancer

__all__ = ["ClusterRebalancer", "HostDrainOrchestrator", "ProgressReporter", "create_progress_reporter"]
