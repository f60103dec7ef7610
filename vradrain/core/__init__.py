# vradrain/core/__init__.py
from .cancel import CancellationToken
from .exceptions import Fatal, PreconditionError, QueryError, VraDrainError
from .naming import DEFAULT_APPLIANCE_PATTERN, AppliancePolicy

__all__ = [
    "AppliancePolicy",
    "CancellationToken",
    "DEFAULT_APPLIANCE_PATTERN",
    "Fatal",
    "PreconditionError",
    "QueryError",
    "VraDrainError",
]
