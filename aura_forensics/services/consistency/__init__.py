"""Declaration versus evidence consistency evaluation."""

from .engine import (  # noqa: F401
    ENGINE_VERSION,
    ConsistencyEngine,
    affected_dimensions,
    global_consistency,
)
from .expectations import GIT_EXPECTATIONS, Expectations, normalize_declaration  # noqa: F401

__all__ = [
    "ENGINE_VERSION",
    "ConsistencyEngine",
    "affected_dimensions",
    "global_consistency",
    "GIT_EXPECTATIONS",
    "Expectations",
    "normalize_declaration",
]
