"""
Shared utilities for devgate.

Provides access to common functionality used across Gate implementations.
"""

from devgate.shared.gate import (
    GateLogger,
    GateErrorHandler,
    GateHealth,
    PathUtils,
    build_health_status,
    get_logger,
)

__all__ = [
    "GateLogger",
    "GateErrorHandler",
    "GateHealth",
    "PathUtils",
    "build_health_status",
    "get_logger",
]
