"""
Shared Gate utilities for devgate.

Provides consolidated patterns for Gate implementations:
- GateLogger: Unified logging with Python's logging module
- GateErrorHandler: Logging wrapper for operations that must not raise
- GateHealth: Protocol for health checks
- PathUtils: Common path operations
"""

from __future__ import annotations

import logging
import os
from functools import wraps
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)


# =============================================================================
# GateLogger - Unified logging for all Gates
# =============================================================================


class GateLogger:
    """
    Unified logging for all Gates.

    Each gate gets its own logger under the "devgate" namespace.
    """

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def _ensure_configured(cls):
        """Ensure basic logging is configured."""
        if cls._configured:
            return

        root_logger = logging.getLogger("devgate")
        if not root_logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "[%(name)s] %(levelname)s: %(message)s"
            )
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)
            root_logger.setLevel(logging.INFO)

        cls._configured = True

    @classmethod
    def get(cls, gate_name: str) -> logging.Logger:
        """
        Get a logger for a specific gate.

        Args:
            gate_name: Name of the gate (e.g., "DevInterfaceGate", "Config")

        Returns:
            Logger instance for the gate
        """
        cls._ensure_configured()

        logger_name = f"devgate.{gate_name}"
        if logger_name not in cls._loggers:
            cls._loggers[logger_name] = logging.getLogger(logger_name)

        return cls._loggers[logger_name]

    @classmethod
    def set_level(cls, level: Union[int, str], gate_name: Optional[str] = None):
        """
        Set logging level.

        Args:
            level: Logging level (e.g., logging.DEBUG or "DEBUG")
            gate_name: Specific gate to set level for, or None for all
        """
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                level = logging.INFO

        if gate_name:
            cls.get(gate_name).setLevel(level)
        else:
            cls._ensure_configured()
            logging.getLogger("devgate").setLevel(level)


# =============================================================================
# GateErrorHandler - Unified error handling
# =============================================================================


class GateErrorHandler:
    """
    Error handling for Gate code paths that report failure by return value
    (initialization, health checks) instead of raising.
    """

    @staticmethod
    def handle(
        gate_name: str,
        operation: str,
        exception: Exception,
        default_return: Any = None,
        log_level: int = logging.ERROR,
    ) -> Any:
        """
        Log a gate operation error and return the fallback value.

        Args:
            gate_name: Name of the gate
            operation: Operation that failed
            exception: The exception that occurred
            default_return: Value to return on error
            log_level: Logging level to use

        Returns:
            The default_return value
        """
        logger = GateLogger.get(gate_name)
        logger.log(log_level, f"{operation} failed: {exception}")
        return default_return

    @staticmethod
    def wrap(
        gate_name: str,
        operation: str,
        default_return: Any = None,
        log_level: int = logging.ERROR,
        reraise: bool = False,
    ):
        """
        Decorator for wrapping gate operations with error handling.

        Args:
            gate_name: Name of the gate
            operation: Operation name for logging
            default_return: Value to return on error
            log_level: Logging level to use
            reraise: Whether to re-raise the exception after logging

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    GateErrorHandler.handle(
                        gate_name, operation, e, default_return, log_level
                    )
                    if reraise:
                        raise
                    return default_return
            return wrapper
        return decorator


# =============================================================================
# GateHealth - Protocol for health checks
# =============================================================================


@runtime_checkable
class GateHealth(Protocol):
    """Protocol for gate health checking."""

    @classmethod
    def is_healthy(cls) -> bool:
        """Check if the gate is operational."""
        ...

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        """Get detailed health information."""
        ...

    @classmethod
    def get_dependencies(cls) -> List[str]:
        """List external dependencies (e.g., filesystem)."""
        ...


def build_health_status(
    gate_name: str,
    initialized: bool,
    dependencies: List[str],
    checks: Dict[str, bool],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build a standardized health status dict.

    Args:
        gate_name: Name of the gate
        initialized: Whether the gate is initialized
        dependencies: List of dependency names
        checks: Dict of check name -> passed
        details: Additional details

    Returns:
        Standardized health status dict
    """
    all_checks_passed = all(checks.values()) if checks else True

    return {
        "gate": gate_name,
        "healthy": initialized and all_checks_passed,
        "initialized": initialized,
        "dependencies": dependencies,
        "checks": checks,
        "details": details or {},
    }


# =============================================================================
# PathUtils - Common path operations
# =============================================================================


class PathUtils:
    """Common path utilities for Gates."""

    @staticmethod
    def ensure_dirs(*paths: Union[str, Path]) -> None:
        """Create each directory (and its parents) if missing."""
        for path in paths:
            Path(path).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def is_writable_dir(path: Union[str, Path]) -> bool:
        """True if path is an existing directory the process can write into."""
        path = os.fspath(path)
        return os.path.isdir(path) and os.access(path, os.W_OK | os.X_OK)


# =============================================================================
# Convenience exports
# =============================================================================


def get_logger(gate_name: str) -> logging.Logger:
    """Shortcut for GateLogger.get()."""
    return GateLogger.get(gate_name)
