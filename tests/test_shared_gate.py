"""
Tests for shared Gate utilities.
"""

import logging
import os
import pytest
from typing import Dict, Any, List

from devgate.shared.gate import (
    GateLogger,
    GateErrorHandler,
    GateHealth,
    build_health_status,
    PathUtils,
    get_logger,
)


class TestGateLogger:
    """Tests for GateLogger."""

    def test_get_returns_namespaced_logger(self):
        """Should return a logger under the devgate namespace."""
        logger = GateLogger.get("TestGate")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "devgate.TestGate"

    def test_get_same_logger_for_same_name(self):
        """Should return same logger for same gate name."""
        assert GateLogger.get("SameGate") is GateLogger.get("SameGate")

    def test_get_logger_shortcut(self):
        """get_logger() should be equivalent to GateLogger.get()."""
        assert get_logger("ShortcutGate") is GateLogger.get("ShortcutGate")

    def test_set_level_specific_gate(self):
        """Should set level for one gate only."""
        logger = GateLogger.get("LevelTestGate")
        GateLogger.set_level(logging.DEBUG, "LevelTestGate")

        assert logger.level == logging.DEBUG

    def test_set_level_accepts_names(self):
        """Level names from config are accepted case-insensitively."""
        logger = GateLogger.get("NamedLevelGate")
        GateLogger.set_level("warning", "NamedLevelGate")

        assert logger.level == logging.WARNING

    def test_set_level_unknown_name_falls_back_to_info(self):
        """An unknown level name should not raise."""
        logger = GateLogger.get("BogusLevelGate")
        GateLogger.set_level("LOUD", "BogusLevelGate")

        assert logger.level == logging.INFO


class TestGateErrorHandler:
    """Tests for GateErrorHandler."""

    def test_handle_logs_error(self, caplog):
        """handle() should log the error and return the default."""
        with caplog.at_level(logging.ERROR):
            result = GateErrorHandler.handle(
                gate_name="TestGate",
                operation="Initialization",
                exception=PermissionError("root not writable"),
                default_return=False,
            )

        assert result is False
        assert "Initialization failed" in caplog.text
        assert "root not writable" in caplog.text

    def test_wrap_decorator_catches_exception(self, caplog):
        """wrap() decorator should catch exceptions."""
        @GateErrorHandler.wrap("TestGate", "Health check", default_return=False)
        def failing_check():
            raise OSError("stat failed")

        with caplog.at_level(logging.ERROR):
            result = failing_check()

        assert result is False
        assert "Health check failed" in caplog.text

    def test_wrap_decorator_passes_through_success(self):
        """wrap() decorator should pass through successful results."""
        @GateErrorHandler.wrap("TestGate", "Health check", default_return=False)
        def passing_check():
            return True

        assert passing_check() is True

    def test_wrap_decorator_reraise_option(self):
        """wrap() decorator should re-raise when reraise=True."""
        @GateErrorHandler.wrap("TestGate", "wrapped_op", reraise=True)
        def failing_function():
            raise ValueError("should propagate")

        with pytest.raises(ValueError, match="should propagate"):
            failing_function()


class TestGateHealth:
    """Tests for GateHealth protocol and build_health_status."""

    def test_build_health_status_healthy(self):
        """Should build healthy status dict."""
        status = build_health_status(
            gate_name="TestGate",
            initialized=True,
            dependencies=["filesystem"],
            checks={"root_writable": True},
            details={"root": "/srv"},
        )

        assert status["gate"] == "TestGate"
        assert status["healthy"] is True
        assert status["dependencies"] == ["filesystem"]
        assert status["details"]["root"] == "/srv"

    def test_build_health_status_unhealthy_not_initialized(self):
        """Should be unhealthy if not initialized."""
        status = build_health_status("TestGate", False, [], {"check": True})

        assert status["healthy"] is False

    def test_build_health_status_unhealthy_check_failed(self):
        """Should be unhealthy if any check fails."""
        status = build_health_status(
            "TestGate", True, [], {"root_writable": True, "tmp_dir_writable": False}
        )

        assert status["healthy"] is False
        assert status["details"] == {}

    def test_gate_health_protocol(self):
        """The gate class should satisfy the GateHealth protocol."""
        from devgate.DevInterfaceGate import DevInterfaceGate

        class HealthyGate:
            @classmethod
            def is_healthy(cls) -> bool:
                return True

            @classmethod
            def get_health_status(cls) -> Dict[str, Any]:
                return {"healthy": True}

            @classmethod
            def get_dependencies(cls) -> List[str]:
                return []

        assert isinstance(HealthyGate, GateHealth)
        assert isinstance(DevInterfaceGate, GateHealth)


class TestPathUtils:
    """Tests for PathUtils."""

    def test_ensure_dirs_creates_nested_directories(self, tmp_path):
        """Should create each directory with its parents."""
        first = tmp_path / "a" / "b"
        second = tmp_path / "c"

        PathUtils.ensure_dirs(first, str(second))

        assert first.is_dir()
        assert second.is_dir()

    def test_ensure_dirs_existing_is_noop(self, tmp_path):
        """Existing directories are left alone."""
        PathUtils.ensure_dirs(tmp_path)

        assert tmp_path.is_dir()

    def test_is_writable_dir(self, tmp_path):
        """A fresh temp directory is writable; a file is not a directory."""
        file_path = tmp_path / "plain.txt"
        file_path.write_text("x")

        assert PathUtils.is_writable_dir(tmp_path) is True
        assert PathUtils.is_writable_dir(file_path) is False
        assert PathUtils.is_writable_dir(tmp_path / "missing") is False

    @pytest.mark.skipif(
        os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced"
    )
    def test_is_writable_dir_read_only(self, tmp_path):
        """A read-only directory is not writable."""
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            assert PathUtils.is_writable_dir(locked) is False
        finally:
            locked.chmod(0o700)
