"""
Pytest configuration and fixtures for devgate tests.
"""

import os
import sys
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# Check for pytest-asyncio
try:
    import pytest_asyncio
    HAS_PYTEST_ASYNCIO = True
except ImportError:
    HAS_PYTEST_ASYNCIO = False


def pytest_collection_modifyitems(config, items):
    """Skip async tests if pytest-asyncio is not installed."""
    if HAS_PYTEST_ASYNCIO:
        return

    import asyncio
    skip_asyncio = pytest.mark.skip(
        reason="pytest-asyncio not installed - async tests require pytest-asyncio"
    )
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(skip_asyncio)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def root_dir(temp_dir: Path) -> Path:
    """The directory operations are confined to."""
    root = temp_dir / "root"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def staging_dir(temp_dir: Path) -> Path:
    """Upload staging directory, outside the root."""
    staging = temp_dir / "tmp"
    staging.mkdir(parents=True, exist_ok=True)
    return staging


@pytest.fixture
def sample_root(root_dir: Path) -> Path:
    """A root with a few files and directories in it."""
    (root_dir / "index.html").write_text("<h1>Hello</h1>")
    (root_dir / "notes.txt").write_text("Hello World")

    assets = root_dir / "assets"
    assets.mkdir()
    (assets / "app.js").write_text("console.log('hi');")

    (root_dir / "empty").mkdir()
    return root_dir


@pytest.fixture
def gate(root_dir: Path, staging_dir: Path):
    """An initialized DevInterfaceGate over root_dir."""
    from devgate import DevInterfaceGate

    assert DevInterfaceGate.initialize(
        str(root_dir), str(staging_dir), "/client-dev-interface"
    )
    return DevInterfaceGate


@pytest.fixture
def isolated_config(temp_dir: Path, monkeypatch):
    """A ConfigManager reading only files under temp_dir."""
    from devgate.Config.schema import CONFIG_SCHEMA

    for field in CONFIG_SCHEMA:
        monkeypatch.delenv(field.env_var, raising=False)

    from devgate import Config
    return Config.reload(temp_dir / "config.json", temp_dir / ".env")


@pytest.fixture(autouse=True)
def reset_module_state():
    """Reset module-level state between tests."""
    yield

    # Reset DevInterfaceGate
    try:
        import devgate.DevInterfaceGate as dev_gate
        dev_gate._config = None
        dev_gate._dispatcher = None
        dev_gate._initialized = False
    except (ImportError, AttributeError):
        pass

    # Reset Config
    try:
        import devgate.Config as config_module
        config_module._manager = None
    except (ImportError, AttributeError):
        pass
