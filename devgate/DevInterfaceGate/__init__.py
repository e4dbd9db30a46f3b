"""
DevInterfaceGate - filesystem operations for remote development clients.

Provides:
- Dispatch of create/delete/move/edit/save/dir-snapshot/exists/upload
- Containment of every client path inside one configured root
- Uniform Success/Failure outcomes with recommended status and headers
- Multi-file upload commit with a Locations Map on partial failure

Usage:
    from devgate import DevInterfaceGate
    from devgate.DevInterfaceGate.models import OperationRequest

    # Initialize (call on startup)
    DevInterfaceGate.initialize(root="/srv/site", tmp_dir="/srv/tmp")

    # Handle a request
    request = OperationRequest.build("GET", "/client-dev-interface/exists?Filepath=/index.html")
    outcome = await DevInterfaceGate.handle(request)
"""

from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Tuple

from devgate import Config
from devgate.shared.gate import (
    GateErrorHandler,
    GateLogger,
    PathUtils,
    build_health_status,
)

from .dispatcher import DISPATCHER_TAG, Dispatcher
from .errors import OperationError
from .models import (
    DevInterfaceConfig,
    DirEntry,
    ErrorCode,
    Failure,
    Operation,
    OperationRequest,
    Outcome,
    StagedFile,
    Success,
)
from .security import is_contained

# Logger for this gate
_log = GateLogger.get("DevInterfaceGate")

# Module-level state
_config: Optional[DevInterfaceConfig] = None
_dispatcher: Optional[Dispatcher] = None
_initialized: bool = False


class DevInterfaceGate:
    """
    Main interface for devgate's client-dev-interface operations.

    All methods are class methods for easy access throughout the application.
    """

    @classmethod
    def initialize(
        cls,
        root: Optional[str] = None,
        tmp_dir: Optional[str] = None,
        route_prefix: Optional[str] = None,
    ) -> bool:
        """
        Initialize the gate.

        Args:
            root: Directory operations are confined to (default: DEVGATE_ROOT)
            tmp_dir: Upload staging directory (default: DEVGATE_TMP_DIR)
            route_prefix: Routing prefix (default: DEVGATE_ROUTE_PREFIX)

        Returns:
            True if initialization successful
        """
        global _config, _dispatcher, _initialized

        try:
            config = DevInterfaceConfig(
                root=root or Config.get("DEVGATE_ROOT"),
                tmp_dir=tmp_dir or Config.get("DEVGATE_TMP_DIR"),
                route_prefix=route_prefix or Config.get("DEVGATE_ROUTE_PREFIX"),
            )
            PathUtils.ensure_dirs(config.root, config.tmp_dir)
            dispatcher = Dispatcher(config)
        except Exception as e:
            return GateErrorHandler.handle("DevInterfaceGate", "Initialization", e, False)

        if is_contained(config.tmp_dir, config.root):
            _log.warning(
                f"Staging directory {config.tmp_dir} is inside the root; "
                "staged files are visible to clients"
            )

        _config, _dispatcher, _initialized = config, dispatcher, True
        _log.info(f"Initialized with root {config.root}")
        return True

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the gate is initialized."""
        return _initialized

    @classmethod
    def _get_dispatcher(cls) -> Dispatcher:
        """Get the dispatcher, initializing if needed."""
        if _dispatcher is None:
            if not cls.initialize():
                raise RuntimeError(
                    "DevInterfaceGate initialization failed. Check DEVGATE_ROOT and DEVGATE_TMP_DIR."
                )
        return _dispatcher

    @classmethod
    def get_config(cls) -> DevInterfaceConfig:
        """Get the active configuration."""
        return cls._get_dispatcher().config

    # ==================== Requests ====================

    @classmethod
    def resolve_operation(cls, target: str) -> Optional[Operation]:
        """Operation named by a request target, or None."""
        return cls._get_dispatcher().resolve(target)

    @classmethod
    async def handle(cls, request: OperationRequest) -> Outcome:
        """Dispatch a request and return its Outcome."""
        return await cls._get_dispatcher().dispatch(request)

    @classmethod
    async def stage_upload(cls, parts: Iterable[Tuple[str, BinaryIO]]) -> List[StagedFile]:
        """
        Stage decoded upload parts in the configured staging directory.

        Raises:
            OperationError: EWRITE if a part cannot be written
        """
        return await cls._get_dispatcher().upload_handler.stage(parts)

    # ==================== Health Checks ====================

    @classmethod
    @GateErrorHandler.wrap("DevInterfaceGate", "Health check", default_return=False)
    def is_healthy(cls) -> bool:
        """Check if the gate is operational."""
        if not _initialized:
            return False
        return PathUtils.is_writable_dir(_config.root) and PathUtils.is_writable_dir(_config.tmp_dir)

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        """Get detailed health information."""
        checks = {}
        details = {}

        if _initialized:
            checks["root_writable"] = PathUtils.is_writable_dir(_config.root)
            checks["tmp_dir_writable"] = PathUtils.is_writable_dir(_config.tmp_dir)
            details["root"] = _config.root
            details["tmp_dir"] = _config.tmp_dir
            details["route_prefix"] = _config.route_prefix
            details["operations"] = [op.value for op in Operation]

        return build_health_status(
            gate_name="DevInterfaceGate",
            initialized=_initialized,
            dependencies=cls.get_dependencies(),
            checks=checks,
            details=details,
        )

    @classmethod
    def get_dependencies(cls) -> List[str]:
        """List external dependencies."""
        return ["filesystem"]


# ==================== Module-level convenience functions ====================


def initialize(
    root: Optional[str] = None,
    tmp_dir: Optional[str] = None,
    route_prefix: Optional[str] = None,
) -> bool:
    """Initialize the gate."""
    return DevInterfaceGate.initialize(root, tmp_dir, route_prefix)


def is_initialized() -> bool:
    """Check if the gate is initialized."""
    return DevInterfaceGate.is_initialized()


async def handle(request: OperationRequest) -> Outcome:
    """Dispatch a request and return its Outcome."""
    return await DevInterfaceGate.handle(request)


def get_config() -> DevInterfaceConfig:
    """Get the active configuration."""
    return DevInterfaceGate.get_config()


def resolve_operation(target: str) -> Optional[Operation]:
    """Operation named by a request target, or None."""
    return DevInterfaceGate.resolve_operation(target)


async def stage_upload(parts: Iterable[Tuple[str, BinaryIO]]) -> List[StagedFile]:
    """Stage decoded upload parts in the configured staging directory."""
    return await DevInterfaceGate.stage_upload(parts)


def is_healthy() -> bool:
    """Check if the gate is operational."""
    return DevInterfaceGate.is_healthy()


def get_health_status() -> Dict[str, Any]:
    """Get detailed health information."""
    return DevInterfaceGate.get_health_status()


def get_info() -> dict:
    """
    Get documentation for the client-dev-interface wire contract.

    Returns the operations with their method, parameter source and
    required fields, plus the error taxonomy.
    """
    return {
        "gate": "DevInterfaceGate",
        "version": "1.0",
        "purpose": "Filesystem operations for remote clients, confined to one root directory.",
        "operations": {
            Operation.CREATE.value: {"method": "PUT", "params": "json body", "required": ["Filepath", "isDirectory"]},
            Operation.DELETE.value: {"method": "DELETE", "params": "json body", "required": ["Filepath", "isDirectory"]},
            Operation.MOVE.value: {"method": "PATCH", "params": "json body", "required": ["oldPath", "newPath"]},
            Operation.EDIT.value: {"method": "GET", "params": "query", "required": ["Filepath"]},
            Operation.SAVE.value: {"method": "PUT", "params": "query + raw body", "required": ["Filepath"]},
            Operation.DIR_SNAPSHOT.value: {"method": "GET", "params": "query", "required": ["Directory"]},
            Operation.EXISTS.value: {"method": "GET", "params": "query", "required": ["Filepath"]},
            Operation.UPLOAD.value: {"method": "PUT", "params": "multipart body", "required": ["one file part per relative path"]},
        },
        "errors": {code.name: code.value for code in ErrorCode},
        "upload_failure": "message is a JSON object mapping each relative path to its current absolute location",
    }


__all__ = [
    # Class
    "DevInterfaceGate",
    # Lifecycle / health
    "initialize",
    "is_initialized",
    "get_config",
    "is_healthy",
    "get_health_status",
    # Requests
    "handle",
    "resolve_operation",
    "stage_upload",
    # Models
    "DevInterfaceConfig",
    "DirEntry",
    "ErrorCode",
    "Failure",
    "Operation",
    "OperationRequest",
    "Outcome",
    "StagedFile",
    "Success",
    # Errors
    "OperationError",
    "DISPATCHER_TAG",
    # Documentation
    "get_info",
]
