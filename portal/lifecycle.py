from __future__ import annotations

from devgate import Config, DevInterfaceGate
from devgate.shared.gate import GateLogger

# Lifecycle logger
_log = GateLogger.get("Lifecycle")


async def startup(event_bus):
    """Initialize subsystems on server startup."""
    GateLogger.set_level(Config.get("DEVGATE_LOG_LEVEL", "INFO"))

    _, errors = Config.validate()
    for error in errors:
        _log.warning(error)

    if not DevInterfaceGate.is_initialized() and not DevInterfaceGate.initialize():
        _log.error("DevInterfaceGate failed to initialize; operations will be unavailable")
        return

    config = DevInterfaceGate.get_config()
    _log.info(f"Serving {config.root} under {config.route_prefix}")
    await event_bus.emit_system(f"devgate started, serving {config.root}")


async def shutdown():
    """Cleanup on server shutdown."""
    _log.info("devgate stopped")


__all__ = ["startup", "shutdown"]
