import os
import sys

# Add the root project directory to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from dotenv import load_dotenv
load_dotenv()

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devgate import Config
from devgate import DevInterfaceGate
from devgate.shared.gate import GateLogger
from portal import lifecycle
from portal.api import config as config_api
from portal.api import dev_interface as dev_interface_api
from portal.api import events as events_api
from portal.api import health as health_api
from portal.services.events import EventBus

_log = GateLogger.get("Portal")


def create_app(
    root: Optional[str] = None,
    tmp_dir: Optional[str] = None,
    route_prefix: Optional[str] = None,
) -> FastAPI:
    """
    Build the devgate FastAPI application.

    Args:
        root: Directory operations are confined to (default: DEVGATE_ROOT)
        tmp_dir: Upload staging directory (default: DEVGATE_TMP_DIR)
        route_prefix: Routing prefix (default: DEVGATE_ROUTE_PREFIX)
    """
    if not DevInterfaceGate.initialize(root, tmp_dir, route_prefix):
        raise RuntimeError("DevInterfaceGate initialization failed. Check DEVGATE_ROOT and DEVGATE_TMP_DIR.")

    app = FastAPI(title="devgate")
    event_bus = EventBus()
    app.state.event_bus = event_bus

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.get("DEVGATE_CORS_ORIGINS", []),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        await lifecycle.startup(event_bus)

    @app.on_event("shutdown")
    async def shutdown_event():
        await lifecycle.shutdown()

    app.include_router(dev_interface_api.create_router(DevInterfaceGate, event_bus))
    app.include_router(events_api.create_router(event_bus))
    app.include_router(health_api.create_router())
    app.include_router(config_api.create_router(Config))

    return app


def main():
    """Serve devgate with uvicorn."""
    import uvicorn

    app = create_app()
    uvicorn.run(
        app,
        host=Config.get("DEVGATE_HOST", "127.0.0.1"),
        port=Config.get("DEVGATE_PORT", 8080),
        log_level=str(Config.get("DEVGATE_LOG_LEVEL", "INFO")).lower(),
    )


if __name__ == "__main__":
    main()
