from __future__ import annotations

from fastapi import APIRouter


def create_router(Config) -> APIRouter:
    router = APIRouter()

    @router.get("/api/config/schema")
    async def api_config_schema():
        """Get configuration schema grouped by category."""
        return Config.get_schema()

    @router.get("/api/config")
    async def api_config_get():
        """Get current configuration values."""
        return Config.get_all()

    @router.get("/api/config/validate")
    async def api_config_validate():
        """Validate the loaded configuration."""
        is_valid, errors = Config.validate()
        return {"valid": is_valid, "errors": errors}

    return router


__all__ = ["create_router"]
