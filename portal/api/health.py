"""
Health check API endpoint.

Aggregates health status from all devgate Gates.
"""

from __future__ import annotations

import importlib
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Response


# Gate registry: name -> (module_path, attribute, health_method)
# health_method is optional - defaults to "get_health_status"
GATE_REGISTRY: Dict[str, Tuple[str, str, Optional[str]]] = {
    "DevInterfaceGate": ("devgate", "DevInterfaceGate", None),
}


def _get_gate_health(
    module_path: str,
    attribute: str,
    health_method: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Get health status from a gate module.

    Args:
        module_path: Python module path (e.g., "devgate")
        attribute: Gate module or class attribute name
        health_method: Method name to call (defaults to "get_health_status")

    Returns:
        Health status dict
    """
    method_name = health_method or "get_health_status"

    module = importlib.import_module(module_path)
    gate = getattr(module, attribute)

    if hasattr(gate, method_name):
        return getattr(gate, method_name)()
    else:
        return {"healthy": False, "error": f"No {method_name} method"}


def _collect_health_data() -> Tuple[bool, Dict[str, Any]]:
    """
    Collect health data from all gates.

    Returns:
        Tuple of (all_healthy, gates_dict)
    """
    gates = {}
    all_healthy = True

    for gate_name, (module_path, attribute, health_method) in GATE_REGISTRY.items():
        try:
            gates[gate_name] = _get_gate_health(module_path, attribute, health_method)
        except Exception as e:
            gates[gate_name] = {"healthy": False, "error": str(e)}
        if not gates[gate_name].get("healthy", False):
            all_healthy = False

    return all_healthy, gates


def create_router() -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    async def api_health(response: Response) -> Dict[str, Any]:
        """
        Get aggregated health status from all Gates.

        Returns 200 when healthy, 503 when unhealthy.
        """
        all_healthy, gates = _collect_health_data()

        if not all_healthy:
            response.status_code = 503

        return {
            "healthy": all_healthy,
            "gates": gates,
        }

    @router.get("/api/health/gate/{gate_name}")
    async def api_health_gate(gate_name: str, response: Response) -> Dict[str, Any]:
        """Get health status for a specific gate."""
        normalized = gate_name.lower()

        for name, (module_path, attribute, health_method) in GATE_REGISTRY.items():
            if name.lower() == normalized:
                try:
                    return _get_gate_health(module_path, attribute, health_method)
                except Exception as e:
                    return {"healthy": False, "error": str(e)}

        response.status_code = 404
        return {
            "error": f"Unknown gate: {gate_name}",
            "available": list(GATE_REGISTRY.keys()),
        }

    return router


__all__ = ["create_router"]
