"""
devgate - filesystem gateway for remote development clients.

Gates:
- DevInterfaceGate: routed filesystem operations confined to a root directory
- Config: schema-driven configuration
"""

from devgate import Config
from devgate import DevInterfaceGate

__version__ = "0.1.0"

__all__ = ["Config", "DevInterfaceGate", "__version__"]
