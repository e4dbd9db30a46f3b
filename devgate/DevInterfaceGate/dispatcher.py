"""
DevInterfaceGate dispatcher.

Maps the operation segment of a request target to its handler. The
operation table is closed over the Operation enum and checked at import.
"""

from typing import Dict, Optional

from devgate.shared.gate import GateLogger

from .errors import failure
from .models import DevInterfaceConfig, ErrorCode, Operation, OperationRequest, Outcome
from .operations import SIMPLE_HANDLERS, Handler
from .upload import UploadHandler

_log = GateLogger.get("DevInterfaceGate")

DISPATCHER_TAG = "client-dev-interface"


def resolve_operation(target: str, route_prefix: str) -> Optional[Operation]:
    """
    Find the operation named by everything after the routing prefix.

    Args:
        target: Request target; a query string, if present, is ignored
        route_prefix: Prefix such as "/client-dev-interface"

    Returns:
        The Operation, or None unless the remainder is exactly one
        operation name ("exists/extra" is not "exists")
    """
    path = target.split("?", 1)[0].split("#", 1)[0]
    prefix = route_prefix.rstrip("/") + "/"
    if not path.startswith(prefix):
        return None

    remainder = path[len(prefix):]
    try:
        return Operation(remainder)
    except ValueError:
        return None


class Dispatcher:
    """Routes OperationRequests to handlers for one configured root."""

    def __init__(self, config: DevInterfaceConfig):
        self.config = config
        self.upload_handler = UploadHandler(config.tmp_dir)
        self._handlers: Dict[Operation, Handler] = {
            **SIMPLE_HANDLERS,
            Operation.UPLOAD: self.upload_handler,
        }

    def resolve(self, target: str) -> Optional[Operation]:
        """Operation for a request target under this dispatcher's prefix."""
        return resolve_operation(target, self.config.route_prefix)

    async def dispatch(self, request: OperationRequest) -> Outcome:
        """
        Run the handler for the request and return its Outcome unchanged.

        Unknown operations yield ENORES with status 404.
        """
        op = self.resolve(request.target)
        if op is None:
            _log.info(f"no such operation: {request.method} {request.target}")
            return failure(DISPATCHER_TAG, ErrorCode.ENORES, "resource not found")

        return await self._handlers[op](request, self.config.root)


# Every Operation must have a simple handler or be the upload operation.
_UNROUTED = set(Operation) - set(SIMPLE_HANDLERS) - {Operation.UPLOAD}
if _UNROUTED:
    raise RuntimeError(
        f"No handler for operation(s): {sorted(op.value for op in _UNROUTED)}"
    )
