"""
DevInterfaceGate errors.

Handlers raise OperationError internally; the handler wrapper converts it
into a Failure outcome, so nothing here ever reaches the transport layer as
an exception.
"""

import json
from typing import Dict, Optional

from .models import ErrorCode, Failure


# Recommended status per code when a handler does not override it.
DEFAULT_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.EMET: 405,
    ErrorCode.EBODY: 400,
    ErrorCode.EQUERY: 400,
    ErrorCode.EPATH: 400,
    ErrorCode.ENOENT: 409,
    ErrorCode.EENTEX: 409,
    ErrorCode.ENOTEMPTY: 409,
    ErrorCode.ERMENT: 500,
    ErrorCode.ECRENT: 500,
    ErrorCode.ECLOSE: 500,
    ErrorCode.EMOVE: 500,
    ErrorCode.EREAD: 500,
    ErrorCode.EWRITE: 500,
    ErrorCode.EISDIR: 409,
    ErrorCode.ENOTDIR: 409,
    ErrorCode.ENORES: 404,
}

TEXT_PLAIN = "text/plain; charset=utf-8"


class OperationError(Exception):
    """A classified failure raised inside a handler."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        locations: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code or DEFAULT_STATUS[code]
        self.headers = dict(headers or {})
        self.locations = dict(locations) if locations is not None else None

    @classmethod
    def with_locations(
        cls,
        code: ErrorCode,
        locations: Dict[str, str],
        status_code: Optional[int] = None,
    ) -> "OperationError":
        """Failure whose message is the JSON text of an upload Locations Map."""
        return cls(
            code,
            json.dumps(locations),
            status_code=status_code,
            headers={"Content-Type": "application/json"},
            locations=locations,
        )

    def to_failure(self, operation: str) -> Failure:
        """Convert to the Failure outcome for the given operation tag."""
        headers = {"Content-Type": TEXT_PLAIN, **self.headers}
        return Failure(
            code=self.code,
            status_code=self.status_code,
            headers=headers,
            operation=operation,
            message=self.message,
            locations=self.locations,
        )


def failure(
    operation: str,
    code: ErrorCode,
    message: str,
    status_code: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Failure:
    """Build a Failure directly, with the default status for the code."""
    return OperationError(code, message, status_code, headers).to_failure(operation)
