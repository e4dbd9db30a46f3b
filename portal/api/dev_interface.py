"""
Client-dev-interface HTTP routes.

Adapts HTTP requests to OperationRequests and renders each Outcome's
recommended status, headers and body verbatim.
"""

from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from devgate.DevInterfaceGate.errors import OperationError
from devgate.DevInterfaceGate.models import (
    ErrorCode,
    Operation,
    OperationRequest,
    Outcome,
    StagedFile,
)
from devgate.shared.gate import GateLogger

_log = GateLogger.get("Portal")

ROUTE_METHODS = ["GET", "PUT", "PATCH", "DELETE", "POST"]


def outcome_to_response(outcome: Outcome) -> Response:
    """Render an Outcome as an HTTP response."""
    content = outcome.body if outcome.success else outcome.message
    return Response(
        content=content,
        status_code=outcome.status_code,
        headers=outcome.headers,
    )


def create_router(DevInterfaceGate, event_bus) -> APIRouter:
    router = APIRouter()
    prefix = DevInterfaceGate.get_config().route_prefix

    async def _stage_form(request: Request) -> Union[List[StagedFile], Outcome]:
        """Decode the multipart body and stage its file parts."""
        try:
            form = await request.form()
        except (MultiPartException, HTTPException) as e:
            _log.info(f"upload: malformed multipart body: {e}")
            return OperationError(
                ErrorCode.EBODY, "request body has incorrect format"
            ).to_failure(Operation.UPLOAD.value)

        try:
            parts = [
                (key, value.file)
                for key, value in form.multi_items()
                if isinstance(value, UploadFile)
            ]
            return await DevInterfaceGate.stage_upload(parts)
        except OperationError as e:
            return e.to_failure(Operation.UPLOAD.value)
        finally:
            await form.close()

    @router.get("/api/devinterface/info")
    async def dev_interface_info():
        """Wire contract of the operations plus the active configuration."""
        return JSONResponse(content={
            **DevInterfaceGate.get_info(),
            "config": DevInterfaceGate.get_config().to_dict(),
        })

    @router.api_route(prefix, methods=ROUTE_METHODS)
    @router.api_route(prefix + "/{resource:path}", methods=ROUTE_METHODS)
    async def dev_interface(request: Request):
        """Run a client-dev-interface operation."""
        target = request.url.path
        if request.url.query:
            target += "?" + request.url.query

        operation = DevInterfaceGate.resolve_operation(request.url.path)
        body = b""
        files: List[StagedFile] = []

        if operation is Operation.UPLOAD and request.method == "PUT":
            staged = await _stage_form(request)
            if not isinstance(staged, list):
                return outcome_to_response(staged)
            files = staged
        elif operation is not None:
            body = await request.body()

        op_request = OperationRequest.build(
            request.method,
            target,
            body=body,
            headers=dict(request.headers),
            files=files,
        )
        outcome = await DevInterfaceGate.handle(op_request)

        if operation is not None:
            await event_bus.publish_outcome(operation, outcome, target)

        return outcome_to_response(outcome)

    return router


__all__ = ["create_router", "outcome_to_response"]
