"""
DevInterfaceGate action handlers.

Every handler follows the same order: method check, parameter check,
path check, then the filesystem effect. Each returns exactly one Outcome.
Filesystem calls run in worker threads so concurrent requests interleave
freely.
"""

import asyncio
import errno
import json
import mimetypes
import os
from functools import wraps
from typing import Awaitable, Callable, Dict, List, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from devgate.shared.gate import GateLogger

from .errors import OperationError, TEXT_PLAIN
from .models import (
    DirEntry,
    ErrorCode,
    Operation,
    OperationRequest,
    Outcome,
    Success,
)
from .security import resolve_request_path

_log = GateLogger.get("DevInterfaceGate")

Handler = Callable[[OperationRequest, str], Awaitable[Outcome]]
ParamsT = TypeVar("ParamsT", bound=BaseModel)


# ==================== Parameter Shapes ====================


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EntryBody(_Params):
    """Body of create and delete."""
    filepath: str = Field(alias="Filepath")
    is_directory: StrictBool = Field(alias="isDirectory")


class MoveBody(_Params):
    """Body of move."""
    old_path: str = Field(alias="oldPath")
    new_path: str = Field(alias="newPath")


class FileQuery(_Params):
    """Query of edit, save and exists."""
    filepath: str = Field(alias="Filepath")


class DirectoryQuery(_Params):
    """Query of dir-snapshot."""
    directory: str = Field(alias="Directory")


def parse_body(request: OperationRequest, model: Type[ParamsT]) -> ParamsT:
    """Decode a JSON request body into model, or raise EBODY."""
    try:
        return model.model_validate_json(request.body or b"null")
    except ValidationError:
        raise OperationError(
            ErrorCode.EBODY, "request body has incorrect content type/format"
        ) from None


def parse_query(request: OperationRequest, model: Type[ParamsT]) -> ParamsT:
    """Validate query parameters against model, or raise EQUERY."""
    try:
        return model.model_validate(request.query)
    except ValidationError:
        raise OperationError(ErrorCode.EQUERY, "incorrect querystring") from None


# ==================== Handler Wrapper ====================


def operation(op: Operation, method: str) -> Callable[[Handler], Handler]:
    """
    Wrap a handler with the method check and OperationError translation.

    Args:
        op: Operation the handler implements (also the outcome tag)
        method: The only HTTP verb the operation accepts

    Returns:
        Decorator producing a handler that always returns an Outcome
    """
    def decorator(func: Handler) -> Handler:
        @wraps(func)
        async def wrapper(request: OperationRequest, root: str, *args) -> Outcome:
            if request.method != method:
                _log.info(f"{op.value}: rejected method {request.method}")
                return OperationError(
                    ErrorCode.EMET, "method not allowed", headers={"Allow": method}
                ).to_failure(op.value)
            try:
                return await func(request, root, *args)
            except OperationError as e:
                level = "warning" if e.status_code >= 500 else "info"
                getattr(_log, level)(f"{op.value} failed [{e.code.name}]: {e.message}")
                return e.to_failure(op.value)

        wrapper.operation = op
        wrapper.method = method
        return wrapper
    return decorator


def _text(op: Operation, message: str, status_code: int = 200, **headers: str) -> Success:
    return Success(
        status_code=status_code,
        headers={"Content-Type": TEXT_PLAIN, **headers},
        operation=op.value,
        body=message,
    )


# ==================== Filesystem Primitives ====================


def _create_empty_file(path: str) -> None:
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    try:
        os.close(fd)
    except OSError as e:
        raise OperationError(ErrorCode.ECLOSE, "server was unable to close file") from e


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _write_bytes(path: str, content: bytes) -> None:
    with open(path, "wb") as f:
        f.write(content)


def _snapshot(path: str) -> List[DirEntry]:
    entries = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False
            entries.append(DirEntry(name=entry.name, is_directory=is_dir))
    entries.sort(key=lambda e: (not e.is_directory, e.name.lower()))
    return entries


def _is_not_empty(e: OSError) -> bool:
    return e.errno in (errno.ENOTEMPTY, errno.EEXIST)


def guess_content_type(path: str) -> str:
    """Content type for a file path, from its extension."""
    content_type, _ = mimetypes.guess_type(path)
    return content_type or "application/octet-stream"


def content_type_matches(declared: str, path: str) -> bool:
    """
    Whether a declared Content-Type is plausible for the path's extension.

    Unknown extensions and generic binary uploads always match.
    """
    declared = declared.split(";", 1)[0].strip().lower()
    expected, _ = mimetypes.guess_type(path)
    if not declared or declared == "application/octet-stream" or expected is None:
        return True
    if declared == expected:
        return True
    return declared == "text/plain" and expected.startswith("text/")


# ==================== Handlers ====================


@operation(Operation.CREATE, "PUT")
async def handle_create(request: OperationRequest, root: str) -> Outcome:
    """Create an empty file or a directory; never overwrites."""
    params = parse_body(request, EntryBody)
    target = resolve_request_path(root, params.filepath, allow_root=False)
    kind = "directory" if params.is_directory else "file"

    try:
        if params.is_directory:
            await asyncio.to_thread(os.mkdir, target)
        else:
            await asyncio.to_thread(_create_empty_file, target)
    except FileExistsError:
        raise OperationError(ErrorCode.EENTEX, f"{kind} already exists in filesystem") from None
    except OSError as e:
        raise OperationError(ErrorCode.ECRENT, f"server was unable to create {kind}") from e

    _log.info(f"create: {kind} {target}")
    return _text(Operation.CREATE, f"{kind} successfully created", 201, Location=quote(params.filepath))


@operation(Operation.DELETE, "DELETE")
async def handle_delete(request: OperationRequest, root: str) -> Outcome:
    """Remove a file, or an empty directory."""
    params = parse_body(request, EntryBody)
    target = resolve_request_path(root, params.filepath, allow_root=False)
    kind = "directory" if params.is_directory else "file"

    try:
        if params.is_directory:
            await asyncio.to_thread(os.rmdir, target)
        else:
            await asyncio.to_thread(os.unlink, target)
    except FileNotFoundError:
        raise OperationError(ErrorCode.ENOENT, "system object does not exist") from None
    except OSError as e:
        if params.is_directory and _is_not_empty(e):
            raise OperationError(ErrorCode.ENOTEMPTY, "directory is not empty") from None
        raise OperationError(ErrorCode.ERMENT, f"{kind} could not be removed") from e

    _log.info(f"delete: {kind} {target}")
    return _text(Operation.DELETE, f"{kind} successfully deleted")


@operation(Operation.MOVE, "PATCH")
async def handle_move(request: OperationRequest, root: str) -> Outcome:
    """Rename an entry. An existing file at the destination is replaced."""
    params = parse_body(request, MoveBody)
    source = resolve_request_path(root, params.old_path, allow_root=False)
    destination = resolve_request_path(root, params.new_path, allow_root=False)

    try:
        await asyncio.to_thread(os.replace, source, destination)
    except FileNotFoundError:
        raise OperationError(ErrorCode.ENOENT, "filesystem entry does not exist") from None
    except OSError as e:
        if _is_not_empty(e):
            raise OperationError(
                ErrorCode.ENOTEMPTY, "attempted move to existing nonempty directory"
            ) from None
        raise OperationError(ErrorCode.EMOVE, "filesystem entry could not be moved") from e

    _log.info(f"move: {source} -> {destination}")
    return _text(Operation.MOVE, "move successful", Location=quote(params.new_path))


@operation(Operation.EDIT, "GET")
async def handle_edit(request: OperationRequest, root: str) -> Outcome:
    """Return a file's bytes with a content type guessed from its extension."""
    params = parse_query(request, FileQuery)
    target = resolve_request_path(root, params.filepath)

    try:
        content = await asyncio.to_thread(_read_bytes, target)
    except FileNotFoundError:
        raise OperationError(ErrorCode.ENOENT, "file does not exist", status_code=404) from None
    except IsADirectoryError:
        raise OperationError(ErrorCode.EISDIR, "filepath is a directory") from None
    except OSError as e:
        raise OperationError(ErrorCode.EREAD, "file could not be read") from e

    return Success(
        headers={"Content-Type": guess_content_type(target)},
        operation=Operation.EDIT.value,
        body=content,
    )


@operation(Operation.SAVE, "PUT")
async def handle_save(request: OperationRequest, root: str) -> Outcome:
    """Write the raw request body to a file, creating or truncating it."""
    params = parse_query(request, FileQuery)
    target = resolve_request_path(root, params.filepath, allow_root=False)

    declared = request.headers.get("content-type", "")
    if not content_type_matches(declared, target):
        raise OperationError(
            ErrorCode.EBODY,
            f"content type {declared} does not match file type {guess_content_type(target)}",
            status_code=415,
        )

    try:
        await asyncio.to_thread(_write_bytes, target, request.body)
    except IsADirectoryError:
        raise OperationError(ErrorCode.EISDIR, "filepath is a directory") from None
    except OSError as e:
        raise OperationError(ErrorCode.EWRITE, "file could not be written") from e

    _log.info(f"save: {len(request.body)} bytes to {target}")
    return _text(Operation.SAVE, "file successfully saved", Location=quote(params.filepath))


@operation(Operation.DIR_SNAPSHOT, "GET")
async def handle_dir_snapshot(request: OperationRequest, root: str) -> Outcome:
    """List the direct children of a directory as JSON."""
    params = parse_query(request, DirectoryQuery)
    target = resolve_request_path(root, params.directory)

    try:
        entries = await asyncio.to_thread(_snapshot, target)
    except FileNotFoundError:
        raise OperationError(
            ErrorCode.ENOENT, "directory does not exist", status_code=404
        ) from None
    except NotADirectoryError:
        raise OperationError(ErrorCode.ENOTDIR, "path is not a directory") from None
    except OSError as e:
        raise OperationError(ErrorCode.EREAD, "directory could not be read") from e

    body = json.dumps([entry.model_dump(by_alias=True) for entry in entries])
    return Success(
        headers={"Content-Type": "application/json"},
        operation=Operation.DIR_SNAPSHOT.value,
        body=body,
    )


@operation(Operation.EXISTS, "GET")
async def handle_exists(request: OperationRequest, root: str) -> Outcome:
    """Succeed if the path is accessible, else ENOENT with 404."""
    params = parse_query(request, FileQuery)
    target = resolve_request_path(root, params.filepath)

    if not await asyncio.to_thread(os.access, target, os.F_OK):
        raise OperationError(
            ErrorCode.ENOENT, "filesystem entry does not exist", status_code=404
        )
    return _text(Operation.EXISTS, "filesystem entry exists")


SIMPLE_HANDLERS: Dict[Operation, Handler] = {
    Operation.CREATE: handle_create,
    Operation.DELETE: handle_delete,
    Operation.MOVE: handle_move,
    Operation.EDIT: handle_edit,
    Operation.SAVE: handle_save,
    Operation.DIR_SNAPSHOT: handle_dir_snapshot,
    Operation.EXISTS: handle_exists,
}
