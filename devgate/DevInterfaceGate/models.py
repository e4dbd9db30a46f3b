"""
DevInterfaceGate Pydantic models.

Defines the operation and error enumerations, the Success/Failure outcome
pair, the inbound request shape, and the gate configuration.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Operation(str, Enum):
    """Operations reachable under the routing prefix."""
    CREATE = "create"
    DELETE = "delete"
    MOVE = "move"
    EDIT = "edit"
    SAVE = "save"
    DIR_SNAPSHOT = "dir-snapshot"
    EXISTS = "exists"
    UPLOAD = "upload"


class ErrorCode(str, Enum):
    """Symbolic failure codes. Member names are the codes clients match on."""
    EMET = "INCORRECT_METHOD"
    EBODY = "INCORRECT_BODY"
    EQUERY = "INCORRECT_QUERY"
    EPATH = "INVALID_PATH"
    ENOENT = "ENTRY_NONEXISTENT"
    EENTEX = "ENTRY_EXISTS"
    ENOTEMPTY = "DIRECTORY_NOT_EMPTY"
    ERMENT = "ENTRY_NOT_REMOVED"
    ECRENT = "ENTRY_NOT_CREATED"
    ECLOSE = "ENTRY_NOT_CLOSED"
    EMOVE = "ENTRY_NOT_MOVED"
    EREAD = "ENTRY_NOT_READ"
    EWRITE = "ENTRY_NOT_WRITTEN"
    EISDIR = "ENTRY_IS_DIRECTORY"
    ENOTDIR = "ENTRY_NOT_DIRECTORY"
    ENORES = "RESOURCE_NONEXISTENT"


class Success(BaseModel):
    """Successful operation with recommended response parameters."""
    success: Literal[True] = True
    status_code: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    operation: str
    body: Union[bytes, str] = ""

    def __bool__(self) -> bool:
        return True


class Failure(BaseModel):
    """Failed operation. `code` alone decides how a caller handles it."""
    success: Literal[False] = False
    code: ErrorCode
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    operation: str
    message: str = ""
    locations: Optional[Dict[str, str]] = Field(
        default=None,
        description="Upload only: relative path -> current absolute location"
    )

    def __bool__(self) -> bool:
        return False


Outcome = Union[Success, Failure]


class StagedFile(BaseModel):
    """An uploaded file already written to the staging directory."""
    relative_path: str = Field(description="Intended path relative to the root")
    temp_path: str = Field(description="Absolute path inside the staging directory")


class OperationRequest(BaseModel):
    """Transport-neutral request handed to the dispatcher."""
    method: str
    target: str = Field(description="Path portion of the request target")
    query: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    headers: Dict[str, str] = Field(default_factory=dict)
    files: List[StagedFile] = Field(default_factory=list)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("headers")
    @classmethod
    def _lower_header_names(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {k.lower(): v for k, v in value.items()}

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        files: Optional[List[StagedFile]] = None,
    ) -> "OperationRequest":
        """Create a request from a raw target such as '/prefix/edit?Filepath=/a'."""
        parts = urlsplit(target)
        return cls(
            method=method,
            target=parts.path,
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            body=body,
            headers=headers or {},
            files=files or [],
        )


class DirEntry(BaseModel):
    """One direct child in a dir-snapshot listing."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_directory: bool = Field(alias="isDirectory")


class DevInterfaceConfig(BaseModel):
    """DevInterfaceGate configuration."""
    root: str = Field(description="Directory no operation may escape")
    tmp_dir: str = Field(description="Staging directory for uploads")
    route_prefix: str = Field(default="/client-dev-interface")

    @field_validator("root", "tmp_dir")
    @classmethod
    def _absolute(cls, value: str) -> str:
        return os.path.abspath(os.path.expanduser(value))

    @field_validator("route_prefix")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = "/" + value.strip("/")
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")
