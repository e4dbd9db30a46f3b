"""
DevInterfaceGate upload handling.

Uploaded parts are first staged into the configured staging directory,
then committed one by one into the root. The commit is not atomic across
files: when a file cannot be committed the loop stops and the failure
carries the Locations Map, telling the caller where every file of the
request currently is.
"""

import asyncio
import os
import shutil
import tempfile
from typing import BinaryIO, Dict, Iterable, List, Tuple

from devgate.shared.gate import GateLogger, PathUtils

from .errors import OperationError, TEXT_PLAIN
from .models import ErrorCode, Operation, OperationRequest, Outcome, StagedFile, Success
from .operations import operation
from .security import is_contained, join_root, normalize_path

_log = GateLogger.get("DevInterfaceGate")

UPLOAD_SUCCESS_MESSAGE = "file(s) successfully uploaded"


def _stage_one(source: BinaryIO, tmp_dir: str) -> str:
    fd, temp_path = tempfile.mkstemp(prefix="upload_", dir=tmp_dir)
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(source, out)
    except BaseException:
        os.unlink(temp_path)
        raise
    return temp_path


async def commit_staged_files(files: List[StagedFile], root: str) -> Dict[str, str]:
    """
    Move staged files into the root, in list order.

    Args:
        files: Staged files of one request
        root: Absolute root directory

    Returns:
        The final Locations Map (relative path -> absolute final path)

    Raises:
        OperationError: EPATH, ENOENT or EMOVE carrying the Locations Map
            as it stood when the failing file was reached
    """
    locations = {staged.relative_path: staged.temp_path for staged in files}

    for staged in files:
        candidate = join_root(root, staged.relative_path)
        if "\x00" in candidate or not is_contained(candidate, root):
            _log.error(f"upload halted, invalid filepath {staged.relative_path}: {locations}")
            raise OperationError.with_locations(ErrorCode.EPATH, locations)

        destination = normalize_path(candidate)
        try:
            await asyncio.to_thread(os.replace, staged.temp_path, destination)
        except OSError as e:
            source_gone = not await asyncio.to_thread(os.path.lexists, staged.temp_path)
            code = ErrorCode.ENOENT if source_gone else ErrorCode.EMOVE
            _log.error(
                f"upload halted, {staged.relative_path} not moved ({e}): {locations}"
            )
            raise OperationError.with_locations(code, locations) from e

        locations[staged.relative_path] = destination

    return locations


class UploadHandler:
    """Stages and commits multi-file uploads for DevInterfaceGate."""

    def __init__(self, tmp_dir: str):
        """
        Initialize the upload handler.

        Args:
            tmp_dir: Staging directory uploaded parts are written to
        """
        self.tmp_dir = normalize_path(tmp_dir)
        PathUtils.ensure_dirs(self.tmp_dir)

    async def stage(self, parts: Iterable[Tuple[str, BinaryIO]]) -> List[StagedFile]:
        """
        Write decoded form parts to the staging directory.

        Args:
            parts: (intended relative path, readable file object) pairs

        Returns:
            One StagedFile per part, in input order

        Raises:
            OperationError: EWRITE if a part cannot be written; parts staged
                before the failing one are removed again
        """
        staged: List[StagedFile] = []
        for relative_path, source in parts:
            try:
                temp_path = await asyncio.to_thread(_stage_one, source, self.tmp_dir)
            except OSError as e:
                _log.warning(f"staging {relative_path} failed: {e}")
                await self.discard(staged)
                raise OperationError(
                    ErrorCode.EWRITE, "uploaded file could not be staged"
                ) from e
            staged.append(StagedFile(relative_path=relative_path, temp_path=temp_path))
        return staged

    def check_shape(self, files: List[StagedFile]) -> None:
        """Reject an upload with no files or a repeated filepath (EBODY)."""
        if not files:
            raise OperationError(ErrorCode.EBODY, "request body has incorrect format")

        seen = set()
        for staged in files:
            if not staged.relative_path or staged.relative_path in seen:
                raise OperationError(
                    ErrorCode.EBODY,
                    f"missing or repeated filepath in upload: {staged.relative_path!r}",
                )
            seen.add(staged.relative_path)

    async def discard(self, files: Iterable[StagedFile]) -> None:
        """
        Remove the staged files of an upload that never reached the commit loop.

        Only files inside the staging directory are touched.
        """
        for staged in files:
            if not is_contained(staged.temp_path, self.tmp_dir):
                _log.warning(f"not discarding {staged.temp_path}: outside {self.tmp_dir}")
                continue
            try:
                await asyncio.to_thread(os.unlink, staged.temp_path)
            except FileNotFoundError:
                continue
            except OSError as e:
                _log.warning(f"could not remove staged file {staged.temp_path}: {e}")

    async def __call__(self, request: OperationRequest, root: str) -> Outcome:
        outcome = await _upload(request, root, self)
        # Rejected before the commit loop: nothing moved, so the staged files go.
        if not outcome and outcome.locations is None:
            await self.discard(request.files)
        return outcome


@operation(Operation.UPLOAD, "PUT")
async def _upload(request: OperationRequest, root: str, handler: UploadHandler) -> Outcome:
    handler.check_shape(request.files)
    await commit_staged_files(request.files, root)
    _log.info(f"upload: committed {len(request.files)} file(s)")
    return Success(
        headers={"Content-Type": TEXT_PLAIN},
        operation=Operation.UPLOAD.value,
        body=UPLOAD_SUCCESS_MESSAGE,
    )
