"""
DevInterfaceGate security module.

Path containment: every client-supplied path is checked against the
configured root before it reaches the filesystem.
"""

import os

from .errors import OperationError
from .models import ErrorCode


def normalize_path(path: str) -> str:
    """
    Normalize a path to its absolute form with `.` and `..` removed.

    Symlinks are not resolved; containment is lexical.

    Args:
        path: Raw path string

    Returns:
        Normalized absolute path
    """
    return os.path.abspath(os.path.normpath(path))


def _with_trailing_sep(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


def is_contained(candidate_path: str, root_path: str) -> bool:
    """
    Check whether candidate_path lies inside (or is) root_path.

    Both paths are normalized and given a single trailing separator
    before the prefix comparison, so `/root2` is not inside `/root`.
    Never raises.

    Args:
        candidate_path: Path to test
        root_path: Containing directory

    Returns:
        True if the candidate is the root or one of its descendants
    """
    try:
        candidate = _with_trailing_sep(normalize_path(candidate_path))
        root = _with_trailing_sep(normalize_path(root_path))
    except (TypeError, ValueError):
        return False
    return candidate.startswith(root)


def join_root(root: str, relative_path: str) -> str:
    """
    Join a client path onto the root.

    Leading separators are stripped, so "/a" and "a" both name <root>/a.
    The result is not normalized; pass it through is_contained first.
    """
    relative_path = relative_path.lstrip("/\\")
    if not relative_path:
        return root
    return os.path.join(root, relative_path)


def resolve_request_path(
    root: str,
    relative_path: str,
    allow_root: bool = True,
) -> str:
    """
    Resolve a client-supplied path against the root, or reject it.

    Args:
        root: Absolute root directory
        relative_path: Path as sent by the client
        allow_root: Whether the root directory itself is an acceptable target

    Returns:
        Normalized absolute path inside the root

    Raises:
        OperationError: EPATH if the path escapes the root
    """
    candidate = join_root(root, relative_path)
    if "\x00" in candidate or not is_contained(candidate, root):
        raise OperationError(ErrorCode.EPATH, f"invalid filepath: {relative_path}")

    resolved = normalize_path(candidate)
    if not allow_root and resolved == normalize_path(root):
        raise OperationError(ErrorCode.EPATH, "operation not allowed on the root directory")
    return resolved
