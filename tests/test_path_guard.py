"""
Tests for DevInterfaceGate path containment.
"""

import os
import pytest

from devgate.DevInterfaceGate.errors import OperationError
from devgate.DevInterfaceGate.models import ErrorCode
from devgate.DevInterfaceGate.security import (
    is_contained,
    join_root,
    normalize_path,
    resolve_request_path,
)


class TestIsContained:
    """Tests for the lexical containment check."""

    def test_root_contains_itself(self, root_dir):
        """The root is inside the root."""
        assert is_contained(str(root_dir), str(root_dir)) is True

    def test_descendant(self, root_dir):
        """Nested paths are inside."""
        assert is_contained(str(root_dir / "a" / "b.txt"), str(root_dir)) is True

    def test_parent_traversal(self, root_dir):
        """'..' segments that climb out are rejected."""
        assert is_contained(str(root_dir / ".." / "x"), str(root_dir)) is False

    def test_traversal_that_returns(self, root_dir):
        """'..' that stays inside is accepted."""
        assert is_contained(str(root_dir / "a" / ".." / "b"), str(root_dir)) is True

    def test_sibling_with_common_prefix(self, temp_dir):
        """/x/root2 is not inside /x/root."""
        assert is_contained(str(temp_dir / "root2"), str(temp_dir / "root")) is False

    def test_trailing_separator_on_root(self, root_dir):
        """A root given with a trailing separator behaves the same."""
        assert is_contained(str(root_dir / "a"), str(root_dir) + os.sep) is True

    def test_never_raises(self, root_dir):
        """Malformed input is simply not contained."""
        assert is_contained(None, str(root_dir)) is False


class TestJoinRoot:
    """Tests for joining client paths onto the root."""

    def test_leading_slash_is_relative(self, root_dir):
        """'/a' and 'a' name the same entry."""
        assert join_root(str(root_dir), "/a") == join_root(str(root_dir), "a")

    def test_empty_path_is_root(self, root_dir):
        """'' and '/' name the root."""
        assert join_root(str(root_dir), "") == str(root_dir)
        assert join_root(str(root_dir), "/") == str(root_dir)


class TestResolveRequestPath:
    """Tests for resolve_request_path."""

    def test_resolves_inside_root(self, root_dir):
        """Valid paths resolve to normalized absolute paths."""
        resolved = resolve_request_path(str(root_dir), "/dir/../file.txt")

        assert resolved == normalize_path(str(root_dir / "file.txt"))

    @pytest.mark.parametrize("path", ["/../escape", "../../etc/passwd", "a/../../b"])
    def test_escape_is_rejected(self, root_dir, path):
        """Paths that leave the root raise EPATH."""
        with pytest.raises(OperationError) as exc_info:
            resolve_request_path(str(root_dir), path)

        assert exc_info.value.code == ErrorCode.EPATH
        assert exc_info.value.status_code == 400

    def test_null_byte_is_rejected(self, root_dir):
        """Embedded NUL bytes raise EPATH."""
        with pytest.raises(OperationError) as exc_info:
            resolve_request_path(str(root_dir), "/a\x00b")

        assert exc_info.value.code == ErrorCode.EPATH

    def test_root_allowed_by_default(self, root_dir):
        """Reading operations may target the root itself."""
        assert resolve_request_path(str(root_dir), "/") == normalize_path(str(root_dir))

    def test_root_rejected_when_disallowed(self, root_dir):
        """Mutating operations may not target the root itself."""
        with pytest.raises(OperationError) as exc_info:
            resolve_request_path(str(root_dir), "/sub/..", allow_root=False)

        assert exc_info.value.code == ErrorCode.EPATH
