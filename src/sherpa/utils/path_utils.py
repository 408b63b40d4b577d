"""Path normalization and containment checks."""

import os
from pathlib import Path
from typing import Union

from ..core.errors import PathAccessError


class PathUtils:
    """Utilities for consistent path handling across platforms."""

    @staticmethod
    def expand_home(path: str) -> str:
        """Expand a leading ``~`` to the user's home directory."""
        if path == "~" or path.startswith("~/"):
            return os.path.expanduser(path)
        return path

    @staticmethod
    def resolve_root(directory: Union[str, Path]) -> Path:
        """Resolve an allowed root to its absolute, symlink-free form."""
        return Path(PathUtils.expand_home(str(directory))).resolve()

    @staticmethod
    def is_within(path: Path, root: Path) -> bool:
        """True if ``path`` is ``root`` or one of its descendants."""
        return path == root or root in path.parents

    @staticmethod
    def validate_path(requested: str, root: Path) -> Path:
        """
        Resolve ``requested`` against ``root`` and check containment.

        Relative paths are taken relative to ``root``. The fully resolved
        (symlink-followed) path must equal or descend from ``root``. A path
        that does not exist yet is accepted when its resolved parent is
        contained.

        Args:
            requested: Path as supplied by the caller
            root: Resolved allowed root

        Returns:
            The resolved path to operate on

        Raises:
            PathAccessError: Path escapes the root, its parent is missing or
                it cannot name a file (e.g. an embedded NUL byte)
        """
        try:
            return PathUtils._validate(requested, root)
        except ValueError as e:
            raise PathAccessError(f"Invalid path: {e}") from e

    @staticmethod
    def _validate(requested: str, root: Path) -> Path:
        # Path.exists() reports False for unrepresentable paths
        if "\x00" in requested:
            raise ValueError("embedded null byte")

        expanded = Path(PathUtils.expand_home(requested))
        absolute = expanded if expanded.is_absolute() else root / expanded
        absolute = Path(os.path.normpath(absolute))

        if absolute.exists():
            real = absolute.resolve()
            if not PathUtils.is_within(real, root):
                raise PathAccessError(
                    f"Access denied - path outside allowed directories: {real} not in {root}"
                )
            return real

        parent = absolute.parent
        if not parent.exists():
            raise PathAccessError(f"Parent directory does not exist: {parent}")
        real_parent = parent.resolve()
        if not PathUtils.is_within(real_parent, root):
            raise PathAccessError(
                "Access denied - parent directory outside allowed directories"
            )
        return real_parent / absolute.name
