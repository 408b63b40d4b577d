"""Directory tree rendering and FileNode tree building."""

import os
from pathlib import Path
from typing import List, Optional, Union

from ..core.models import FileNode
from .ignore_rules import EXCLUDED_DIRECTORIES, IgnoreRuleSet, relative_posix
from .logging_config import get_logger

logger = get_logger(__name__)


class TreeResolver:
    """Lists directories with cascading .gitignore rules applied.

    Two views share the same filtering: ``render_flat`` draws an indented
    text tree for tool output, ``build_tree`` returns ``FileNode`` objects
    for directory browsers.
    """

    INDENT = "│   "
    BRANCH = "├── "
    LAST_BRANCH = "└── "
    LAST_INDENT = "    "

    def __init__(self, max_depth: Optional[int] = None):
        self.max_depth = max_depth

    def _depth_limit(self, max_depth: Optional[int]) -> Optional[int]:
        return self.max_depth if max_depth is None else max_depth

    @staticmethod
    def list_entries(directory: Union[str, Path]) -> List[os.DirEntry]:
        """
        Immediate entries of ``directory`` that survive ignore rules.

        Entries are sorted by name. Version-control metadata directories are
        always dropped. Symlinks are kept as leaves; sockets, fifos and
        other special files are dropped.

        Raises:
            OSError: The directory cannot be read
        """
        directory = Path(os.path.abspath(directory))
        rules = IgnoreRuleSet.for_directory(directory)

        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)

        kept = []
        for entry in entries:
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_dir and entry.name in EXCLUDED_DIRECTORIES:
                continue
            if not (is_dir or entry.is_file(follow_symlinks=False) or entry.is_symlink()):
                continue
            relative = relative_posix(Path(entry.path), rules.scope_root)
            if rules.is_ignored(relative, is_dir=is_dir):
                continue
            kept.append(entry)
        return kept

    # Flat text rendering

    def render_flat(self, path: Union[str, Path], max_depth: Optional[int] = None) -> str:
        """
        Render ``path`` as a box-drawing text tree.

        Args:
            path: Directory to render
            max_depth: Levels of entries to list (None for unbounded)

        Returns:
            Tree text; the first line is the directory's name
        """
        path = Path(os.path.abspath(path))
        lines = [path.name or str(path)]
        self._render_directory(path, "", 0, self._depth_limit(max_depth), lines)
        return "\n".join(lines)

    def _render_directory(self, directory: Path, prefix: str, level: int,
                          max_depth: Optional[int], lines: List[str]) -> None:
        if max_depth is not None and level >= max_depth:
            return

        try:
            entries = self.list_entries(directory)
        except OSError as e:
            lines.append(f"{prefix}[Error reading directory: {e}]")
            return

        for index, entry in enumerate(entries):
            is_last = index == len(entries) - 1
            lines.append(prefix + (self.LAST_BRANCH if is_last else self.BRANCH) + entry.name)
            if entry.is_dir(follow_symlinks=False):
                next_prefix = prefix + (self.LAST_INDENT if is_last else self.INDENT)
                self._render_directory(Path(entry.path), next_prefix, level + 1, max_depth, lines)

    # Structured tree

    def build_tree(self, path: Union[str, Path], base_dir: Optional[Union[str, Path]] = None,
                   max_depth: Optional[int] = None) -> FileNode:
        """
        Build a FileNode tree for ``path``.

        Node paths are relative to ``base_dir`` (defaults to ``path``); the
        base itself is ".".

        Raises:
            OSError: ``path`` does not exist or cannot be read
        """
        path = Path(os.path.abspath(path))
        base = Path(os.path.abspath(base_dir)) if base_dir is not None else path

        if not path.is_dir():
            if not path.exists() and not path.is_symlink():
                raise FileNotFoundError(f"No such file or directory: {path}")
            return FileNode(path=self._relative(path, base), name=path.name, type="file")

        root = FileNode(path=self._relative(path, base), name=path.name, type="directory")
        self._build_children(root, path, base, 0, self._depth_limit(max_depth), is_root=True)
        return root

    def _build_children(self, node: FileNode, directory: Path, base: Path, level: int,
                        max_depth: Optional[int], is_root: bool = False) -> None:
        if max_depth is not None and level >= max_depth:
            return

        try:
            entries = self.list_entries(directory)
        except OSError as e:
            if is_root:
                raise
            logger.warning(f"Cannot read directory {directory}: {e}")
            return

        for entry in entries:
            entry_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                child = FileNode(path=self._relative(entry_path, base), name=entry.name, type="directory")
                self._build_children(child, entry_path, base, level + 1, max_depth)
            else:
                child = FileNode(path=self._relative(entry_path, base), name=entry.name, type="file")
            node.children.append(child)

    @staticmethod
    def _relative(path: Path, base: Path) -> str:
        relative = os.path.relpath(path, base)
        return Path(relative).as_posix()
