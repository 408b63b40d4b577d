"""
Cascading .gitignore resolution.

Every directory between the scope root (the enclosing git work tree, or
the filesystem root outside of one) and a listed directory may carry a
``.gitignore``. Rules are re-rooted at the directory that declared them so
that a nested file only ever affects its own subtree, then merged in
root-first order so later rules (including negations) win.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import pathspec
from pathspec.patterns import GitWildMatchPattern

from .logging_config import get_logger

logger = get_logger(__name__)

IGNORE_FILE = ".gitignore"
VCS_MARKER = ".git"

# Version-control metadata, hidden regardless of ignore rules
EXCLUDED_DIRECTORIES = frozenset({".git", ".hg", ".svn"})


def find_git_root(directory: Path) -> Optional[Path]:
    """Nearest ancestor of ``directory`` (inclusive) holding a ``.git`` directory."""
    current = Path(os.path.abspath(directory))
    while True:
        if (current / VCS_MARKER).is_dir():
            return current
        if current.parent == current:
            return None
        current = current.parent


def filesystem_root(directory: Path) -> Path:
    """The filesystem root (or drive anchor) containing ``directory``."""
    return Path(Path(os.path.abspath(directory)).anchor)


def find_scope_root(directory: Path) -> Path:
    """Directory that ignore patterns and listed paths are relative to."""
    return find_git_root(directory) or filesystem_root(directory)


def directory_chain(scope_root: Path, directory: Path) -> List[Path]:
    """Directories from ``scope_root`` down to ``directory``, root-first."""
    directory = Path(os.path.abspath(directory))
    chain = [scope_root]
    current = scope_root
    for part in directory.relative_to(scope_root).parts:
        current = current / part
        chain.append(current)
    return chain


def relative_posix(path: Path, scope_root: Path) -> str:
    """``path`` relative to ``scope_root`` with forward slashes ("" for the root)."""
    relative = Path(os.path.abspath(path)).relative_to(scope_root).as_posix()
    return "" if relative == "." else relative


def escape_directory(relative_dir: str) -> str:
    """
    Escape a scope-relative directory so it matches only itself as a pattern prefix.

    >>> escape_directory("docs/[draft]/!notes")
    'docs/\\\\[draft\\\\]/\\\\!notes'
    """
    return "/".join(
        GitWildMatchPattern.escape(part.replace("\\", "\\\\"))
        for part in relative_dir.split("/")
    )


def reroot_pattern(pattern: str, relative_dir: str) -> str:
    """
    Root a pattern read from ``<relative_dir>/.gitignore`` at that directory.

    Slash-free patterns match at any depth below the declaring directory;
    patterns containing a slash are anchored to it. Glob characters in the
    directory name are matched literally.
    """
    if not relative_dir:
        return pattern

    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    prefix = escape_directory(relative_dir)

    if "/" in body.rstrip("/"):
        rooted = f"{prefix}/{body.lstrip('/')}"
    else:
        rooted = f"{prefix}/**/{body}"

    return f"!{rooted}" if negated else rooted


def parse_ignore_file(path: Path) -> List[str]:
    """Patterns of an ignore file, without blank lines and comments."""
    content = path.read_text(encoding="utf-8")
    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


@dataclass
class IgnoreRuleSet:
    """Accumulated, re-rooted ignore patterns for one listed directory."""

    scope_root: Path
    patterns: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._spec: Optional[pathspec.PathSpec] = None

    def extend(self, patterns: List[str]) -> None:
        """Append patterns; later patterns take precedence."""
        self.patterns.extend(patterns)
        self._spec = None

    @property
    def spec(self) -> pathspec.PathSpec:
        if self._spec is None:
            self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)
        return self._spec

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Check a scope-relative path against the merged rules.

        Directories are tested with a trailing slash so that directory-only
        patterns (``build/``) apply to them.
        """
        if not self.patterns or not relative_path:
            return False
        candidate = f"{relative_path}/" if is_dir else relative_path
        return self.spec.match_file(candidate)

    @classmethod
    def for_directory(cls, directory: Path) -> "IgnoreRuleSet":
        """
        Resolve the rules that apply to the entries of ``directory``.

        A directory already excluded by the rules of its ancestors does not
        contribute its own ignore file.
        """
        scope_root = find_scope_root(directory)
        rules = cls(scope_root=scope_root)

        for current in directory_chain(scope_root, directory):
            relative_dir = relative_posix(current, scope_root)
            if rules.is_ignored(relative_dir, is_dir=True):
                continue

            ignore_file = current / IGNORE_FILE
            if not ignore_file.is_file():
                continue
            try:
                patterns = parse_ignore_file(ignore_file)
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping unreadable ignore file {ignore_file}: {e}")
                continue
            rules.extend([reroot_pattern(p, relative_dir) for p in patterns])

        return rules
