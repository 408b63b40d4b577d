"""Clone remote repositories into the local cache."""

import asyncio
import shutil
from pathlib import Path
from typing import Union

from .logging_config import get_logger

logger = get_logger(__name__)

GIT_URL_PREFIXES = ("http://", "https://", "git@", "git://")


def is_git_url(url: str) -> bool:
    """Check whether ``url`` points at a remote git repository."""
    return url.startswith(GIT_URL_PREFIXES)


def repository_name(url: str) -> str:
    """
    Derive the checkout directory name from a git URL.

    >>> repository_name("https://github.com/owner/project.git")
    'project'
    >>> repository_name("git@github.com:owner/project")
    'project'
    """
    name = url.rstrip("/").replace(":", "/").split("/")[-1]
    if name.endswith(".git"):
        name = name[:-4]
    if not name:
        raise ValueError(f"Cannot derive a repository name from '{url}'")
    return name


async def clone_repository(url: str, cache_dir: Union[str, Path]) -> Path:
    """
    Clone ``url`` into ``<cache_dir>/<repository name>``.

    An existing checkout is reused as-is. A failed clone leaves no partial
    directory behind.

    Returns:
        Path of the local checkout

    Raises:
        RuntimeError: git is unavailable or the clone failed
    """
    cache_dir = Path(cache_dir).expanduser()
    target = cache_dir / repository_name(url)

    if target.exists():
        logger.info(f"Using cached checkout {target}")
        return target

    cache_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Cloning {url} into {target}")

    try:
        process = await asyncio.create_subprocess_exec(
            "git", "clone", url, str(target),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise RuntimeError(f"Failed to run git: {e}") from e

    _, stderr = await process.communicate()

    if process.returncode != 0:
        if target.exists():
            shutil.rmtree(target, ignore_errors=True)
        message = stderr.decode("utf-8", errors="replace").strip()
        raise RuntimeError(f"Failed to clone repository: {message}")

    return target
