"""Shallow checkouts of remote component libraries."""

from __future__ import annotations

import logging
import re
import shutil
import time
from pathlib import Path
from typing import Optional

from git import Repo
from git.exc import GitCommandError, GitCommandNotFound

from .config import TEMP_DIR

logger = logging.getLogger(__name__)

_GIT_URL_PATTERNS = [
    re.compile(r"^https?://.+\.git$"),
    re.compile(r"^git@.+:.+\.git$"),
    re.compile(r"^https?://(github|gitlab)\.com/.+/.+$"),
]


class GitError(Exception):
    """Raised when a repository cannot be cloned."""


def is_git_url(value: str) -> bool:
    return any(p.match(value) for p in _GIT_URL_PATTERNS)


def project_name_from_url(url: str) -> str:
    """``https://github.com/acme/ui-kit.git`` -> ``ui-kit``."""
    match = re.search(r"[/:]([^/:]+?)(?:\.git)?/?$", url)
    name = match.group(1) if match else "unknown-project"
    return re.sub(r"[^a-zA-Z0-9_-]", "-", name).lower() or "unknown-project"


def clone_repository(url: str, dest: Optional[Path] = None) -> Path:
    """Shallow-clone the default branch of *url* and return the checkout directory.

    Raises:
        GitError: If ``git`` is missing or the clone fails.
    """
    if dest is None:
        dest = TEMP_DIR / f"{project_name_from_url(url)}-{int(time.time() * 1000)}"
    dest.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Cloning %s into %s", url, dest)
    try:
        Repo.clone_from(url, str(dest), depth=1, single_branch=True)
    except GitCommandNotFound as exc:
        raise GitError(f"git executable not found: {exc}") from exc
    except GitCommandError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(f"Failed to clone {url}: {stderr or exc}") from exc
    return dest


def cleanup(path: Path) -> None:
    """Remove a checkout; failures are logged, not raised."""
    try:
        if path.exists():
            shutil.rmtree(path)
            logger.debug("Removed checkout %s", path)
    except OSError as exc:
        logger.warning("Failed to remove %s: %s", path, exc)
