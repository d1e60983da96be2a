from __future__ import annotations

import shutil
from pathlib import Path

import structlog

from ndpdeploy.core.errors import ProvisioningError
from ndpdeploy.runtime.process import run_command

logger = structlog.get_logger()


class GitSourceFetcher:
    """SourceFetcher that clones with git and never re-clones or deletes."""

    def __init__(self, git_path: str | None = None) -> None:
        self._git = git_path or shutil.which("git") or "git"

    def ensure_cloned(self, repo_url: str, dest: Path) -> bool:
        if (dest / ".git").is_dir():
            logger.info("source_reused", repo=repo_url, dest=str(dest))
            return False
        if dest.exists() and any(dest.iterdir()):
            raise ProvisioningError(
                "Service directory exists but is not a git checkout",
                details={"dest": str(dest), "repo": repo_url},
            )

        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info("source_cloning", repo=repo_url, dest=str(dest))
        run_command([self._git, "clone", repo_url, str(dest)])
        return True
