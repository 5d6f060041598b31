"""Git repository metadata collection."""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..core.errors import GitCommandError, GitUnavailableError, NotAGitRepositoryError

logger = logging.getLogger(__name__)

# Seconds to wait for a single git query
GIT_TIMEOUT = 10

# Abbreviation length for VCS_REF, independent of core.abbrev.
# git lengthens it only when the short hash is ambiguous.
SHORT_HASH_LENGTH = 7


class GitMetadata(BaseModel):
    """Git repository metadata."""

    commit: str = Field(..., description="Full commit hash of HEAD")
    short_commit: str = Field(..., description="Abbreviated commit hash of HEAD")
    toplevel: str = Field(..., description="Absolute path of the work tree root")

    @property
    def repo_name(self) -> str:
        """Name of the repository, taken from the work tree directory."""
        return Path(self.toplevel).name


class GitMetadataCollector:
    """
    Query git for the commit identifiers of a work tree.

    Every failure propagates: metadata for a build is never guessed.
    """

    def __init__(self, repo_path: Optional[Path] = None, git_binary: str = "git"):
        """
        Initialize git collector.

        Args:
            repo_path: Directory inside the work tree (default: current directory)
            git_binary: Name or path of the git executable
        """
        self.repo_path = Path(repo_path) if repo_path is not None else Path.cwd()
        self.git_binary = git_binary

    def _git(self, *args: str) -> subprocess.CompletedProcess:
        """
        Run a git command in the repository.

        Raises:
            GitUnavailableError: If git is not installed
            GitCommandError: If git does not finish within GIT_TIMEOUT
        """
        cmd = [self.git_binary, *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.repo_path)

        try:
            return subprocess.run(
                cmd,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT,
            )
        except FileNotFoundError as e:
            raise GitUnavailableError(
                f"git executable not found: {self.git_binary}", command=cmd
            ) from e
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                f"git command timed out after {GIT_TIMEOUT}s: {' '.join(cmd)}",
                command=cmd,
            ) from e

    def _run_git(self, *args: str) -> str:
        """Run a git command and return its stripped stdout.

        Raises:
            GitCommandError: If git exits non-zero
        """
        result = self._git(*args)
        if result.returncode != 0:
            raise GitCommandError(
                f"git command failed: {' '.join(result.args)}",
                command=list(result.args),
                stderr=result.stderr.strip(),
            )
        return result.stdout.strip()

    def _ensure_work_tree(self) -> None:
        if not self.repo_path.is_dir():
            raise NotAGitRepositoryError(f"Not a directory: {self.repo_path}")

        result = self._git("rev-parse", "--is-inside-work-tree")
        if result.returncode != 0:
            raise NotAGitRepositoryError(
                f"Not a git repository: {self.repo_path}",
                command=list(result.args),
                stderr=result.stderr.strip(),
            )

        if result.stdout.strip() != "true":
            raise NotAGitRepositoryError(
                f"Not inside a git work tree: {self.repo_path}"
            )

    def collect(self) -> GitMetadata:
        """
        Collect commit identifiers for HEAD.

        Returns:
            GitMetadata for the work tree containing repo_path

        Raises:
            NotAGitRepositoryError: If repo_path is not in a git work tree
            GitCommandError: If HEAD cannot be resolved (e.g. no commits yet)
            GitUnavailableError: If git is not installed
        """
        self._ensure_work_tree()

        metadata = GitMetadata(
            commit=self._run_git("rev-parse", "HEAD"),
            short_commit=self._run_git(
                "rev-parse", f"--short={SHORT_HASH_LENGTH}", "HEAD"
            ),
            toplevel=self._run_git("rev-parse", "--show-toplevel"),
        )
        logger.debug("Git HEAD %s in %s", metadata.short_commit, metadata.toplevel)
        return metadata


def collect_git_metadata(repo_path: Optional[Path] = None) -> GitMetadata:
    """
    Collect git repository metadata from a path.

    Args:
        repo_path: Directory inside the work tree (default: current directory)

    Returns:
        GitMetadata for HEAD
    """
    return GitMetadataCollector(repo_path).collect()
