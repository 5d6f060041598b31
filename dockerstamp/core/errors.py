"""Exception hierarchy for dockerstamp."""

from typing import Optional


class DockerstampError(Exception):
    """Base class for all dockerstamp errors."""


class ConfigError(DockerstampError):
    """Configuration file or value could not be loaded."""


class MetadataError(DockerstampError):
    """Build metadata could not be collected from the environment."""


class GitError(MetadataError):
    """A git query failed.

    Attributes:
        command: The git command line that failed (if one was run)
        stderr: Diagnostic output from git, kept verbatim
    """

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class NotAGitRepositoryError(GitError):
    """Path is not inside a git work tree."""


class GitCommandError(GitError):
    """A git command exited non-zero or timed out."""


class GitUnavailableError(GitError):
    """The git executable could not be found."""


class BuildToolError(DockerstampError):
    """The external build tool failed.

    Attributes:
        command: Command line passed to the build tool
        returncode: Exit code of the build tool
        stderr: Captured diagnostic output, when it was captured
    """

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        returncode: int = 1,
        stderr: Optional[str] = None,
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class BuildFailedError(BuildToolError):
    """The build tool exited non-zero."""


class BuildToolNotFoundError(BuildToolError):
    """The build tool executable could not be found."""

    def __init__(self, message: str, command: Optional[list[str]] = None):
        # 127 mirrors the shell's "command not found"
        super().__init__(message, command=command, returncode=127)
