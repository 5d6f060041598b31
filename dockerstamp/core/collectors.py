"""Build metadata collection: git + system + clock."""

import logging
from collections.abc import Callable
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..metadata.git import GitMetadataCollector
from ..metadata.system import SystemMetadataCollector
from .errors import MetadataError
from .record import BuildMetadataRecord

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current time as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


def format_build_date(moment: datetime) -> str:
    """Format a timestamp the way ``date -R`` does.

    Examples:
        >>> from datetime import timedelta, timezone
        >>> format_build_date(datetime(2018, 3, 27, 11, 51, 16,
        ...     tzinfo=timezone(timedelta(hours=8))))
        'Tue, 27 Mar 2018 11:51:16 +0800'
    """
    return format_datetime(moment)


class BuildMetadataCollector:
    """
    Assemble the build metadata record from the environment.

    Reads git state, the invoking user and the clock. Performs no writes and
    keeps no cache: each collect() call recomputes every value.
    """

    def __init__(
        self,
        repo_path: Optional[Path] = None,
        git_collector: Optional[GitMetadataCollector] = None,
        system_collector: Optional[SystemMetadataCollector] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize build metadata collector.

        Args:
            repo_path: Directory inside the git work tree (default: cwd)
            git_collector: Custom git collector (default: one for repo_path)
            system_collector: Custom system collector
            clock: Callable returning an aware datetime (default: local time)
        """
        self.git_collector = git_collector or GitMetadataCollector(repo_path)
        self.system_collector = system_collector or SystemMetadataCollector()
        self.clock = clock or local_now

    def collect(self) -> BuildMetadataRecord:
        """
        Collect a fresh build metadata record.

        Raises:
            MetadataError: If any value cannot be determined
        """
        git = self.git_collector.collect()
        system = self.system_collector.collect()

        try:
            record = BuildMetadataRecord(
                version=git.commit,
                build_date=format_build_date(self.clock()),
                vcs_url=git.repo_name,
                vcs_ref=git.short_commit,
                name=git.repo_name,
                vendor=system.user,
            )
        except ValidationError as e:
            raise MetadataError(f"Invalid build metadata: {e}") from e
        logger.info("Collected build metadata for %s@%s", record.name, record.vcs_ref)
        return record


def collect_build_metadata(repo_path: Optional[Path] = None) -> BuildMetadataRecord:
    """Collect build metadata for the work tree containing repo_path."""
    return BuildMetadataCollector(repo_path).collect()
