"""System metadata collection."""

import getpass
import logging

from pydantic import BaseModel, Field

from ..core.errors import MetadataError

logger = logging.getLogger(__name__)


class SystemMetadata(BaseModel):
    """System metadata."""

    user: str = Field(..., min_length=1, description="Login name of the invoking user")


class SystemMetadataCollector:
    """Read the identity of the user running the build."""

    def collect(self) -> SystemMetadata:
        """
        Collect system metadata.

        Raises:
            MetadataError: If no user name can be resolved
        """
        try:
            user = getpass.getuser()
        except (KeyError, OSError) as e:
            # getpass falls back to the pwd database, which raises KeyError
            raise MetadataError(f"Cannot determine current user: {e}") from e

        if not user:
            raise MetadataError("Cannot determine current user: empty login name")

        return SystemMetadata(user=user)


def collect_system_metadata() -> SystemMetadata:
    """Collect system metadata (invoking user)."""
    return SystemMetadataCollector().collect()
