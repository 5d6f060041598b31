"""Dockerstamp - label container images with build provenance from git."""

__version__ = "0.1.0"

from .core.collectors import collect_build_metadata
from .core.record import BuildMetadataRecord

__all__ = ["BuildMetadataRecord", "collect_build_metadata"]
