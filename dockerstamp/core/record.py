"""Build metadata record schema and serialization."""

import json
from collections.abc import Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import MetadataError

# Canonical build-arg order, matching the ARG declarations in the Dockerfile
BUILD_ARG_NAMES = ("VERSION", "BUILD_DATE", "VCS_URL", "VCS_REF", "NAME", "VENDOR")

_FIELD_BY_ARG = {
    "VERSION": "version",
    "BUILD_DATE": "build_date",
    "VCS_URL": "vcs_url",
    "VCS_REF": "vcs_ref",
    "NAME": "name",
    "VENDOR": "vendor",
}


class BuildMetadataRecord(BaseModel):
    """Provenance values passed to the image build as build arguments.

    Computed fresh for every build invocation and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1, description="Full commit hash")
    build_date: str = Field(..., min_length=1, description="RFC 2822 build timestamp")
    vcs_url: str = Field(..., min_length=1, description="Repository name")
    vcs_ref: str = Field(..., min_length=1, description="Abbreviated commit hash")
    name: str = Field(..., min_length=1, description="Human-readable project name")
    vendor: str = Field(..., min_length=1, description="User who ran the build")

    @model_validator(mode="after")
    def validate_ref_is_prefix(self) -> "BuildMetadataRecord":
        """Validate VCS_REF is a strict prefix of VERSION."""
        if len(self.vcs_ref) >= len(self.version) or not self.version.startswith(
            self.vcs_ref
        ):
            raise ValueError(
                f"VCS_REF {self.vcs_ref!r} is not an abbreviation of "
                f"VERSION {self.version!r}"
            )
        return self

    def to_build_args(self) -> dict[str, str]:
        """Return the record as ``KEY -> value`` pairs in canonical order."""
        return {arg: getattr(self, field) for arg, field in _FIELD_BY_ARG.items()}

    def to_env_lines(self) -> list[str]:
        """Return one ``KEY=value`` line per key."""
        return [f"{key}={value}" for key, value in self.to_build_args().items()]

    def to_json(self, indent: int = 2) -> str:
        """
        Serialize record to JSON keyed by build-arg name.

        Args:
            indent: JSON indentation level

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_build_args(), indent=indent)

    def to_yaml(self) -> str:
        """Serialize record to YAML keyed by build-arg name."""
        return yaml.dump(
            self.to_build_args(), default_flow_style=False, sort_keys=False
        )

    @classmethod
    def from_build_args(cls, args: Mapping[str, str]) -> "BuildMetadataRecord":
        """
        Build a record from a ``KEY -> value`` mapping.

        Args:
            args: Mapping holding exactly the six build-arg names

        Returns:
            Validated BuildMetadataRecord

        Raises:
            MetadataError: If keys are missing or unknown, or values are invalid
        """
        missing = [key for key in BUILD_ARG_NAMES if key not in args]
        unknown = sorted(set(args) - set(BUILD_ARG_NAMES))
        if missing or unknown:
            raise MetadataError(
                f"Build metadata keys do not match: missing={missing}, "
                f"unknown={unknown}"
            )

        try:
            return cls(**{_FIELD_BY_ARG[key]: args[key] for key in BUILD_ARG_NAMES})
        except ValidationError as e:
            raise MetadataError(f"Invalid build metadata: {e}") from e
