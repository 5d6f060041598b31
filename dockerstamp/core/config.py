"""Build configuration: defaults, YAML file and environment overrides."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "dockerstamp.yaml"
ENV_PREFIX = "DOCKERSTAMP_"


class StampConfig(BaseModel):
    """Fixed values of a build: image tag, context and descriptive labels."""

    model_config = ConfigDict(extra="forbid")

    image_tag: str = Field(default="hello-world", min_length=1, description="Image tag")
    context: str = Field(default=".", min_length=1, description="Build context path")
    dockerfile: Optional[str] = Field(
        None, description="Dockerfile path (default: docker's own default)"
    )
    docker_binary: str = Field(default="docker", min_length=1, description="Build tool")
    label_namespace: str = Field(
        default="org.label-schema", min_length=1, description="Label key prefix"
    )
    description: str = Field(
        default="Example of multi-stage docker build", description="Image description"
    )
    url: Optional[str] = Field(
        None, description="Documentation URL (default: vcs_url_prefix + NAME)"
    )
    vcs_url_prefix: str = Field(
        default="https://github.com/", description="Prefix joined with VCS_URL"
    )
    schema_version: str = Field(default="1.0", description="Label schema version")
    docker_cmd: Optional[str] = Field(
        None, description="Run command label (default: docker run -d <image_tag>)"
    )
    embed_labels: bool = Field(
        default=False, description="Also pass every label as --label"
    )

    def resolved_docker_cmd(self) -> str:
        return self.docker_cmd or f"docker run -d {self.image_tag}"

    def resolved_url(self, name: str) -> str:
        return self.url or f"{self.vcs_url_prefix}{name}"

    def with_overrides(self, **overrides: Any) -> "StampConfig":
        """Return a copy with the non-None overrides applied and validated."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return StampConfig(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration override: {e}") from e


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a YAML config file into a dict.

    Args:
        path: Path to YAML file

    Returns:
        Mapping of config fields (empty for an empty file)

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Collect DOCKERSTAMP_<FIELD> variables that name a config field."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for field in StampConfig.model_fields:
        key = f"{ENV_PREFIX}{field.upper()}"
        if key in environ:
            overrides[field] = environ[key]
    return overrides


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    search_dir: Optional[Path] = None,
) -> StampConfig:
    """
    Load configuration from defaults, a YAML file and the environment.

    Args:
        path: Explicit config file (must exist)
        environ: Environment mapping (default: os.environ)
        search_dir: Where to look for dockerstamp.yaml when path is None
            (default: current directory)

    Returns:
        Validated StampConfig

    Raises:
        ConfigError: If the file is unreadable or values are invalid
    """
    values: dict[str, Any] = {}

    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
    else:
        candidate = (search_dir or Path.cwd()) / DEFAULT_CONFIG_FILENAME
        path = candidate if candidate.is_file() else None

    if path is not None:
        logger.debug("Loading config from %s", path)
        values.update(read_config_file(path))

    values.update(env_overrides(environ))

    try:
        return StampConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
