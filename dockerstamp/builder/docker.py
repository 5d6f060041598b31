"""Docker build backend for dockerstamp."""

import json
import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Optional

from ..core.config import StampConfig
from ..core.errors import BuildFailedError, BuildToolError, BuildToolNotFoundError
from ..core.labels import build_labels, filter_namespace
from ..core.record import BuildMetadataRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful image build."""

    command: list[str]
    returncode: int
    elapsed_seconds: float
    image_tag: str


class ImageBuildInvoker:
    """
    Run ``docker build`` with the build metadata as build arguments.

    The build tool's stdout and stderr are inherited, so its progress and
    diagnostics reach the user untouched. One build per call; no retries.
    """

    def __init__(self, config: Optional[StampConfig] = None):
        self.config = config or StampConfig()

    def build_command(self, record: BuildMetadataRecord) -> list[str]:
        """
        Assemble the build command line for record.

        Args:
            record: Build metadata to pass as --build-arg values

        Returns:
            Argument vector for subprocess
        """
        cmd = [self.config.docker_binary, "build"]

        for key, value in record.to_build_args().items():
            cmd.extend(["--build-arg", f"{key}={value}"])

        if self.config.dockerfile:
            cmd.extend(["-f", self.config.dockerfile])

        if self.config.embed_labels:
            for key, value in build_labels(record, self.config).items():
                cmd.extend(["--label", f"{key}={value}"])

        cmd.extend(["-t", self.config.image_tag, self.config.context])
        return cmd

    def build(self, record: BuildMetadataRecord) -> BuildResult:
        """
        Build the image and block until the build tool exits.

        Args:
            record: Build metadata for this build

        Returns:
            BuildResult on success

        Raises:
            BuildFailedError: If the build tool exits non-zero
            BuildToolNotFoundError: If the build tool is not installed
        """
        cmd = self.build_command(record)
        logger.info("Building %s from %s", self.config.image_tag, self.config.context)
        logger.debug("Command: %s", " ".join(cmd))

        start = time.monotonic()
        try:
            result = subprocess.run(cmd)
        except FileNotFoundError as e:
            raise BuildToolNotFoundError(
                f"Build tool not found: {self.config.docker_binary}", command=cmd
            ) from e
        elapsed = time.monotonic() - start

        if result.returncode != 0:
            raise BuildFailedError(
                f"{self.config.docker_binary} build exited with code "
                f"{result.returncode}",
                command=cmd,
                returncode=result.returncode,
            )

        logger.info("Built %s in %.1fs", self.config.image_tag, elapsed)
        return BuildResult(
            command=cmd,
            returncode=result.returncode,
            elapsed_seconds=elapsed,
            image_tag=self.config.image_tag,
        )


def inspect_labels(
    image_tag: str, config: Optional[StampConfig] = None
) -> dict[str, str]:
    """
    Read the namespaced labels of a local image.

    Args:
        image_tag: Image reference to inspect
        config: Supplies the build tool and label namespace

    Returns:
        Labels under config.label_namespace, sorted by key

    Raises:
        BuildToolError: If inspection fails (e.g. unknown image)
        BuildToolNotFoundError: If the build tool is not installed
    """
    config = config or StampConfig()
    cmd = [
        config.docker_binary,
        "image",
        "inspect",
        "--format",
        "{{json .Config.Labels}}",
        image_tag,
    ]
    logger.debug("Command: %s", " ".join(cmd))

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise BuildToolNotFoundError(
            f"Build tool not found: {config.docker_binary}", command=cmd
        ) from e

    if result.returncode != 0:
        raise BuildToolError(
            f"Cannot inspect image {image_tag}",
            command=cmd,
            returncode=result.returncode,
            stderr=result.stderr.strip(),
        )

    try:
        labels = json.loads(result.stdout) or {}
    except json.JSONDecodeError as e:
        raise BuildToolError(
            f"Unexpected inspect output for {image_tag}: {result.stdout!r}",
            command=cmd,
        ) from e

    if not isinstance(labels, dict):
        raise BuildToolError(
            f"Unexpected inspect output for {image_tag}: {result.stdout!r}",
            command=cmd,
        )

    return filter_namespace(labels, config.label_namespace)
