"""Typer-based CLI application for dockerstamp."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer

from dockerstamp import __version__
from dockerstamp.builder.docker import ImageBuildInvoker, inspect_labels
from dockerstamp.core.collectors import BuildMetadataCollector
from dockerstamp.core.config import StampConfig, load_config
from dockerstamp.core.errors import (
    BuildToolError,
    ConfigError,
    DockerstampError,
    MetadataError,
)
from dockerstamp.core.labels import build_labels
from dockerstamp.core.record import BuildMetadataRecord
from dockerstamp.utils.formatters import format_command, format_mapping, format_time

app = typer.Typer(
    name="dockerstamp",
    help="Build container images labelled with git provenance",
    add_completion=False,
)


class OutputFormat(str, Enum):
    """Output format for the print command."""

    ENV = "env"
    JSON = "json"
    YAML = "yaml"


RepoOption = Annotated[
    Optional[Path],
    typer.Option("--repo", help="Directory inside the git work tree (default: cwd)"),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="YAML config file (default: ./dockerstamp.yaml)"),
]
LogLevelOption = Annotated[
    str,
    typer.Option(
        help="Logging level (debug, info, warn, error)",
        case_sensitive=False,
        hidden=True,
    ),
]


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        typer.echo(f"dockerstamp v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True),
    ] = None,
):
    """Dockerstamp - labelled image builds.

    Collects build provenance (commit, build date, repository, user) and
    passes it to docker build as build arguments, so the Dockerfile can
    record it in org.label-schema labels.
    """
    pass


def configure_logging(log_level: str) -> None:
    """Configure root logging from a CLI level name.

    Raises:
        typer.Exit: If the level name is not recognised
    """
    log_level_upper = log_level.upper()
    if log_level_upper not in ["DEBUG", "INFO", "WARN", "WARNING", "ERROR"]:
        typer.echo(
            f"❌ Invalid log level: {log_level}. "
            "Must be debug, info, warn, or error.",
            err=True,
        )
        raise typer.Exit(1)

    # Map WARN to WARNING for Python logging
    if log_level_upper == "WARN":
        log_level_upper = "WARNING"

    logging.basicConfig(
        level=getattr(logging, log_level_upper),
        format="%(message)s",
    )


def shell_exit_code(returncode: int) -> int:
    """Map a subprocess return code to the status a shell would report.

    A child killed by signal N has returncode -N; shells report 128 + N.

    Examples:
        >>> shell_exit_code(3)
        3
        >>> shell_exit_code(-15)
        143
    """
    if returncode < 0:
        return 128 + abs(returncode)
    return returncode


def fail(error: DockerstampError, exit_code: int = 1) -> typer.Exit:
    """Report error on stderr and return the Exit to raise."""
    typer.echo(f"❌ {error}", err=True)
    stderr = getattr(error, "stderr", None)
    if stderr:
        for line in stderr.splitlines():
            typer.echo(f"   {line}", err=True)
    return typer.Exit(shell_exit_code(exit_code))


def collect_record(repo: Optional[Path]) -> BuildMetadataRecord:
    """Collect build metadata, turning failures into a CLI exit."""
    try:
        return BuildMetadataCollector(repo).collect()
    except MetadataError as e:
        raise fail(e) from e


def resolve_config(config_path: Optional[Path], **overrides) -> StampConfig:
    """Load configuration and apply CLI overrides."""
    try:
        return load_config(config_path).with_overrides(**overrides)
    except ConfigError as e:
        raise fail(e) from e


@app.command("print")
def print_metadata(
    repo: RepoOption = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", help="Output format", case_sensitive=False),
    ] = OutputFormat.ENV,
    log_level: LogLevelOption = "info",
):
    """Print the build metadata, one KEY=value line per entry.

    Reads git and the environment only; nothing is written.
    """
    configure_logging(log_level)
    record = collect_record(repo)

    if output_format == OutputFormat.JSON:
        typer.echo(record.to_json())
    elif output_format == OutputFormat.YAML:
        typer.echo(record.to_yaml(), nl=False)
    else:
        for line in record.to_env_lines():
            typer.echo(line)


@app.command()
def build(  # noqa: C901
    repo: RepoOption = None,
    config_path: ConfigOption = None,
    tag: Annotated[
        Optional[str],
        typer.Option("--tag", "-t", help="Image tag (overrides config)"),
    ] = None,
    context: Annotated[
        Optional[str],
        typer.Option(help="Build context path (overrides config)"),
    ] = None,
    file: Annotated[
        Optional[str],
        typer.Option("--file", "-f", help="Dockerfile path (overrides config)"),
    ] = None,
    embed_labels: Annotated[
        bool,
        typer.Option("--embed-labels", help="Also pass every label as --label"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the build command without running it"),
    ] = False,
    log_level: LogLevelOption = "info",
):
    """Build the image with build metadata passed as build arguments.

    The exit code mirrors the build tool's exit code.

    Examples:
        dockerstamp build
        dockerstamp build --tag myorg/hello:dev --file Dockerfile.scratch
        dockerstamp build --dry-run
    """
    configure_logging(log_level)

    config = resolve_config(
        config_path,
        image_tag=tag,
        context=context,
        dockerfile=file,
        embed_labels=True if embed_labels else None,
    )
    record = collect_record(repo)
    invoker = ImageBuildInvoker(config)

    if dry_run:
        typer.echo(format_command(invoker.build_command(record)))
        raise typer.Exit(0)

    typer.echo("=" * 60)
    typer.echo("🐳 Dockerstamp - Building Image")
    typer.echo("=" * 60)
    typer.echo(f"Image:       {config.image_tag}")
    typer.echo(f"Context:     {config.context}")
    if config.dockerfile:
        typer.echo(f"Dockerfile:  {config.dockerfile}")
    typer.echo(f"Version:     {record.version}")
    typer.echo(f"Build date:  {record.build_date}")
    typer.echo("=" * 60)
    typer.echo("")

    try:
        result = invoker.build(record)
    except KeyboardInterrupt:
        typer.echo("\n❌ Build cancelled by user", err=True)
        raise typer.Exit(130) from None  # 130 is standard exit code for SIGINT
    except BuildToolError as e:
        raise fail(e, e.returncode) from e

    typer.echo("")
    typer.echo("=" * 60)
    typer.echo("✅ Image built successfully!")
    typer.echo("=" * 60)
    typer.echo(f"Image:       {result.image_tag}")
    typer.echo(f"Duration:    {format_time(result.elapsed_seconds)}")
    typer.echo("=" * 60)
    typer.echo("")
    typer.echo("📝 Next steps:")
    typer.echo(f"   • Inspect: dockerstamp inspect {result.image_tag}")
    typer.echo(f"   • Run:     {config.resolved_docker_cmd()}")


@app.command()
def labels(
    repo: RepoOption = None,
    config_path: ConfigOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output labels as JSON"),
    ] = False,
    log_level: LogLevelOption = "info",
):
    """Print the labels an image built now would carry."""
    configure_logging(log_level)
    config = resolve_config(config_path)
    record = collect_record(repo)

    rendered = build_labels(record, config)
    if json_output:
        typer.echo(json.dumps(rendered, indent=2))
    else:
        typer.echo(format_mapping(rendered))


@app.command()
def inspect(
    image_tag: Annotated[
        Optional[str],
        typer.Argument(help="Image to inspect (default: configured tag)"),
    ] = None,
    config_path: ConfigOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output labels as JSON"),
    ] = False,
    log_level: LogLevelOption = "info",
):
    """Show the label-schema labels of a built image."""
    configure_logging(log_level)
    config = resolve_config(config_path)
    image_tag = image_tag or config.image_tag

    try:
        found = inspect_labels(image_tag, config)
    except BuildToolError as e:
        raise fail(e, e.returncode) from e

    if json_output:
        typer.echo(json.dumps(found, indent=2))
    elif not found:
        typer.echo(f"⚠️  {image_tag} has no {config.label_namespace}.* labels")
    else:
        typer.echo(format_mapping(found))


if __name__ == "__main__":
    app()
