"""Label schema rendering for built images."""

from .config import StampConfig
from .record import BuildMetadataRecord

# Label suffixes in the order the Dockerfile declares them
LABEL_KEYS = [
    "build-date",
    "name",
    "description",
    "url",
    "vcs-url",
    "vcs-ref",
    "vendor",
    "version",
    "docker.schema-version",
    "docker.cmd",
]


def build_labels(record: BuildMetadataRecord, config: StampConfig) -> dict[str, str]:
    """
    Render the namespaced labels an image built from record will carry.

    Args:
        record: Build metadata for this build
        config: Supplies namespace and the fixed descriptive values

    Returns:
        Mapping of full label key to value, in LABEL_KEYS order
    """
    values = {
        "build-date": record.build_date,
        "name": record.name,
        "description": config.description,
        "url": config.resolved_url(record.name),
        "vcs-url": f"{config.vcs_url_prefix}{record.vcs_url}",
        "vcs-ref": record.vcs_ref,
        "vendor": record.vendor,
        "version": record.version,
        "docker.schema-version": config.schema_version,
        "docker.cmd": config.resolved_docker_cmd(),
    }
    return {f"{config.label_namespace}.{key}": values[key] for key in LABEL_KEYS}


def filter_namespace(labels: dict[str, str], namespace: str) -> dict[str, str]:
    """Keep only labels under namespace, sorted by key."""
    prefix = f"{namespace}."
    return {k: labels[k] for k in sorted(labels) if k.startswith(prefix)}
