from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pydantic
import yaml

from .errors import ValidationError
from .schemas.cluster import ClusterSpec


def _describe(exc: pydantic.ValidationError) -> str:
    # e.g. "cluster_config.master_config: Value error, at most one block ..."
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "spec"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_cluster_spec(data: Mapping[str, Any] | ClusterSpec) -> ClusterSpec:
    """
    Validates a raw desired-state mapping into a ClusterSpec.
    Any schema violation is raised as skyforge ValidationError.
    """
    if isinstance(data, ClusterSpec):
        return data
    try:
        return ClusterSpec.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid cluster spec: {_describe(e)}") from e


def load_spec_file(path: str | Path) -> ClusterSpec:
    """
    Loads a desired-state YAML file.

    The file holds a single cluster, optionally nested under a top-level
    "cluster" key.
    """
    spec_path = Path(path)
    if not spec_path.exists():
        raise ValidationError(f"Spec file not found: {spec_path}")

    try:
        with spec_path.open("r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {spec_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Spec file {spec_path} must contain a mapping")

    if "cluster" in data and len(data) == 1:
        data = data["cluster"]

    return parse_cluster_spec(data)
