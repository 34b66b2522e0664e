import re
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ..core import GLOBAL_REGION, MAX_CLUSTER_NAME_LENGTH, MIN_BOOT_DISK_SIZE_GB

_NAME_CHARS = re.compile(r"[a-z0-9-]+")
_NAME_START = re.compile(r"^[a-z]")
_NAME_END = re.compile(r"[a-z0-9]\Z")


def cluster_name_errors(name: str) -> list[str]:
    """
    Returns every reason the cluster name is invalid (empty list if valid).
    """
    errors = []
    if len(name) > MAX_CLUSTER_NAME_LENGTH:
        errors.append(f"cannot be longer than {MAX_CLUSTER_NAME_LENGTH} characters")
    if not _NAME_CHARS.fullmatch(name):
        errors.append("can only contain lowercase letters, numbers and hyphens")
    if not _NAME_START.match(name):
        errors.append("must start with a letter")
    if not _NAME_END.search(name):
        errors.append("must end with a number or a letter")
    return errors


def _single_block(value: Any) -> Any:
    # Older specs wrote nested blocks as one-element lists
    if isinstance(value, list):
        if len(value) > 1:
            raise ValueError(f"at most one block may be given, got {len(value)}")
        return value[0] if value else None
    return value


SingleBlock = BeforeValidator(_single_block)


class _Block(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DiskConfig(_Block):
    boot_disk_size_gb: int | None = Field(default=None, ge=MIN_BOOT_DISK_SIZE_GB)
    num_local_ssds: int | None = Field(default=None, ge=0)


class PreemptibleDiskConfig(_Block):
    boot_disk_size_gb: int | None = Field(default=None, ge=MIN_BOOT_DISK_SIZE_GB)


class InstanceGroupConfig(_Block):
    num_instances: int | None = Field(default=None, ge=0)
    machine_type: str | None = None
    disk_config: Annotated[DiskConfig | None, SingleBlock] = None
    instance_names: list[str] = Field(
        default_factory=list, description="Computed: assigned instance names"
    )


class PreemptibleInstanceGroupConfig(_Block):
    """Secondary workers: machine type comes from the worker group."""

    num_instances: int | None = Field(default=None, ge=0)
    disk_config: Annotated[PreemptibleDiskConfig | None, SingleBlock] = None
    instance_names: list[str] = Field(
        default_factory=list, description="Computed: assigned instance names"
    )


class GceClusterConfig(_Block):
    zone: str | None = None
    network: str | None = None
    subnetwork: str | None = None
    tags: list[str] = Field(default_factory=list)
    service_account: str | None = None
    service_account_scopes: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_network(self) -> "GceClusterConfig":
        if self.network and self.subnetwork:
            raise ValueError("network and subnetwork are mutually exclusive")
        return self


class SoftwareConfig(_Block):
    image_version: str | None = None
    override_properties: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, str] = Field(
        default_factory=dict, description="Computed: properties reported by the cluster"
    )


class InitializationAction(_Block):
    script: str
    timeout_sec: int | None = Field(default=None, ge=0)


class ClusterConfig(_Block):
    delete_autogen_bucket: bool = False
    staging_bucket: str | None = None
    bucket: str | None = Field(default=None, description="Computed: bucket in use")
    gce_cluster_config: Annotated[GceClusterConfig | None, SingleBlock] = None
    master_config: Annotated[InstanceGroupConfig | None, SingleBlock] = None
    worker_config: Annotated[InstanceGroupConfig | None, SingleBlock] = None
    preemptible_worker_config: Annotated[
        PreemptibleInstanceGroupConfig | None, SingleBlock
    ] = None
    software_config: Annotated[SoftwareConfig | None, SingleBlock] = None
    initialization_actions: list[InitializationAction] = Field(
        default_factory=list, alias="initialization_action"
    )


class ClusterSpec(_Block):
    """
    A Dataproc cluster as declared by the user, or as reflected back from the
    provider (the live state has the same shape plus computed fields).
    """

    name: str
    project: str | None = None
    region: str = GLOBAL_REGION
    labels: dict[str, str] = Field(default_factory=dict)
    cluster_config: Annotated[ClusterConfig | None, SingleBlock] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        errors = cluster_name_errors(v)
        if errors:
            raise ValueError(f"name {v!r} " + "; ".join(errors))
        return v

    @property
    def key(self) -> str:
        """Identity used by the state store."""
        return f"{self.project}/{self.region}/{self.name}"
