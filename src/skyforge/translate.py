"""
Desired state -> provider payload.

The payload is a plain dict using the Dataproc API field names
(cluster_name, config.gce_cluster_config.zone_uri, ...). The provider client
turns it into a request message; everything here stays pure so it can be
diffed and tested without credentials.
"""

from collections.abc import Mapping
from typing import Any

from .core import GLOBAL_REGION
from .duration import encode_duration
from .errors import ValidationError
from .loader import parse_cluster_spec
from .normalize import canonicalize_scopes, extract_last_segment
from .schemas.cluster import (
    ClusterConfig,
    ClusterSpec,
    GceClusterConfig,
    InitializationAction,
    InstanceGroupConfig,
    PreemptibleInstanceGroupConfig,
    SoftwareConfig,
)


def _zone_of(spec: ClusterSpec) -> str | None:
    cfg = spec.cluster_config
    if cfg is None or cfg.gce_cluster_config is None:
        return None
    return cfg.gce_cluster_config.zone or None


def _gce_cluster_config(gce: GceClusterConfig) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if gce.zone:
        data["zone_uri"] = gce.zone
    if gce.network:
        data["network_uri"] = extract_last_segment(gce.network)
    if gce.subnetwork:
        data["subnetwork_uri"] = extract_last_segment(gce.subnetwork)
    if gce.tags:
        data["tags"] = list(gce.tags)
    if gce.service_account:
        data["service_account"] = gce.service_account
    if gce.service_account_scopes:
        data["service_account_scopes"] = canonicalize_scopes(
            gce.service_account_scopes
        )
    return data


def _software_config(software: SoftwareConfig) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if software.image_version:
        data["image_version"] = software.image_version
    if software.override_properties:
        data["properties"] = dict(software.override_properties)
    return data


def _initialization_action(action: InitializationAction) -> dict[str, Any]:
    data: dict[str, Any] = {"executable_file": action.script}
    # Unset timeouts are left to the provider default
    if action.timeout_sec is not None:
        data["execution_timeout"] = encode_duration(action.timeout_sec)
    return data


def _instance_group_config(group: InstanceGroupConfig) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if group.num_instances is not None:
        data["num_instances"] = group.num_instances
    if group.machine_type:
        data["machine_type_uri"] = extract_last_segment(group.machine_type)
    if group.disk_config is not None:
        disk: dict[str, Any] = {}
        if group.disk_config.boot_disk_size_gb is not None:
            disk["boot_disk_size_gb"] = group.disk_config.boot_disk_size_gb
        if group.disk_config.num_local_ssds is not None:
            disk["num_local_ssds"] = group.disk_config.num_local_ssds
        data["disk_config"] = disk
    return data


def _secondary_worker_config(group: PreemptibleInstanceGroupConfig) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if group.num_instances is not None:
        data["num_instances"] = group.num_instances
    if group.disk_config is not None:
        disk: dict[str, Any] = {}
        if group.disk_config.boot_disk_size_gb is not None:
            disk["boot_disk_size_gb"] = group.disk_config.boot_disk_size_gb
        data["disk_config"] = disk
    data["is_preemptible"] = (group.num_instances or 0) > 0
    return data


def _cluster_config(cfg: ClusterConfig) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if cfg.staging_bucket:
        data["config_bucket"] = cfg.staging_bucket
    if cfg.gce_cluster_config is not None:
        data["gce_cluster_config"] = _gce_cluster_config(cfg.gce_cluster_config)
    if cfg.software_config is not None:
        data["software_config"] = _software_config(cfg.software_config)
    if cfg.initialization_actions:
        data["initialization_actions"] = [
            _initialization_action(a) for a in cfg.initialization_actions
        ]
    if cfg.master_config is not None:
        data["master_config"] = _instance_group_config(cfg.master_config)
    if cfg.worker_config is not None:
        data["worker_config"] = _instance_group_config(cfg.worker_config)
    if cfg.preemptible_worker_config is not None:
        data["secondary_worker_config"] = _secondary_worker_config(
            cfg.preemptible_worker_config
        )
    return data


def translate(spec: ClusterSpec | Mapping[str, Any]) -> dict[str, Any]:
    """
    Builds the full cluster-create payload from a desired spec.

    Raises ValidationError for malformed specs (including more than one
    master or worker block) and when the zone is missing while the region
    is the "global" sentinel.
    """
    spec = parse_cluster_spec(spec)

    # Checked on the whole spec so a missing cluster_config is caught too
    if spec.region == GLOBAL_REGION and not _zone_of(spec):
        raise ValidationError("zone is mandatory when region is set to 'global'")

    cluster: dict[str, Any] = {"cluster_name": spec.name}
    if spec.project:
        cluster["project_id"] = spec.project
    if spec.labels:
        cluster["labels"] = dict(spec.labels)

    cluster["config"] = (
        _cluster_config(spec.cluster_config) if spec.cluster_config else {}
    )
    return cluster
