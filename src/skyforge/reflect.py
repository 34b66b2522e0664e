"""
Provider payload -> declarative tree (the inverse of translate).

Only blocks the provider actually returned are emitted, so an absent
secondary worker group stays absent instead of turning into an empty block.
Scalars the API omits because they hold their zero value are read back as 0,
empty strings as unset.
"""

from collections.abc import Mapping
from typing import Any

from .core import GLOBAL_REGION
from .duration import decode_duration
from .normalize import canonicalize_scopes, extract_last_segment
from .schemas.cluster import ClusterConfig, ClusterSpec


def _short(uri: str | None) -> str | None:
    if not uri:
        return None
    return extract_last_segment(uri)


def _gce_cluster_config(gce: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "zone": _short(gce.get("zone_uri")),
        "tags": list(gce.get("tags") or []),
        "service_account": gce.get("service_account") or None,
        "service_account_scopes": canonicalize_scopes(
            gce.get("service_account_scopes") or []
        ),
    }
    # Absent URIs are omitted rather than stored as ""
    if gce.get("network_uri"):
        data["network"] = extract_last_segment(gce["network_uri"])
    if gce.get("subnetwork_uri"):
        data["subnetwork"] = extract_last_segment(gce["subnetwork_uri"])
    return data


def _software_config(
    software: Mapping[str, Any], override_properties: dict[str, str]
) -> dict[str, Any]:
    return {
        "image_version": software.get("image_version") or None,
        "override_properties": dict(override_properties),
        "properties": dict(software.get("properties") or {}),
    }


def _initialization_action(action: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {"script": action.get("executable_file", "")}
    timeout = action.get("execution_timeout")
    if timeout:
        data["timeout_sec"] = decode_duration(timeout)
    return data


def _instance_group_config(group: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "num_instances": group.get("num_instances", 0),
        "machine_type": _short(group.get("machine_type_uri")),
        "instance_names": list(group.get("instance_names") or []),
    }
    disk = group.get("disk_config")
    if disk is not None:
        data["disk_config"] = {
            "boot_disk_size_gb": disk.get("boot_disk_size_gb") or None,
            "num_local_ssds": disk.get("num_local_ssds", 0),
        }
    return data


def _preemptible_instance_group_config(group: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "num_instances": group.get("num_instances", 0),
        "instance_names": list(group.get("instance_names") or []),
    }
    disk = group.get("disk_config")
    if disk is not None:
        data["disk_config"] = {
            "boot_disk_size_gb": disk.get("boot_disk_size_gb") or None,
        }
    return data


def _cluster_config(
    config: Mapping[str, Any], prior: ClusterConfig | None
) -> dict[str, Any]:
    # Write-only settings never come back over the wire; keep what was declared
    data: dict[str, Any] = {
        "bucket": config.get("config_bucket") or None,
        "staging_bucket": prior.staging_bucket if prior else None,
        "delete_autogen_bucket": prior.delete_autogen_bucket if prior else False,
        "initialization_actions": [
            _initialization_action(a)
            for a in config.get("initialization_actions") or []
        ],
    }

    if config.get("gce_cluster_config") is not None:
        data["gce_cluster_config"] = _gce_cluster_config(config["gce_cluster_config"])

    if config.get("software_config") is not None:
        overrides: dict[str, str] = {}
        if prior and prior.software_config:
            overrides = prior.software_config.override_properties
        data["software_config"] = _software_config(
            config["software_config"], overrides
        )

    if config.get("master_config") is not None:
        data["master_config"] = _instance_group_config(config["master_config"])
    if config.get("worker_config") is not None:
        data["worker_config"] = _instance_group_config(config["worker_config"])
    if config.get("secondary_worker_config") is not None:
        data["preemptible_worker_config"] = _preemptible_instance_group_config(
            config["secondary_worker_config"]
        )
    return data


def reflect(
    payload: Mapping[str, Any],
    region: str = GLOBAL_REGION,
    prior: ClusterSpec | None = None,
) -> ClusterSpec:
    """
    Converts a cluster returned by the provider into a ClusterSpec.

    The region is not part of the payload and must be supplied. Fields the
    provider never echoes back (staging_bucket, delete_autogen_bucket,
    override_properties) are carried over from `prior` when given.

    Raises FormatError/ParseError if an initialization timeout is in a wire
    format this package does not understand.
    """
    prior_config = prior.cluster_config if prior else None
    data = {
        "name": payload["cluster_name"],
        "project": payload.get("project_id") or (prior.project if prior else None),
        "region": region,
        "labels": dict(payload.get("labels") or {}),
        "cluster_config": _cluster_config(payload.get("config") or {}, prior_config),
    }
    return ClusterSpec.model_validate(data)
