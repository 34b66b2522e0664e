"""
Diffing prior and desired cluster state.

Only three attributes can be changed on a running cluster: labels, the
worker count and the secondary (preemptible) worker count. Everything in
FORCE_NEW_PATHS requires the cluster to be recreated. Any other attribute
(delete_autogen_bucket) is local bookkeeping and never reaches the provider.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .normalize import canonicalize_scopes, extract_last_segment
from .schemas.cluster import ClusterSpec

LABELS_MASK = "labels"
WORKER_COUNT_MASK = "config.worker_config.num_instances"
SECONDARY_WORKER_COUNT_MASK = "config.secondary_worker_config.num_instances"

# Labels the provider stamps on every cluster by itself
PROVIDER_LABEL_PREFIX = "goog-dataproc-"

FORCE_NEW_PATHS = (
    "name",
    "project",
    "region",
    "cluster_config.staging_bucket",
    "cluster_config.gce_cluster_config.zone",
    "cluster_config.gce_cluster_config.network",
    "cluster_config.gce_cluster_config.subnetwork",
    "cluster_config.gce_cluster_config.tags",
    "cluster_config.gce_cluster_config.service_account",
    "cluster_config.gce_cluster_config.service_account_scopes",
    "cluster_config.master_config.num_instances",
    "cluster_config.master_config.machine_type",
    "cluster_config.master_config.disk_config.boot_disk_size_gb",
    "cluster_config.master_config.disk_config.num_local_ssds",
    "cluster_config.worker_config.machine_type",
    "cluster_config.worker_config.disk_config.boot_disk_size_gb",
    "cluster_config.worker_config.disk_config.num_local_ssds",
    "cluster_config.preemptible_worker_config.disk_config.boot_disk_size_gb",
    "cluster_config.software_config.image_version",
    "cluster_config.software_config.override_properties",
    "cluster_config.initialization_actions",
)

# ForceNew attributes the provider fills in when left unset. Any other ForceNew
# attribute is compared even when the desired spec drops it.
COMPUTED_PATHS = frozenset(
    {
        "name",
        "project",
        "region",
        "cluster_config.gce_cluster_config.zone",
        "cluster_config.gce_cluster_config.network",
        "cluster_config.gce_cluster_config.service_account_scopes",
        "cluster_config.master_config.num_instances",
        "cluster_config.master_config.machine_type",
        "cluster_config.master_config.disk_config.boot_disk_size_gb",
        "cluster_config.master_config.disk_config.num_local_ssds",
        "cluster_config.worker_config.machine_type",
        "cluster_config.worker_config.disk_config.boot_disk_size_gb",
        "cluster_config.worker_config.disk_config.num_local_ssds",
        "cluster_config.preemptible_worker_config.disk_config.boot_disk_size_gb",
        "cluster_config.software_config.image_version",
    }
)


@dataclass(frozen=True)
class PatchRequest:
    """An in-place update: ordered field mask plus the changed subtrees."""

    update_mask: list[str] = field(default_factory=list)
    cluster: dict[str, Any] = field(default_factory=dict)

    @property
    def mask(self) -> str:
        return ",".join(self.update_mask)


def _lookup(spec: ClusterSpec, path: str) -> Any:
    value: Any = spec
    for part in path.split("."):
        if value is None:
            return None
        value = getattr(value, part)
    return value


def _user_labels(labels: dict[str, str]) -> dict[str, str]:
    return {k: v for k, v in labels.items() if not k.startswith(PROVIDER_LABEL_PREFIX)}


def _short_name(value: Any) -> Any:
    return extract_last_segment(value) if value else value


def _same_actions(desired: list[Any], prior: list[Any]) -> bool:
    if [a.script for a in desired] != [a.script for a in prior]:
        return False
    # An unset timeout accepts whatever default the provider applied
    return all(
        d.timeout_sec is None or d.timeout_sec == p.timeout_sec
        for d, p in zip(desired, prior)
    )


# How values are brought to a comparable form, keyed by the last path segment
_NORMALIZERS: dict[str, Callable[[Any], Any]] = {
    "zone": _short_name,
    "network": _short_name,
    "subnetwork": _short_name,
    "machine_type": _short_name,
    "service_account_scopes": canonicalize_scopes,
}


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def replacement_paths(prior: ClusterSpec, desired: ClusterSpec) -> list[str]:
    """
    Returns the ForceNew attributes that differ between prior and desired.

    Attributes in COMPUTED_PATHS that the desired spec leaves unset are not
    compared. Other attributes left unset differ from any non-empty prior
    value. A non-empty result means the cluster must be recreated.
    """
    changed = []
    for path in FORCE_NEW_PATHS:
        want = _lookup(desired, path)
        have = _lookup(prior, path)
        if _is_unset(want):
            if path in COMPUTED_PATHS:
                continue
            # Dropping a declared attribute counts as a change
            if not _is_unset(have):
                changed.append(path)
            continue

        if path.endswith("initialization_actions"):
            if not _same_actions(want, have or []):
                changed.append(path)
            continue

        normalize = _NORMALIZERS.get(path.rsplit(".", 1)[-1])
        if normalize is not None:
            want = normalize(want)
            have = normalize(have) if have is not None else None
        if want != have:
            changed.append(path)
    return changed


def _count(spec: ClusterSpec, block: str) -> int | None:
    group = _lookup(spec, f"cluster_config.{block}")
    return group.num_instances if group is not None else None


def build_patch(prior: ClusterSpec, desired: ClusterSpec) -> PatchRequest | None:
    """
    Builds the minimal in-place update turning prior into desired.

    Mask paths are appended in a fixed order (labels, worker count, secondary
    worker count) and the payload carries only those subtrees. Returns None
    when nothing updatable differs; callers must then skip the API call.
    """
    update_mask: list[str] = []
    cluster: dict[str, Any] = {}

    if _user_labels(prior.labels) != _user_labels(desired.labels):
        update_mask.append(LABELS_MASK)
        cluster["labels"] = dict(desired.labels)

    workers = _count(desired, "worker_config")
    if workers is not None and workers != _count(prior, "worker_config"):
        update_mask.append(WORKER_COUNT_MASK)
        cluster.setdefault("config", {})["worker_config"] = {
            "num_instances": workers
        }

    secondary = _count(desired, "preemptible_worker_config")
    if secondary is not None and secondary != _count(
        prior, "preemptible_worker_config"
    ):
        update_mask.append(SECONDARY_WORKER_COUNT_MASK)
        cluster.setdefault("config", {})["secondary_worker_config"] = {
            "num_instances": secondary
        }

    if not update_mask:
        return None
    return PatchRequest(update_mask=update_mask, cluster=cluster)
