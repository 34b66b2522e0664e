"""
Lifecycle entry points for a Dataproc cluster: create, read, update, delete,
plus plan/apply which reconcile a desired spec against what is live.

Each entry point validates the desired spec before the first provider call,
drives the provider through the poller and records the outcome in the state
store. Only one mutating call is in flight at a time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cleanup import autogen_bucket, empty_and_delete_bucket
from .config import Settings
from .core import SUBMIT_ATTEMPTS
from .errors import (
    NotFoundError,
    OperationError,
    ProviderError,
    StateError,
    ValidationError,
)
from .loader import parse_cluster_spec
from .logger import logger
from .patch import PatchRequest, build_patch, replacement_paths
from .poller import OperationPoller, submit_and_wait
from .reflect import reflect
from .schemas.cluster import ClusterSpec
from .state import FileStateStore, StateRecord
from .translate import translate


class Action(str, Enum):
    CREATE = "create"
    REPLACE = "replace"
    UPDATE = "update"
    NOOP = "no-op"


@dataclass(frozen=True)
class Plan:
    """What apply would do for one cluster."""

    action: Action
    key: str
    replace_paths: list[str] = field(default_factory=list)
    patch: PatchRequest | None = None


def _with_local_settings(live: ClusterSpec, desired: ClusterSpec) -> ClusterSpec:
    # delete_autogen_bucket only matters to us; it is updated without a call
    if live.cluster_config is None or desired.cluster_config is None:
        return live
    config = live.cluster_config.model_copy(
        update={
            "delete_autogen_bucket": desired.cluster_config.delete_autogen_bucket
        }
    )
    return live.model_copy(update={"cluster_config": config})


class ClusterResource:
    def __init__(
        self,
        provider: Any,
        store: FileStateStore,
        poller: OperationPoller | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.settings = settings or Settings()
        self.poller = poller or OperationPoller(self.settings.poll_interval)

    def resolve(self, spec: ClusterSpec | dict[str, Any]) -> ClusterSpec:
        """Validates the desired state and fills in the project from settings."""
        spec = parse_cluster_spec(spec)
        if spec.project:
            return spec
        if not self.settings.project:
            raise ValidationError(
                f"No project for cluster {spec.name}: set it in the cluster file, "
                "pass --project or export GOOGLE_CLOUD_PROJECT"
            )
        return spec.model_copy(update={"project": self.settings.project})

    def create(
        self, spec: ClusterSpec | dict[str, Any], timeout_minutes: float | None = None
    ) -> ClusterSpec | None:
        spec = self.resolve(spec)
        payload = translate(spec)
        project, region = str(spec.project), spec.region
        timeout = timeout_minutes or self.settings.timeouts.create

        logger.info(f"Creating Dataproc cluster {spec.key}")
        # Recorded before waiting so an interrupted run still knows the id
        self.store.save(spec.key, StateRecord(id=spec.key))
        try:
            submit_and_wait(
                lambda: self.provider.create_cluster(project, region, payload),
                "creating Dataproc cluster",
                timeout,
                SUBMIT_ATTEMPTS["create"],
                poller=self.poller,
            )
        except (OperationError, ProviderError):
            # Clear the id so the next run starts from scratch
            self.store.delete(spec.key)
            raise

        logger.info(f"Dataproc cluster {spec.key} has been created")
        return self.read(spec, prior=spec)

    def read(
        self, spec: ClusterSpec | dict[str, Any], prior: ClusterSpec | None = None
    ) -> ClusterSpec | None:
        """
        Refreshes the recorded state from the provider.

        Returns None (and forgets the cluster) when the provider no longer
        knows it.
        """
        spec = self.resolve(spec)
        if prior is None:
            record = self.store.load(spec.key)
            prior = record.spec if record and record.spec else spec

        try:
            payload = self.provider.get_cluster(
                str(spec.project), spec.region, spec.name
            )
        except NotFoundError:
            logger.warning(
                f"Dataproc cluster {spec.key} not found, removing from state"
            )
            self.store.delete(spec.key)
            return None

        live = reflect(payload, region=spec.region, prior=prior)
        self.store.save(spec.key, StateRecord(id=spec.key, spec=live))
        return live

    def update(
        self, spec: ClusterSpec | dict[str, Any], timeout_minutes: float | None = None
    ) -> ClusterSpec | None:
        spec = self.resolve(spec)
        record = self.store.load(spec.key)
        if record is None or record.spec is None:
            raise StateError(f"No recorded state for {spec.key}, nothing to update")

        patch = build_patch(record.spec, spec)
        if patch is None:
            logger.info(f"Dataproc cluster {spec.key} is up to date")
            live = _with_local_settings(record.spec, spec)
            self.store.save(spec.key, StateRecord(id=record.id, spec=live))
            return live

        project, region = str(spec.project), spec.region
        timeout = timeout_minutes or self.settings.timeouts.update
        logger.info(f"Updating Dataproc cluster {spec.key} ({patch.mask})")
        submit_and_wait(
            lambda: self.provider.patch_cluster(
                project, region, spec.name, patch.cluster, patch.update_mask
            ),
            "updating Dataproc cluster",
            timeout,
            SUBMIT_ATTEMPTS["update"],
            poller=self.poller,
        )
        logger.info(f"Dataproc cluster {spec.key} has been updated")
        return self.read(spec, prior=spec)

    def delete(
        self, spec: ClusterSpec | dict[str, Any], timeout_minutes: float | None = None
    ) -> None:
        spec = self.resolve(spec)
        record = self.store.load(spec.key)
        known = record.spec if record and record.spec else spec
        config = known.cluster_config

        if config is not None and config.delete_autogen_bucket:
            bucket = autogen_bucket(config)
            if bucket:
                logger.info(f"Deleting autogenerated bucket {bucket}")
                empty_and_delete_bucket(self.provider, bucket)

        project, region = str(spec.project), spec.region
        timeout = timeout_minutes or self.settings.timeouts.delete
        logger.info(f"Deleting Dataproc cluster {spec.key}")
        try:
            submit_and_wait(
                lambda: self.provider.delete_cluster(project, region, spec.name),
                "deleting Dataproc cluster",
                timeout,
                SUBMIT_ATTEMPTS["delete"],
                poller=self.poller,
            )
        except NotFoundError:
            logger.warning(f"Dataproc cluster {spec.key} was already deleted")

        # A timeout propagates above and keeps the record for a later retry
        self.store.delete(spec.key)
        logger.info(f"Dataproc cluster {spec.key} has been deleted")

    def plan(self, spec: ClusterSpec | dict[str, Any]) -> Plan:
        """Compares the desired spec with the live cluster without mutating it."""
        spec = self.resolve(spec)
        translate(spec)

        live = self.read(spec)
        if live is None:
            return Plan(Action.CREATE, spec.key)

        paths = replacement_paths(live, spec)
        if paths:
            return Plan(Action.REPLACE, spec.key, replace_paths=paths)

        patch = build_patch(live, spec)
        if patch is not None:
            return Plan(Action.UPDATE, spec.key, patch=patch)
        return Plan(Action.NOOP, spec.key)

    def apply(
        self,
        spec: ClusterSpec | dict[str, Any],
        timeout_minutes: float | None = None,
        plan: Plan | None = None,
    ) -> ClusterSpec | None:
        """Brings the live cluster in line with the desired spec."""
        spec = self.resolve(spec)
        plan = plan or self.plan(spec)

        if plan.action is Action.CREATE:
            return self.create(spec, timeout_minutes)
        if plan.action is Action.REPLACE:
            logger.info(
                f"Recreating {spec.key}, changed: {', '.join(plan.replace_paths)}"
            )
            self.delete(spec, timeout_minutes)
            return self.create(spec, timeout_minutes)
        return self.update(spec, timeout_minutes)
