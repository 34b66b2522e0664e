"""
The provider API client: Dataproc clusters plus the Cloud Storage calls
needed to clean up a cluster's staging bucket.

Payloads cross this boundary as plain dicts (see translate/reflect) and SDK
exceptions are translated into the skyforge ProviderError family here, so
no other module depends on google.api_core types.
"""

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions
from google.cloud import dataproc_v1
from google.protobuf import json_format
from tenacity import retry

from .clients import get_cluster_controller_client, get_storage_client
from .core import RETRY_CONFIG
from .errors import NotFoundError, ProviderError, RateLimitedError
from .logger import logger


@contextmanager
def provider_errors(action: str) -> Iterator[None]:
    """Re-raises google.api_core errors as skyforge ProviderErrors."""
    try:
        yield
    except exceptions.NotFound as e:
        raise NotFoundError(f"{action}: {e.message}", e) from e
    except (exceptions.TooManyRequests, exceptions.ResourceExhausted) as e:
        raise RateLimitedError(f"{action}: {e.message}", e) from e
    except exceptions.GoogleAPICallError as e:
        raise ProviderError(f"{action}: {e.message}", e) from e


def to_cluster_message(payload: dict[str, Any]) -> Any:
    cluster = dataproc_v1.Cluster()
    json_format.ParseDict(payload, dataproc_v1.Cluster.pb(cluster))
    return cluster


def to_payload(cluster: Any) -> dict[str, Any]:
    # Scalars holding their zero value are omitted, durations render as "500s"
    return json_format.MessageToDict(
        dataproc_v1.Cluster.pb(cluster), preserving_proto_field_name=True
    )


class DataprocOperation:
    """Adapts a google.api_core Operation future to the poller's handle."""

    def __init__(self, future: Any) -> None:
        self._future = future

    @property
    def name(self) -> str:
        return str(self._future.operation.name)

    def done(self) -> bool:
        with provider_errors(f"polling operation {self.name}"):
            return bool(self._future.done())

    def error(self) -> Exception | None:
        operation = self._future.operation
        if not operation.HasField("error"):
            return None
        status = operation.error
        return ProviderError(f"operation {operation.name}: {status.message}")


class DataprocProvider:
    """
    Cluster and bucket calls scoped by (project, region, name).

    Clients are injected so tests (and callers with custom credentials) can
    supply their own; by default the cached clients from skyforge.clients
    are used.
    """

    def __init__(
        self,
        cluster_clients: Callable[[str], Any] = get_cluster_controller_client,
        storage_client: Any | None = None,
    ) -> None:
        self._cluster_clients = cluster_clients
        self._storage_client = storage_client

    @property
    def storage(self) -> Any:
        if self._storage_client is None:
            self._storage_client = get_storage_client()
        return self._storage_client

    def create_cluster(
        self, project: str, region: str, payload: dict[str, Any]
    ) -> DataprocOperation:
        client = self._cluster_clients(region)
        name = payload.get("cluster_name")
        with provider_errors(f"creating cluster {name}"):
            future = client.create_cluster(
                request={
                    "project_id": project,
                    "region": region,
                    "cluster": to_cluster_message(payload),
                }
            )
        return DataprocOperation(future)

    def patch_cluster(
        self,
        project: str,
        region: str,
        name: str,
        payload: dict[str, Any],
        update_mask: Sequence[str],
    ) -> DataprocOperation:
        client = self._cluster_clients(region)
        cluster = {"cluster_name": name, "project_id": project, **payload}
        with provider_errors(f"updating cluster {name}"):
            future = client.update_cluster(
                request={
                    "project_id": project,
                    "region": region,
                    "cluster_name": name,
                    "cluster": to_cluster_message(cluster),
                    "update_mask": {"paths": list(update_mask)},
                }
            )
        return DataprocOperation(future)

    @retry(**RETRY_CONFIG)  # type: ignore[call-overload, untyped-decorator]
    def get_cluster(self, project: str, region: str, name: str) -> dict[str, Any]:
        client = self._cluster_clients(region)
        with provider_errors(f"reading cluster {name}"):
            cluster = client.get_cluster(
                request={"project_id": project, "region": region, "cluster_name": name}
            )
        return to_payload(cluster)

    def delete_cluster(self, project: str, region: str, name: str) -> DataprocOperation:
        client = self._cluster_clients(region)
        with provider_errors(f"deleting cluster {name}"):
            future = client.delete_cluster(
                request={"project_id": project, "region": region, "cluster_name": name}
            )
        return DataprocOperation(future)

    @retry(**RETRY_CONFIG)  # type: ignore[call-overload, untyped-decorator]
    def list_objects(self, bucket: str) -> list[str]:
        # The client library handles pagination when iterating
        with provider_errors(f"listing objects in {bucket}"):
            return [blob.name for blob in self.storage.list_blobs(bucket)]

    def delete_object(self, bucket: str, name: str) -> None:
        with provider_errors(f"deleting object {name} in {bucket}"):
            self.storage.bucket(bucket).delete_blob(name)
        logger.debug(f"Deleted object gs://{bucket}/{name}")

    def delete_bucket(self, bucket: str) -> None:
        with provider_errors(f"deleting bucket {bucket}"):
            self.storage.bucket(bucket).delete()
