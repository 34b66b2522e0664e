from __future__ import annotations

from functools import lru_cache
from typing import Any

from google.cloud import dataproc_v1
from google.cloud import storage  # type: ignore # noqa: I001

from .core import GLOBAL_REGION

# Shared Client Registry (Lazy-loaded and cached)


@lru_cache(maxsize=None)
def get_cluster_controller_client(region: str) -> Any:
    # Regional clusters are only visible through their regional endpoint
    if region == GLOBAL_REGION:
        return dataproc_v1.ClusterControllerClient()
    return dataproc_v1.ClusterControllerClient(
        client_options={"api_endpoint": f"{region}-dataproc.googleapis.com:443"}
    )


@lru_cache(maxsize=1)
def get_storage_client() -> Any:
    return storage.Client()
