from collections.abc import Iterable

SCOPE_PREFIX = "https://www.googleapis.com/auth/"

# Short aliases accepted for service account scopes, as gcloud spells them.
SCOPE_ALIASES = {
    "bigquery": "bigquery",
    "cloud-platform": "cloud-platform",
    "cloud-source-repos": "source.full_control",
    "cloud-source-repos-ro": "source.read_only",
    "compute-ro": "compute.readonly",
    "compute-rw": "compute",
    "datastore": "datastore",
    "logging-write": "logging.write",
    "monitoring": "monitoring",
    "monitoring-write": "monitoring.write",
    "pubsub": "pubsub",
    "service-control": "servicecontrol",
    "service-management": "service.management.readonly",
    "sql": "sqlservice",
    "sql-admin": "sqlservice.admin",
    "storage-full": "devstorage.full_control",
    "storage-ro": "devstorage.read_only",
    "storage-rw": "devstorage.read_write",
    "taskqueue": "taskqueue",
    "trace-append": "trace.append",
    "trace-ro": "trace.readonly",
    "useraccounts-ro": "cloud.useraccounts.readonly",
    "useraccounts-rw": "cloud.useraccounts",
    "userinfo-email": "userinfo.email",
}


def extract_last_segment(uri: str) -> str:
    """
    Returns the short name of a resource URI.
    e.g. https://.../zones/us-central1-a/machineTypes/n1-standard-1 -> n1-standard-1
    """
    return uri.split("/")[-1]


def canonicalize_scope(scope: str) -> str:
    """
    Expands a scope alias (e.g. storage-rw) to its fully qualified URI.
    Fully qualified scopes and unknown aliases are returned unchanged.
    """
    if scope.startswith(SCOPE_PREFIX):
        return scope
    suffix = SCOPE_ALIASES.get(scope)
    if suffix is None:
        return scope
    return SCOPE_PREFIX + suffix


def canonicalize_scopes(scopes: Iterable[str]) -> list[str]:
    """
    Canonicalizes every scope and sorts the result.

    The provider silently adds its baseline scopes (useraccounts.readonly,
    devstorage.read_write, logging.write) and returns the set in its own
    order, so comparisons only hold on the sorted canonical form.
    """
    return sorted(canonicalize_scope(s) for s in scopes)
