import warnings

# Suppress Google SDK FutureWarning messages about interpreter deprecation.
# These clutter the CLI output while an operation is being polled.
warnings.filterwarnings("ignore", category=FutureWarning, module="google.api_core")
warnings.filterwarnings("ignore", category=FutureWarning, module="google.cloud")

from .loader import load_spec_file, parse_cluster_spec  # noqa: E402
from .resource import Action, ClusterResource, Plan  # noqa: E402
from .schemas.cluster import ClusterSpec  # noqa: E402

__all__ = [
    "Action",
    "ClusterResource",
    "ClusterSpec",
    "Plan",
    "load_spec_file",
    "parse_cluster_spec",
]
