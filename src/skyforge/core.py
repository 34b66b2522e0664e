from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import RateLimitedError

# Shared retry configuration for read-only provider calls
# usage: @retry(**RETRY_CONFIG)
RETRY_CONFIG = {
    "stop": stop_after_attempt(3),
    "wait": wait_exponential(multiplier=1, min=4, max=10),
    "retry": retry_if_exception_type(RateLimitedError),
    "reraise": True,
}

# Backoff between rate-limited submissions of a mutating call.
# The attempt count is chosen per operation (see SUBMIT_ATTEMPTS).
SUBMIT_WAIT = wait_exponential(multiplier=1, min=2, max=30)

# Sentinel region: clusters here are not pinned to a regional endpoint,
# so the zone has to be spelled out explicitly.
GLOBAL_REGION = "global"

# Default operation timeouts, in minutes. Each is overridable per call.
DEFAULT_TIMEOUTS = {
    "create": 10,
    "update": 5,
    "delete": 5,
}

# How many times a mutating call is submitted before a rate limit is fatal.
SUBMIT_ATTEMPTS = {
    "create": 3,
    "update": 2,
    "delete": 3,
}

# Seconds between two polls of a long-running operation
DEFAULT_POLL_INTERVAL = 10.0

# Deleting the emptied staging bucket keeps retrying rate limits this long
BUCKET_DELETE_TIMEOUT = 60

# Cluster names are embedded in instance names, hence the short limit
MAX_CLUSTER_NAME_LENGTH = 55
MIN_BOOT_DISK_SIZE_GB = 10
