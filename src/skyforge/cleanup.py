from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from tenacity import Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from .core import BUCKET_DELETE_TIMEOUT
from .errors import NotFoundError, RateLimitedError
from .logger import logger
from .schemas.cluster import ClusterConfig


class BucketClient(Protocol):
    def list_objects(self, bucket: str) -> list[str]: ...

    def delete_object(self, bucket: str, name: str) -> None: ...

    def delete_bucket(self, bucket: str) -> None: ...


def autogen_bucket(config: ClusterConfig | None) -> str | None:
    """
    Returns the staging bucket the provider created on our behalf, or None
    if the user supplied their own (those are never touched).
    """
    if config is None or config.staging_bucket:
        return None
    return config.bucket or None


def _delete_object(client: BucketClient, bucket: str, name: str) -> None:
    try:
        client.delete_object(bucket, name)
    except NotFoundError:
        # Object may be gone already
        logger.debug(f"Object gs://{bucket}/{name} already deleted")


def delete_bucket_contents(
    client: BucketClient, bucket: str, concurrency: int = 1
) -> int:
    """
    Deletes every object in the bucket. A missing bucket counts as empty.
    Returns the number of objects found.
    """
    try:
        objects = client.list_objects(bucket)
    except NotFoundError:
        logger.debug(f"Bucket {bucket} is already gone")
        return 0

    if not objects:
        return 0

    logger.info(f"Purging {len(objects)} objects from bucket {bucket}")
    if concurrency <= 1:
        for name in objects:
            _delete_object(client, bucket, name)
    else:
        # Objects are independent; deletion order does not matter
        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            futures = [
                executor.submit(_delete_object, client, bucket, name)
                for name in objects
            ]
            for future in futures:
                future.result()
    return len(objects)


def delete_empty_bucket(
    client: BucketClient,
    bucket: str,
    timeout: float = BUCKET_DELETE_TIMEOUT,
    retrying: Retrying | None = None,
) -> None:
    """Deletes an emptied bucket, retrying rate limits until `timeout` seconds."""
    retrying = retrying or Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(RateLimitedError),
        reraise=True,
    )
    try:
        retrying(client.delete_bucket, bucket)
    except NotFoundError:
        logger.debug(f"Bucket {bucket} is already gone")
        return
    except RateLimitedError:
        logger.error(f"Error deleting bucket {bucket}: still rate limited")
        raise
    logger.info(f"Deleted autogenerated bucket {bucket}")


def empty_and_delete_bucket(
    client: BucketClient, bucket: str, concurrency: int = 1
) -> None:
    delete_bucket_contents(client, bucket, concurrency=concurrency)
    delete_empty_bucket(client, bucket)
