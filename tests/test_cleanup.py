import pytest
from tenacity import Retrying, stop_after_attempt

from skyforge.cleanup import (
    autogen_bucket,
    delete_bucket_contents,
    delete_empty_bucket,
    empty_and_delete_bucket,
)
from skyforge.errors import NotFoundError, RateLimitedError
from skyforge.schemas.cluster import ClusterConfig


def test_autogen_bucket():
    assert autogen_bucket(ClusterConfig(bucket="dataproc-abc")) == "dataproc-abc"
    assert autogen_bucket(ClusterConfig()) is None
    assert autogen_bucket(None) is None


def test_user_staging_bucket_never_touched():
    config = ClusterConfig(staging_bucket="mine", bucket="mine")
    assert autogen_bucket(config) is None


def test_delete_bucket_contents(mocker):
    client = mocker.Mock()
    client.list_objects.return_value = ["a", "b", "c"]

    assert delete_bucket_contents(client, "bkt") == 3

    client.list_objects.assert_called_once_with("bkt")
    assert client.delete_object.call_args_list == [
        mocker.call("bkt", "a"),
        mocker.call("bkt", "b"),
        mocker.call("bkt", "c"),
    ]


def test_delete_bucket_contents_parallel(mocker):
    client = mocker.Mock()
    client.list_objects.return_value = [f"obj-{i}" for i in range(10)]

    assert delete_bucket_contents(client, "bkt", concurrency=4) == 10
    assert client.delete_object.call_count == 10


def test_missing_bucket_counts_as_empty(mocker):
    client = mocker.Mock()
    client.list_objects.side_effect = NotFoundError("gone")

    assert delete_bucket_contents(client, "bkt") == 0
    client.delete_object.assert_not_called()


def test_missing_object_tolerated(mocker):
    client = mocker.Mock()
    client.list_objects.return_value = ["a", "b"]
    client.delete_object.side_effect = [NotFoundError("gone"), None]

    assert delete_bucket_contents(client, "bkt") == 2
    assert client.delete_object.call_count == 2


def test_delete_empty_bucket_missing_tolerated(mocker):
    client = mocker.Mock()
    client.delete_bucket.side_effect = NotFoundError("gone")

    delete_empty_bucket(client, "bkt")

    client.delete_bucket.assert_called_once_with("bkt")


def test_delete_empty_bucket_retries_rate_limit(mocker):
    client = mocker.Mock()
    client.delete_bucket.side_effect = [RateLimitedError("slow"), None]
    retrying = Retrying(
        stop=stop_after_attempt(3), sleep=lambda s: None, reraise=True
    )

    delete_empty_bucket(client, "bkt", retrying=retrying)

    assert client.delete_bucket.call_count == 2


def test_delete_empty_bucket_gives_up(mocker):
    client = mocker.Mock()
    client.delete_bucket.side_effect = RateLimitedError("slow")
    retrying = Retrying(
        stop=stop_after_attempt(2), sleep=lambda s: None, reraise=True
    )

    with pytest.raises(RateLimitedError):
        delete_empty_bucket(client, "bkt", retrying=retrying)


def test_empty_and_delete_bucket(mocker):
    client = mocker.Mock()
    client.list_objects.return_value = ["a"]

    empty_and_delete_bucket(client, "bkt")

    client.delete_object.assert_called_once_with("bkt", "a")
    client.delete_bucket.assert_called_once_with("bkt")
