import pytest

from skyforge.errors import StateError
from skyforge.loader import parse_cluster_spec
from skyforge.state import FileStateStore, StateRecord


def test_missing_record(tmp_path):
    store = FileStateStore(tmp_path)
    assert store.load("p1/global/c1") is None


def test_save_and_load(tmp_path):
    store = FileStateStore(tmp_path / "state")
    spec = parse_cluster_spec(
        {
            "name": "c1",
            "project": "p1",
            "cluster_config": {
                "delete_autogen_bucket": True,
                "initialization_action": [{"script": "gs://b/a.sh", "timeout_sec": 30}],
            },
        }
    )

    store.save(spec.key, StateRecord(id=spec.key, spec=spec))
    record = store.load(spec.key)

    assert record.id == "p1/global/c1"
    assert record.spec == spec
    assert (tmp_path / "state" / "p1__global__c1.json").exists()


def test_save_replaces_record(tmp_path):
    store = FileStateStore(tmp_path)
    store.save("k", StateRecord(id="first"))
    store.save("k", StateRecord(id="second"))

    assert store.load("k").id == "second"
    assert list(tmp_path.iterdir()) == [tmp_path / "k.json"]


def test_delete(tmp_path):
    store = FileStateStore(tmp_path)
    store.save("k", StateRecord(id="k"))

    store.delete("k")
    store.delete("k")

    assert store.load("k") is None


def test_corrupt_record(tmp_path):
    (tmp_path / "k.json").write_text("{not json")

    with pytest.raises(StateError, match="Corrupt state file"):
        FileStateStore(tmp_path).load("k")
