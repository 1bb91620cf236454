import json
from unittest.mock import Mock

import pytest

from raju import config
from raju.exceptions import StorageUnavailableError, StoreError
from raju.memory import ExperienceStore, KeyValueStorage
from raju.models import ExecutionMode, Experience, PhaseType, ReasoningPhase, ThoughtStream


def make_experience(
    exp_id,
    task="Write a haiku",
    success=True,
    timestamp=1.0,
    mode=ExecutionMode.OFFLINE,
    model="default",
    output="ok",
):
    stream = ThoughtStream.start(exp_id)
    stream.add_phase(ReasoningPhase(PhaseType.PLAN, timestamp, "plan"))
    stream.finalize()
    return Experience(
        id=exp_id,
        task_description=task,
        mode=mode,
        model=model,
        input=task,
        output=output,
        reasoning=stream,
        success=success,
        timestamp=timestamp,
    )


@pytest.fixture
def storage(tmp_path):
    return KeyValueStorage(tmp_path / "kv")


@pytest.fixture
def store(storage):
    store = ExperienceStore(storage=storage)
    store.initialize()
    return store


def test_initialize_creates_stats_record(storage):
    store = ExperienceStore(storage=storage)
    store.initialize()

    raw = storage.get_item(config.MEMORY_STATS_KEY)
    stats = json.loads(raw)
    assert stats["total_experiences"] == 0
    assert stats["schema_version"] == config.STORAGE_SCHEMA_VERSION


def test_initialize_never_raises():
    storage = Mock()
    storage.get_item.side_effect = StorageUnavailableError("disk gone")
    ExperienceStore(storage=storage).initialize()


def test_store_appends_in_order(store):
    store.store(make_experience("a", timestamp=1.0))
    store.store(make_experience("b", timestamp=2.0))

    assert [e.id for e in store.get_all()] == ["a", "b"]
    assert store.get_by_id("b").timestamp == 2.0
    assert store.get_by_id("missing") is None


def test_store_updates_stats(store, storage):
    store.store(make_experience("a"))
    stats = store.get_stats()

    raw = storage.get_item(config.EXPERIENCES_STORAGE_KEY)
    assert stats.total_experiences == 1
    assert stats.total_memory_size == len(raw.encode("utf-8"))


def test_store_rejects_duplicate_id(store):
    store.store(make_experience("a"))
    with pytest.raises(StoreError):
        store.store(make_experience("a"))
    assert store.count() == 1


def test_records_are_persisted_across_instances(storage, store):
    store.store(make_experience("a", task="Analyze logs"))

    reopened = ExperienceStore(storage=storage)
    assert reopened.get_all()[0].task_description == "Analyze logs"


def test_eviction_keeps_newest_fraction_in_original_order(storage):
    store = ExperienceStore(storage=storage, max_experiences=5)
    # Timestamps deliberately out of insertion order
    for exp_id, ts in [("a", 5.0), ("b", 1.0), ("c", 4.0), ("d", 2.0), ("e", 3.0)]:
        store.store(make_experience(exp_id, timestamp=ts))

    store.store(make_experience("f", timestamp=6.0))

    # floor(5 * 0.8) = 4 newest survive: a, c, e, d; b is dropped
    assert [e.id for e in store.get_all()] == ["a", "c", "d", "e", "f"]
    assert store.get_stats().total_experiences == 5


def test_eviction_stamps_last_cleanup(storage, monkeypatch):
    store = ExperienceStore(storage=storage, max_experiences=2)
    store.initialize()
    before = store.get_stats().last_cleanup

    monkeypatch.setattr("raju.memory.experience_store.time.time", lambda: before + 100)
    store.store(make_experience("a", timestamp=1.0))
    store.store(make_experience("b", timestamp=2.0))
    assert store.get_stats().last_cleanup == before

    store.store(make_experience("c", timestamp=3.0))
    assert store.get_stats().last_cleanup == before + 100
    assert [e.id for e in store.get_all()] == ["b", "c"]


def test_count_never_exceeds_max(storage):
    store = ExperienceStore(storage=storage, max_experiences=10)
    for i in range(35):
        store.store(make_experience(f"e{i}", timestamp=float(i)))
        assert store.count() <= 10
    assert store.get_all()[-1].id == "e34"


def test_invalid_retention_settings_rejected(storage):
    with pytest.raises(ValueError):
        ExperienceStore(storage=storage, max_experiences=0)
    with pytest.raises(ValueError):
        ExperienceStore(storage=storage, keep_ratio=1.5)


def test_search_is_case_insensitive_over_task_input_and_output(store):
    store.store(make_experience("a", task="Summarize the REPORT"))
    store.store(make_experience("b", task="Other", output="the report is done"))
    store.store(make_experience("c", task="Unrelated"))

    assert {e.id for e in store.search("report")} == {"a", "b"}


def test_find_similar_is_symmetric_containment(store):
    store.store(make_experience("a", task="summarize"))
    store.store(make_experience("b", task="Summarize the quarterly report in detail"))
    store.store(make_experience("c", task="translate"))

    # Past task contained in the new one
    similar = store.find_similar("Summarize the weekly notes")
    assert {e.id for e in similar} == {"a"}

    # New task contained in a past one
    similar = store.find_similar("the QUARTERLY report")
    assert {e.id for e in similar} == {"b"}

    similar = store.find_similar("Summarize the quarterly report")
    assert {e.id for e in similar} == {"a", "b"}


def test_filters(store):
    store.store(make_experience("a", mode=ExecutionMode.CLOUD, model="gpt-4-turbo"))
    store.store(make_experience("b", mode=ExecutionMode.OFFLINE, model="default"))

    assert [e.id for e in store.filter_by_mode(ExecutionMode.CLOUD)] == ["a"]
    assert [e.id for e in store.filter_by_mode("offline")] == ["b"]
    assert [e.id for e in store.filter_by_model("gpt-4-turbo")] == ["a"]


def test_success_rate(store):
    assert store.get_success_rate() == (0, 0, 0.0)

    store.store(make_experience("a", success=True))
    store.store(make_experience("b", success=True))
    store.store(make_experience("c", success=False))
    store.store(make_experience("d", success=True))

    rate = store.get_success_rate()
    assert rate.successful == 3
    assert rate.failed == 1
    assert rate.rate == pytest.approx(75.0)


def test_delete_is_idempotent(store):
    store.store(make_experience("a"))
    store.store(make_experience("b"))

    store.delete("a")
    store.delete("a")
    store.delete("never-existed")

    assert [e.id for e in store.get_all()] == ["b"]
    assert store.get_stats().total_experiences == 1


def test_clear_all(store, storage):
    store.store(make_experience("a"))
    store.clear_all()

    assert store.get_all() == []
    assert storage.get_item(config.EXPERIENCES_STORAGE_KEY) is None
    assert store.get_stats().total_experiences == 0


def test_export_is_indented_json(store):
    store.store(make_experience("a"))
    exported = store.export()

    assert "\n  " in exported
    assert json.loads(exported)[0]["id"] == "a"


def test_reads_degrade_when_records_are_corrupt(store, storage):
    storage.set_item(config.EXPERIENCES_STORAGE_KEY, "{not json")

    assert store.get_all() == []
    assert store.search("x") == []
    assert store.find_similar("x") == []
    assert store.get_success_rate().rate == 0.0


def test_write_does_not_overwrite_unreadable_records(store, storage):
    storage.set_item(config.EXPERIENCES_STORAGE_KEY, "{not json")

    with pytest.raises(StoreError):
        store.store(make_experience("a"))
    with pytest.raises(StoreError):
        store.delete("a")
    with pytest.raises(StoreError):
        store.export()

    assert storage.get_item(config.EXPERIENCES_STORAGE_KEY) == "{not json"


def test_storage_failures_surface_as_store_error_on_write(tmp_path):
    storage = Mock()
    storage.get_item.return_value = None
    storage.set_item.side_effect = StorageUnavailableError("read-only")
    storage.remove_item.side_effect = StorageUnavailableError("read-only")
    store = ExperienceStore(storage=storage)

    with pytest.raises(StoreError):
        store.store(make_experience("a"))
    with pytest.raises(StoreError):
        store.clear_all()


def test_storage_failures_degrade_on_read():
    storage = Mock()
    storage.get_item.side_effect = StorageUnavailableError("unavailable")
    store = ExperienceStore(storage=storage)

    assert store.get_all() == []
    assert store.get_by_id("a") is None
    assert store.get_stats().total_experiences == 0


def test_eviction_with_increasing_timestamps_drops_oldest(storage):
    store = ExperienceStore(storage=storage, max_experiences=10)
    for i in range(10):
        store.store(make_experience(f"e{i}", timestamp=float(i)))

    store.store(make_experience("new", timestamp=100.0))

    remaining = [e.id for e in store.get_all()]
    assert len(remaining) == 8 + 1
    assert remaining == [f"e{i}" for i in range(2, 10)] + ["new"]


def test_eviction_with_equal_timestamps_drops_earliest_inserted(storage):
    store = ExperienceStore(storage=storage, max_experiences=5)
    for i in range(5):
        store.store(make_experience(f"e{i}", timestamp=7.0))

    store.store(make_experience("new", timestamp=7.0))

    assert [e.id for e in store.get_all()] == ["e1", "e2", "e3", "e4", "new"]


def test_search_examples(store):
    store.store(make_experience("q", task="Summarize the quarterly report"))

    assert [e.id for e in store.search("quarterly")] == ["q"]
    assert [e.id for e in store.search("QUARTERLY")] == ["q"]
    assert store.search("zzz-nomatch") == []


def test_deleting_unknown_id_twice_keeps_count(store):
    store.store(make_experience("a"))
    store.delete("ghost")
    assert store.count() == 1
    store.delete("ghost")
    assert store.count() == 1
