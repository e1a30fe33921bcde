import pytest

from churchhymn.exceptions import StoreError
from churchhymn.models import Hymn
from churchhymn.store import HymnStore


@pytest.fixture
def store():
    with HymnStore(":memory:") as s:
        s.initialize_schema()
        yield s


def test_insert_and_get_round_trip(store):
    hymn = Hymn(
        title="Amazing Grace",
        lyrics="Amazing grace\n\nCHORUS\nPraise",
        musical_key="C",
        copyright="Public Domain",
        author="John Newton",
        tags=["grace", "salvation"],
        notes="Traditional",
        song_number=123,
    )
    store.insert(hymn)
    loaded = store.get(hymn.id)
    assert loaded == hymn
    assert loaded.lyrics == hymn.lyrics
    assert loaded.tags == ["grace", "salvation"]
    assert loaded.song_number == 123
    assert loaded.musical_key == "C"


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


def test_all_sorted_by_title_ignoring_case(store):
    for title in ("be thou my vision", "Amazing Grace", "Crown Him"):
        store.insert(Hymn(title=title))
    assert [h.title for h in store.all()] == ["Amazing Grace", "be thou my vision", "Crown Him"]


def test_save_updates_fields(store):
    hymn = store.insert(Hymn(title="Old"))
    hymn.update(title="New", tags=["x"])
    store.save(hymn)
    loaded = store.get(hymn.id)
    assert loaded.title == "New"
    assert loaded.tags == ["x"]


def test_save_unknown_hymn_raises(store):
    with pytest.raises(StoreError):
        store.save(Hymn(title="Never inserted"))


def test_insert_duplicate_id_raises(store):
    hymn = store.insert(Hymn(title="A"))
    with pytest.raises(StoreError):
        store.insert(Hymn(title="B", id=hymn.id))
    assert store.count() == 1


def test_delete(store):
    hymn = store.insert(Hymn(title="A"))
    assert store.delete(hymn)
    assert not store.delete(hymn.id)
    assert store.count() == 0


def test_find_by_title_case_insensitive(store):
    hymn = store.insert(Hymn(title="Amazing Grace"))
    assert store.find_by_title("amazing grace") == hymn
    assert store.find_by_title("  AMAZING GRACE ") == hymn
    assert store.find_by_title("Amazing") is None


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.transaction() as conn:
            store.insert_row(conn, Hymn(title="A"))
            raise RuntimeError("stop")
    assert store.count() == 0


def test_file_database_persists(tmp_path):
    db_path = tmp_path / "nested" / "hymns.db"
    with HymnStore(db_path) as first:
        first.initialize_schema()
        first.insert(Hymn(title="A"))
    with HymnStore(db_path) as second:
        assert [h.title for h in second.all()] == ["A"]
