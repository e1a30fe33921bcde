import pytest

from churchhymn.editing import EditFlow
from churchhymn.store import HymnStore


@pytest.fixture
def flow():
    with HymnStore(":memory:") as store:
        store.initialize_schema()
        yield EditFlow(store)


def test_new_draft_is_stored(flow):
    draft = flow.begin_new()
    assert draft.is_draft
    assert flow.store.get(draft.id) is not None


def test_untitled_draft_discarded_on_finish(flow):
    draft = flow.begin_new()
    assert flow.finish(draft)
    assert flow.store.count() == 0


def test_whitespace_title_still_a_draft(flow):
    draft = flow.begin_new()
    flow.apply(draft, title="   ", lyrics="Some words")
    assert flow.finish(draft)
    assert flow.store.get(draft.id) is None


def test_titled_hymn_kept(flow):
    draft = flow.begin_new()
    flow.apply(draft, title="Amazing Grace", musical_key="C")
    assert not flow.finish(draft)
    loaded = flow.store.get(draft.id)
    assert loaded.title == "Amazing Grace"
    assert loaded.musical_key == "C"


def test_apply_rejects_unknown_field(flow):
    draft = flow.begin_new()
    with pytest.raises(TypeError):
        flow.apply(draft, tempo=90)
