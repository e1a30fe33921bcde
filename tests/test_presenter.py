import pytest

from churchhymn.models import Hymn
from churchhymn.presenter import KeyTap, PresentationController, PresenterSession

LYRICS = "Verse one\n\nCHORUS\nRefrain\n\nVerse two"


def _hymn(title="Amazing Grace", lyrics=LYRICS) -> Hymn:
    return Hymn(title=title, lyrics=lyrics)


# ---------------------------------------------------------------------------
# KeyTap
# ---------------------------------------------------------------------------


def test_key_tap_dispatches_to_handler():
    tap = KeyTap()
    seen = []
    tap.install(lambda key: seen.append(key) or True)
    assert tap.dispatch("x")
    assert seen == ["x"]


def test_key_tap_double_install_rejected():
    tap = KeyTap()
    tap.install(lambda key: True)
    with pytest.raises(RuntimeError):
        tap.install(lambda key: True)


def test_key_tap_removed_ignores_keys():
    tap = KeyTap()
    tap.install(lambda key: True)
    tap.remove()
    tap.remove()
    assert not tap.installed
    assert not tap.dispatch("x")


# ---------------------------------------------------------------------------
# PresenterSession
# ---------------------------------------------------------------------------


def test_session_ignores_keys_until_opened():
    session = PresenterSession(_hymn())
    assert not session.feed("right")
    assert session.sequencer.index == 0


def test_session_context_manager_installs_and_removes_tap():
    session = PresenterSession(_hymn())
    with session:
        assert session.is_open
        assert session.feed("right")
    assert not session.is_open
    assert not session.feed("right")
    assert session.sequencer.index == 1


def test_session_render():
    with PresenterSession(_hymn()) as session:
        slide = session.render()
        assert slide.title == "Amazing Grace"
        assert slide.text == "Verse one"
        assert slide.label == "Verse 1"
        session.feed("right")
        assert session.render().label == "Chorus"
        assert session.render().text == "Refrain"


def test_session_render_empty_hymn():
    with PresenterSession(_hymn(lyrics=None)) as session:
        slide = session.render()
        assert slide.text == ""
        assert slide.label is None


def test_session_clamped():
    with PresenterSession(_hymn(lyrics="One\n\nTwo"), cyclic=False) as session:
        session.feed("left")
        assert session.sequencer.index == 0


# ---------------------------------------------------------------------------
# PresentationController
# ---------------------------------------------------------------------------


def test_controller_reuses_session_for_same_hymn():
    controller = PresentationController()
    hymn = _hymn()
    first = controller.present(hymn)
    first.feed("right")
    assert controller.present(hymn) is first
    assert first.sequencer.index == 1


def test_controller_replaces_session_for_other_hymn():
    controller = PresentationController()
    first = controller.present(_hymn())
    second = controller.present(_hymn(title="Other"))
    assert second is not first
    assert not first.is_open
    assert second.is_open
    assert controller.session is second


def test_controller_close_releases_tap():
    controller = PresentationController()
    session = controller.present(_hymn())
    controller.close()
    assert controller.session is None
    assert not session.is_open
    controller.close()


def test_controller_passes_navigation_settings():
    controller = PresentationController(cyclic=False, chorus_only_fallback=True)
    session = controller.present(_hymn(lyrics="CHORUS\nOnly refrain"))
    assert not session.sequencer.cyclic
    assert len(session.sequencer) == 1


def test_controller_chorus_only_hymn_empty_by_default():
    session = PresentationController().present(_hymn(lyrics="CHORUS\nOnly refrain"))
    assert session.sequencer.is_empty
