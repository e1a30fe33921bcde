from churchhymn.models import Block
from churchhymn.sequencer import PresentationSequencer, build_presentation

V1 = Block(label=None, lines=["v1"])
V2 = Block(label=None, lines=["v2"])
V3 = Block(label=None, lines=["v3"])
C = Block(label="Chorus", lines=["c"])
C2 = Block(label="Chorus", lines=["second chorus"])


def _seq(blocks, **kwargs) -> PresentationSequencer:
    return PresentationSequencer(blocks, **kwargs)


# ---------------------------------------------------------------------------
# build_presentation
# ---------------------------------------------------------------------------


def test_three_verses_one_chorus():
    sequence = build_presentation([V1, C, V2, V3])
    assert sequence == [V1, C, V2, C, V3, C]
    assert len(sequence) == 6


def test_three_verses_no_chorus():
    assert build_presentation([V1, V2, V3]) == [V1, V2, V3]


def test_chorus_is_the_same_block_each_time():
    sequence = build_presentation([V1, V2, C])
    assert sequence[1] is sequence[3]


def test_only_first_chorus_used():
    assert build_presentation([V1, C, V2, C2]) == [V1, C, V2, C]


def test_chorus_only_hymn_is_empty_by_default():
    assert build_presentation([C]) == []


def test_chorus_only_hymn_shows_chorus_with_fallback():
    assert build_presentation([C], chorus_only_fallback=True) == [C]


def test_no_blocks():
    assert build_presentation([]) == []


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def test_starts_at_first_block():
    seq = _seq([V1, C, V2])
    assert seq.index == 0
    assert seq.current is V1


def test_cyclic_advance_wraps():
    seq = _seq([V1, V2])
    seq.advance()
    seq.advance()
    assert seq.current is V1


def test_cyclic_retreat_wraps():
    seq = _seq([V1, V2, V3])
    seq.retreat()
    assert seq.current is V3


def test_clamped_advance_stops_at_end():
    seq = _seq([V1, V2], cyclic=False)
    for _ in range(5):
        seq.advance()
    assert seq.current is V2


def test_clamped_retreat_stops_at_start():
    seq = _seq([V1, V2], cyclic=False)
    seq.retreat()
    assert seq.index == 0


def test_empty_sequence_navigation_is_noop():
    seq = _seq([])
    seq.advance()
    seq.retreat()
    assert seq.is_empty
    assert seq.current is None
    assert seq.current_label() is None
    assert not seq.jump_to_verse(1)
    assert not seq.jump_to_chorus()


def test_jump_to_verse():
    seq = _seq([V1, C, V2, V3])
    assert seq.jump_to_verse(3)
    assert seq.current is V3
    assert seq.index == 4


def test_jump_to_missing_verse_is_noop():
    seq = _seq([V1, C, V2])
    seq.advance()
    assert not seq.jump_to_verse(5)
    assert not seq.jump_to_verse(0)
    assert seq.index == 1


def test_jump_to_chorus():
    seq = _seq([V1, V2, C])
    seq.jump_to_verse(2)
    assert seq.jump_to_chorus()
    assert seq.index == 1


def test_jump_to_chorus_without_chorus_is_noop():
    seq = _seq([V1, V2])
    seq.advance()
    assert not seq.jump_to_chorus()
    assert seq.index == 1


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def test_labels_count_verses_up_to_cursor():
    seq = _seq([V1, C, V2, V3])
    labels = []
    for _ in range(len(seq)):
        labels.append(seq.current_label())
        seq.advance()
    assert labels == ["Verse 1", "Chorus", "Verse 2", "Chorus", "Verse 3", "Chorus"]


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def test_advance_keys():
    for key in (" ", "\r", "\n", "right", "down"):
        seq = _seq([V1, V2])
        assert seq.handle_key(key)
        assert seq.current is V2


def test_retreat_keys():
    for key in ("left", "up"):
        seq = _seq([V1, V2, V3])
        assert seq.handle_key(key)
        assert seq.current is V3


def test_digit_and_chorus_keys():
    seq = _seq([V1, C, V2])
    assert seq.handle_key("2")
    assert seq.current is V2
    assert seq.handle_key("c")
    assert seq.current is C


def test_unknown_keys_not_consumed():
    seq = _seq([V1, V2])
    assert not seq.handle_key("x")
    assert not seq.handle_key("0")
    assert not seq.handle_key("²")
    assert not seq.handle_key("٣")
    assert seq.index == 0
