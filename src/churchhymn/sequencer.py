"""Presentation order and navigation for the full-screen presenter.

Verses are shown in order, each followed by the first chorus of the hymn::

    blocks   = [V1, V2, C, V3]
    sequence = [V1, C, V2, C, V3, C]

Without a chorus the verses are shown as they are.
"""

from .models import Block

# Key names understood by PresentationSequencer.handle_key().
ADVANCE_KEYS = frozenset({" ", "\r", "\n", "right", "down"})
RETREAT_KEYS = frozenset({"left", "up"})
CHORUS_KEYS = frozenset({"c", "C"})
VERSE_KEYS = "123456789"


def build_presentation(blocks: list[Block], chorus_only_fallback: bool = False) -> list[Block]:
    """Return the blocks in the order a presenter cycles through them.

    A hymn made only of a chorus yields ``[chorus]`` when
    *chorus_only_fallback* is set, and an empty sequence otherwise.
    """
    verses = [b for b in blocks if not b.is_chorus]
    chorus = next((b for b in blocks if b.is_chorus), None)

    if chorus is None:
        return verses
    if not verses:
        return [chorus] if chorus_only_fallback else []

    sequence: list[Block] = []
    for verse in verses:
        sequence.extend([verse, chorus])
    return sequence


class PresentationSequencer:
    """Cursor over a presentation sequence.

    With ``cyclic=True`` advancing past the last block wraps to the first and
    retreating before the first wraps to the last; otherwise the cursor stops
    at either end.
    """

    def __init__(self, blocks: list[Block], cyclic: bool = True, chorus_only_fallback: bool = False):
        self.cyclic = cyclic
        self.sequence = build_presentation(blocks, chorus_only_fallback)
        self.index = 0

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def is_empty(self) -> bool:
        return not self.sequence

    @property
    def current(self) -> Block | None:
        if self.is_empty:
            return None
        return self.sequence[self.index]

    def advance(self) -> None:
        if self.is_empty:
            return
        if self.cyclic:
            self.index = (self.index + 1) % len(self.sequence)
        else:
            self.index = min(self.index + 1, len(self.sequence) - 1)

    def retreat(self) -> None:
        if self.is_empty:
            return
        if self.cyclic:
            self.index = (self.index - 1) % len(self.sequence)
        else:
            self.index = max(self.index - 1, 0)

    def jump_to_verse(self, number: int) -> bool:
        """Move to the *number*-th verse (1-based). Returns False if absent."""
        if number < 1:
            return False
        seen = 0
        for position, block in enumerate(self.sequence):
            if block.is_chorus:
                continue
            seen += 1
            if seen == number:
                self.index = position
                return True
        return False

    def jump_to_chorus(self) -> bool:
        """Move to the first chorus. Returns False if the hymn has none."""
        for position, block in enumerate(self.sequence):
            if block.is_chorus:
                self.index = position
                return True
        return False

    def current_label(self) -> str | None:
        """``"Chorus"`` for the refrain, ``"Verse k"`` otherwise."""
        block = self.current
        if block is None:
            return None
        if block.label:
            return block.label
        verse_number = sum(1 for b in self.sequence[: self.index + 1] if b.label is None)
        return f"Verse {verse_number}"

    def handle_key(self, key: str) -> bool:
        """Dispatch a key press. Returns True if the key was consumed."""
        if key in ADVANCE_KEYS:
            self.advance()
            return True
        if key in RETREAT_KEYS:
            self.retreat()
            return True
        if key in CHORUS_KEYS:
            self.jump_to_chorus()
            return True
        if len(key) == 1 and key in VERSE_KEYS:
            self.jump_to_verse(int(key))
            return True
        return False
