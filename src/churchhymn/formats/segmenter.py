"""Lyrics segmentation shared by every hymn format and the presenter.

Raw lyrics hold blocks separated by a blank line::

    Amazing grace, how sweet the sound
    That saved a wretch like me

    CHORUS
    Praise God, praise God

A block whose first line reads ``CHORUS`` (any case, surrounding whitespace
ignored) is the refrain. The header line is dropped from the block. Every
other block is a verse. Lines starting with ``C:`` carry no special meaning.
"""

from ..models import CHORUS_LABEL, Block

CHORUS_HEADER = "CHORUS"

BLOCK_SEPARATOR = "\n\n"


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def is_chorus_header(line: str) -> bool:
    return line.strip().upper() == CHORUS_HEADER


def segment_lyrics(lyrics: str | None) -> list[Block]:
    """Split *lyrics* into ordered verse and chorus blocks.

    Several blank lines in a row collapse into one separator. A lyrics string
    with no blank line yields a single verse.
    """
    if not lyrics:
        return []

    blocks: list[Block] = []
    for chunk in normalize_newlines(lyrics).split(BLOCK_SEPARATOR):
        chunk = chunk.strip()
        if not chunk:
            continue
        lines = chunk.splitlines()
        if is_chorus_header(lines[0]):
            blocks.append(Block(label=CHORUS_LABEL, lines=lines[1:]))
        else:
            blocks.append(Block(label=None, lines=lines))
    return blocks
