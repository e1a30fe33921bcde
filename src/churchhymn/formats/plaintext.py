"""Plain-text hymn format (``.txt``).

Layout::

    Amazing Grace
    #Number: 123
    #Key: C
    #Author: John Newton
    #Copyright: Public Domain
    #Tags: grace, salvation
    #Notes: Traditional hymn

    Amazing grace, how sweet the sound
    That saved a wretch like me

    CHORUS
    Praise God, praise God, praise God

Header rules
------------

+-----------------+-------------------+-------------------------------------+
| Line prefix     | Hymn field        | Value                               |
+=================+===================+=====================================+
| ``#Number:``    | ``song_number``   | non-negative integer, else ignored  |
+-----------------+-------------------+-------------------------------------+
| ``#Key:``       | ``musical_key``   | trimmed text                        |
+-----------------+-------------------+-------------------------------------+
| ``#Author:``    | ``author``        | trimmed text                        |
+-----------------+-------------------+-------------------------------------+
| ``#Copyright:`` | ``copyright``     | trimmed text                        |
+-----------------+-------------------+-------------------------------------+
| ``#Tags:``      | ``tags``          | comma separated, empty pieces drop  |
+-----------------+-------------------+-------------------------------------+
| ``#Notes:``     | ``notes``         | trimmed text                        |
+-----------------+-------------------+-------------------------------------+

The header runs until the first non-blank line that is neither the title nor
a ``#`` line. From there on every line is lyrics, ``#`` lines included.
Unknown ``#`` lines in the header are ignored.
"""

import logging
from pathlib import Path

from ..exceptions import InvalidFormat
from ..models import Hymn, split_tags
from .base import HymnFormat
from .segmenter import normalize_newlines

logger = logging.getLogger(__name__)

METADATA_MARKER = "#"

# Header prefix → Hymn attribute, in the order they are written.
_HEADER_FIELDS = [
    ("#Number:", "song_number"),
    ("#Key:", "musical_key"),
    ("#Author:", "author"),
    ("#Copyright:", "copyright"),
    ("#Tags:", "tags"),
    ("#Notes:", "notes"),
]


def decode_plain_text(text: str) -> Hymn:
    """Parse a plain-text hymn.

    Raises InvalidFormat if no title line is found.
    """
    lines = normalize_newlines(text).split("\n")
    fields: dict[str, object] = {}
    title: str | None = None
    body_start = len(lines)

    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(METADATA_MARKER):
            _apply_header_line(stripped, fields)
            continue
        if title is None:
            title = stripped
            continue
        body_start = i
        break

    if title is None:
        raise InvalidFormat(
            "Could not parse plain text format. "
            "Please ensure the first non-empty line is the title."
        )

    lyrics = "\n".join(lines[body_start:]).rstrip()
    return Hymn(title=title, lyrics=lyrics or None, **fields)


def encode_plain_text(hymn: Hymn) -> str:
    """Render *hymn* as plain text ending with a single newline."""
    parts = [hymn.title]

    for prefix, attr in _HEADER_FIELDS:
        value = getattr(hymn, attr)
        if value is None or value == "":
            continue
        if attr == "tags":
            value = ", ".join(value)
        elif attr == "notes":
            # A header holds one line; further note lines would become lyrics.
            value = value.splitlines()[0]
        parts.append(f"{prefix} {value}")

    if hymn.lyrics:
        parts.append("")
        parts.append(hymn.lyrics.rstrip("\n"))

    return "\n".join(parts) + "\n"


class PlainTextFormat(HymnFormat):
    """Read and write single hymns in the plain-text format."""

    name = "text"
    suffix = ".txt"

    @classmethod
    def can_handle(cls, path: Path, sample: str | None = None) -> bool:
        if path.suffix.lower() in (".txt", ".text"):
            return True
        if path.suffix:
            return False
        return sample is not None and not sample.lstrip().startswith(("{", "["))

    def read(self, text: str) -> list[Hymn]:
        return [decode_plain_text(text)]

    def write(self, hymns: list[Hymn]) -> str:
        if len(hymns) != 1:
            raise InvalidFormat(
                f"Plain text holds exactly one hymn, got {len(hymns)}. Use JSON for several hymns."
            )
        return encode_plain_text(hymns[0])


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _apply_header_line(line: str, fields: dict[str, object]) -> None:
    """Store the value of a recognized ``#Prefix:`` line in *fields*."""
    for prefix, attr in _HEADER_FIELDS:
        if not line.startswith(prefix):
            continue
        value = line[len(prefix):].strip()
        if attr == "song_number":
            number = _parse_song_number(value)
            if number is None:
                logger.debug("Ignoring malformed song number %r", value)
            else:
                fields[attr] = number
        elif attr == "tags":
            fields[attr] = split_tags(value)
        else:
            fields[attr] = value
        return
    logger.debug("Ignoring unrecognized metadata line %r", line)


def _parse_song_number(value: str) -> int | None:
    try:
        number = int(value)
    except ValueError:
        return None
    return number if number >= 0 else None
