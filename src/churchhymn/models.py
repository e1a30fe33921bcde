import uuid
from dataclasses import dataclass, field
from enum import Enum

CURRENT_SCHEMA_VERSION = 1

CHORUS_LABEL = "Chorus"


def new_hymn_id() -> str:
    return str(uuid.uuid4())


def clean_text(value: str | None) -> str | None:
    """Trim *value*; empty or whitespace-only strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def clean_tags(tags: list[str] | None) -> list[str] | None:
    """Trim each tag and drop empty ones, keeping order and duplicates."""
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    return cleaned or None


def split_tags(value: str) -> list[str] | None:
    """Split a comma-separated tag string, e.g. ``"grace,  salvation ,"``."""
    return clean_tags(value.split(","))


@dataclass
class Block:
    """A run of lyric lines separated from its neighbours by a blank line.

    ``label`` is ``"Chorus"`` for the refrain and ``None`` for a verse.
    """

    label: str | None
    lines: list[str] = field(default_factory=list)

    @property
    def is_chorus(self) -> bool:
        return self.label == CHORUS_LABEL

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


# Field names accepted by Hymn.update() (everything except the identifier).
EDITABLE_FIELDS = (
    "title",
    "lyrics",
    "musical_key",
    "copyright",
    "author",
    "tags",
    "notes",
    "song_number",
    "schema_version",
)


@dataclass(eq=False)
class Hymn:
    """A hymn record. Only ``title`` is required; everything else is optional.

    Values are normalized on construction and on :meth:`update`: text fields
    are trimmed with empty strings turned into ``None``, and tags are trimmed
    with empty pieces dropped. ``lyrics`` keeps its leading indentation and
    loses trailing whitespace; blank lyrics become ``None``.
    """

    title: str
    lyrics: str | None = None
    musical_key: str | None = None
    copyright: str | None = None
    author: str | None = None
    tags: list[str] | None = None
    notes: str | None = None
    song_number: int | None = None
    id: str = field(default_factory=new_hymn_id)
    schema_version: int = CURRENT_SCHEMA_VERSION

    def __post_init__(self) -> None:
        self._normalize()

    def _normalize(self) -> None:
        self.title = (self.title or "").strip()
        if self.lyrics is not None:
            self.lyrics = self.lyrics.rstrip() or None
        self.musical_key = clean_text(self.musical_key)
        self.copyright = clean_text(self.copyright)
        self.author = clean_text(self.author)
        self.notes = clean_text(self.notes)
        self.tags = clean_tags(self.tags)
        if self.song_number is not None and self.song_number < 0:
            raise ValueError(f"song number must be non-negative, got {self.song_number}")

    def update(self, **fields) -> None:
        """Apply edits from the edit form and re-normalize."""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"unknown hymn field(s): {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self, name, value)
        self._normalize()

    @property
    def blocks(self) -> list[Block]:
        """Lyrics split into verse/chorus blocks, rebuilt on every access."""
        from .formats.segmenter import segment_lyrics

        return segment_lyrics(self.lyrics)

    @property
    def is_draft(self) -> bool:
        return not self.title.strip()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hymn):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


# ---------------------------------------------------------------------------
# Import / export session types
# ---------------------------------------------------------------------------


class DuplicateResolution(Enum):
    SKIP = "skip"
    MERGE = "merge"
    REPLACE = "replace"

    @property
    def description(self) -> str:
        return {
            DuplicateResolution.SKIP: "Skip duplicate hymns",
            DuplicateResolution.MERGE: "Merge new data with existing hymns",
            DuplicateResolution.REPLACE: "Replace existing hymns with new data",
        }[self]


class ExportMode(Enum):
    SINGLE_PLAIN_TEXT = "single-text"
    SINGLE_JSON = "single-json"
    SELECTED_JSON = "selected-json"
    ALL_JSON = "all-json"


@dataclass
class ImportPreviewHymn:
    """A parsed hymn waiting for the user to confirm the import."""

    hymn: Hymn
    is_duplicate: bool = False
    existing: Hymn | None = None
    preview_id: str = field(default_factory=new_hymn_id)

    @property
    def title(self) -> str:
        return self.hymn.title


@dataclass
class ImportPreview:
    hymns: list[ImportPreviewHymn] = field(default_factory=list)
    duplicates: list[ImportPreviewHymn] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    file_name: str = ""

    @property
    def total_hymns(self) -> int:
        return len(self.hymns) + len(self.duplicates)

    @property
    def valid_count(self) -> int:
        return len(self.hymns)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass
class ImportResult:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
