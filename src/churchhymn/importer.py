"""Import pipeline: file → parsed hymns → preview → store.

Importing happens in two steps so the user can review what will change::

    preview = preview_file(path, store.all())
    result = apply_import(preview, store, DuplicateResolution.MERGE)

A hymn whose title matches an existing record (ignoring case) is a
duplicate. Duplicates are never resolved automatically; one resolution is
applied to every duplicate of the batch.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .exceptions import EmptyFile, InvalidFormat, map_read_error
from .models import (
    DuplicateResolution,
    Hymn,
    ImportPreview,
    ImportPreviewHymn,
    ImportResult,
    new_hymn_id,
)
from .registry import get_format
from .store import HymnStore

logger = logging.getLogger(__name__)

MISSING_TITLE_ERROR = "Hymn missing title"

# Fields copied from an incoming hymn onto an existing one.
_COPIED_FIELDS = ("lyrics", "musical_key", "copyright", "author", "notes", "song_number")


@dataclass
class Progress:
    fraction: float
    message: str


ProgressCallback = Callable[[Progress], None]


def _report(progress: ProgressCallback | None, fraction: float, message: str) -> None:
    if progress is not None:
        progress(Progress(fraction, message))


def read_hymn_file(path: Path) -> str:
    """Read a hymn file as UTF-8.

    Raises a HymnImportError subclass for unreadable or blank files.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise map_read_error(exc) from exc
    if not text.strip():
        raise EmptyFile()
    return text


def find_existing(title: str, existing: list[Hymn]) -> Hymn | None:
    wanted = title.lower()
    return next((h for h in existing if h.title.lower() == wanted), None)


def build_preview(
    hymns: list[Hymn],
    existing: list[Hymn],
    file_name: str = "",
    progress: ProgressCallback | None = None,
    taken_ids: set[str] | None = None,
) -> ImportPreview:
    """Sort parsed *hymns* into new hymns, duplicates and errors.

    A new hymn whose id is already used by *existing* or by an earlier hymn
    of the batch gets a fresh id. Pass the same *taken_ids* set to every
    call when one batch is previewed in several chunks.
    """
    preview = ImportPreview(file_name=file_name)
    if taken_ids is None:
        taken_ids = set()
    taken_ids.update(h.id for h in existing)
    total = len(hymns)

    for index, hymn in enumerate(hymns):
        _report(progress, 0.3 + (index / total) * 0.6, f"Processing hymn {index + 1} of {total}...")

        if hymn.is_draft:
            preview.errors.append(MISSING_TITLE_ERROR)
            continue

        match = find_existing(hymn.title, existing)
        if match is not None:
            preview.duplicates.append(ImportPreviewHymn(hymn, is_duplicate=True, existing=match))
        else:
            if hymn.id in taken_ids:
                logger.debug("Hymn %r reuses id %s; assigning a new id", hymn.title, hymn.id)
                hymn.id = new_hymn_id()
            taken_ids.add(hymn.id)
            preview.hymns.append(ImportPreviewHymn(hymn))

    logger.info(
        "Import preview for %s: %d new, %d duplicates, %d errors",
        file_name or "<input>",
        preview.valid_count,
        preview.duplicate_count,
        preview.error_count,
    )
    return preview


def preview_file(
    path: Path,
    existing: list[Hymn],
    kind: str = "auto",
    progress: ProgressCallback | None = None,
) -> ImportPreview:
    """Read, decode and classify the hymns of one file."""
    _report(progress, 0.0, "Reading file...")
    text = read_hymn_file(path)

    _report(progress, 0.2, "Parsing content...")
    hymn_format = get_format(path, kind, sample=text[:64])
    hymns = hymn_format.read(text)
    if not hymns:
        raise InvalidFormat("No hymns found in the JSON file.")
    logger.debug("Parsed %d hymn(s) from %s as %s", len(hymns), path, hymn_format.name)

    _report(progress, 0.3, f"Processing {len(hymns)} hymns...")
    preview = build_preview(hymns, existing, path.name, progress)

    _report(progress, 0.9, "Preparing preview...")
    _report(progress, 1.0, "Complete!")
    return preview


# ---------------------------------------------------------------------------
# Applying a preview
# ---------------------------------------------------------------------------


def merge_into(existing: Hymn, incoming: Hymn) -> None:
    """Copy every field *incoming* has onto *existing*; tags are appended."""
    changes = {attr: getattr(incoming, attr) for attr in _COPIED_FIELDS if getattr(incoming, attr) is not None}
    if incoming.tags:
        tags = list(existing.tags or [])
        tags.extend(tag for tag in incoming.tags if tag not in tags)
        changes["tags"] = tags
    existing.update(**changes)


def replace_into(existing: Hymn, incoming: Hymn) -> None:
    """Overwrite every field of *existing* except its id."""
    existing.update(
        title=incoming.title,
        tags=list(incoming.tags) if incoming.tags else None,
        schema_version=incoming.schema_version,
        **{attr: getattr(incoming, attr) for attr in _COPIED_FIELDS},
    )


def apply_import(
    preview: ImportPreview,
    store: HymnStore,
    resolution: DuplicateResolution,
    selected: set[str] | None = None,
) -> ImportResult:
    """Write a confirmed preview to *store*.

    *selected* restricts the import to the given preview ids. Every write
    runs in one transaction; on StoreError the existing hymns keep any
    in-memory merge already applied to them.
    """
    result = ImportResult()

    def chosen(entry: ImportPreviewHymn) -> bool:
        return selected is None or entry.preview_id in selected

    with store.transaction() as conn:
        for entry in preview.hymns:
            if not chosen(entry):
                result.skipped += 1
                continue
            store.insert_row(conn, entry.hymn)
            result.inserted += 1

        for entry in preview.duplicates:
            if not chosen(entry) or resolution is DuplicateResolution.SKIP:
                result.skipped += 1
                continue
            if resolution is DuplicateResolution.MERGE:
                merge_into(entry.existing, entry.hymn)
            else:
                replace_into(entry.existing, entry.hymn)
            store.update_row(conn, entry.existing)
            result.updated += 1

    logger.info(
        "Imported %s: %d inserted, %d updated, %d skipped (%s)",
        preview.file_name or "<input>",
        result.inserted,
        result.updated,
        result.skipped,
        resolution.value,
    )
    return result
