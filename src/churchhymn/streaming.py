"""Chunked JSON import and export for large hymn collections.

The import still reads the whole file before parsing; what is chunked is
the conversion of decoded objects into hymns and the duplicate check, so
progress can be reported as the batch goes. The export writes one hymn
object at a time.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .exceptions import InvalidFormat, map_read_error, map_write_error
from .formats.json_format import hymn_from_dict, hymn_to_dict, load_json
from .importer import build_preview, read_hymn_file
from .models import Hymn, ImportPreview

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100


@dataclass
class StreamingProgress:
    bytes_processed: int
    total_bytes: int
    hymns_processed: int = 0
    total_hymns: int | None = None
    phase: str = ""

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_processed / self.total_bytes

    @property
    def hymns_percentage(self) -> float:
        if not self.total_hymns:
            return 0.0
        return self.hymns_processed / self.total_hymns


StreamingCallback = Callable[[StreamingProgress], None]


def _emit(progress: StreamingProgress, callback: StreamingCallback | None) -> None:
    logger.debug(
        "%s: %d hymns processed (%d/%d bytes)",
        progress.phase,
        progress.hymns_processed,
        progress.bytes_processed,
        progress.total_bytes,
    )
    if callback is not None:
        callback(progress)


def stream_import_json(
    path: Path,
    existing: list[Hymn],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: StreamingCallback | None = None,
) -> ImportPreview:
    """Import a JSON array of hymns, reporting progress per chunk."""
    try:
        total_bytes = path.stat().st_size
    except OSError as exc:
        raise map_read_error(exc) from exc
    logger.info("Starting streaming import of %s (%d bytes)", path.name, total_bytes)

    state = StreamingProgress(bytes_processed=0, total_bytes=total_bytes, phase="Reading file")
    _emit(state, progress)

    text = read_hymn_file(path)
    state.bytes_processed = total_bytes
    state.phase = "Parsing JSON"
    _emit(state, progress)

    data = load_json(text)
    if not isinstance(data, list):
        raise InvalidFormat("Invalid JSON structure - expected array of hymn objects")
    if not data:
        raise InvalidFormat("No hymns found in the JSON file.")

    state.total_hymns = len(data)
    state.phase = "Converting to hymn objects"
    hymns: list[Hymn] = []
    for start in range(0, len(data), chunk_size):
        hymns.extend(hymn_from_dict(item) for item in data[start:start + chunk_size])
        state.hymns_processed = len(hymns)
        _emit(state, progress)

    state.phase = "Checking for duplicates"
    state.hymns_processed = 0
    _emit(state, progress)
    preview = ImportPreview(file_name=path.name)
    taken_ids: set[str] = set()
    for start in range(0, len(hymns), chunk_size):
        chunk = build_preview(
            hymns[start:start + chunk_size], existing, path.name, taken_ids=taken_ids
        )
        preview.hymns.extend(chunk.hymns)
        preview.duplicates.extend(chunk.duplicates)
        preview.errors.extend(chunk.errors)
        state.hymns_processed = min(start + chunk_size, len(hymns))
        _emit(state, progress)

    state.phase = "Complete"
    _emit(state, progress)
    return preview


def stream_export_json(
    hymns: list[Hymn],
    path: Path,
    progress: StreamingCallback | None = None,
) -> Path:
    """Write *hymns* as a JSON array, one object at a time."""
    logger.info("Starting streaming export of %d hymns to %s", len(hymns), path)
    state = StreamingProgress(
        bytes_processed=0, total_bytes=0, total_hymns=len(hymns), phase="Writing JSON header"
    )
    _emit(state, progress)

    try:
        with open(path, "w", encoding="utf-8") as f:
            written = f.write("[\n")
            state.phase = "Writing hymn data"
            for index, hymn in enumerate(hymns):
                if index > 0:
                    written += f.write(",\n")
                written += f.write(json.dumps(hymn_to_dict(hymn), indent=2, ensure_ascii=False))
                state.hymns_processed = index + 1
                state.bytes_processed = state.total_bytes = written
                _emit(state, progress)
            written += f.write("\n]\n")
    except (OSError, UnicodeEncodeError) as exc:
        logger.error("Streaming export to %s failed: %s", path, exc)
        raise map_write_error(exc, "JSON") from exc

    state.bytes_processed = state.total_bytes = written
    state.phase = "Finalizing export"
    _emit(state, progress)
    return path
