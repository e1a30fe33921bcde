import logging
import re
from pathlib import Path

from .exceptions import map_write_error
from .formats.json_format import encode_json, encode_json_array
from .formats.plaintext import encode_plain_text
from .models import ExportMode, Hymn

logger = logging.getLogger(__name__)

SELECTED_HYMNS_FILENAME = "Selected_Hymns.json"
ALL_HYMNS_FILENAME = "Hymns.json"


def _safe_title(title: str) -> str:
    """Replace path separators so a title can be used as a file name."""
    return re.sub(r"[\\/]", "-", title).strip() or "Untitled"


def default_export_filename(mode: ExportMode, hymn: Hymn | None = None) -> str:
    if mode is ExportMode.SINGLE_PLAIN_TEXT:
        return f"{_safe_title(hymn.title)}.txt"
    if mode is ExportMode.SINGLE_JSON:
        return f"{_safe_title(hymn.title)}.json"
    if mode is ExportMode.SELECTED_JSON:
        return SELECTED_HYMNS_FILENAME
    return ALL_HYMNS_FILENAME


def write_export(text: str, path: Path, operation: str) -> Path:
    """Write *text* as UTF-8, mapping OS failures onto the import taxonomy."""
    try:
        path.write_text(text, encoding="utf-8")
    except (OSError, UnicodeEncodeError) as exc:
        logger.error("Export to %s failed: %s", path, exc)
        raise map_write_error(exc, operation) from exc
    return path


def export_plain_text(hymn: Hymn, path: Path) -> Path:
    write_export(encode_plain_text(hymn), path, "plain text")
    logger.info("Exported %r as plain text to %s", hymn.title, path)
    return path


def export_json(hymn: Hymn, path: Path) -> Path:
    write_export(encode_json(hymn), path, "JSON")
    logger.info("Exported %r as JSON to %s", hymn.title, path)
    return path


def export_json_array(hymns: list[Hymn], path: Path) -> Path:
    write_export(encode_json_array(hymns), path, "JSON")
    logger.info("Exported %d hymns as JSON to %s", len(hymns), path)
    return path
