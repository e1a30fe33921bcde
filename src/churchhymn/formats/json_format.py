"""JSON hymn format (``.json``).

A single hymn is one object; a batch is an array of them::

    {
      "title": "Amazing Grace",
      "songNumber": 123,
      "lyrics": "Amazing grace, how sweet the sound...",
      "musicalKey": "C",
      "author": "John Newton",
      "copyright": "Public Domain",
      "tags": ["grace", "salvation"],
      "notes": "Traditional hymn"
    }

``id`` and ``schemaVersion`` are written on export and optional on import.
Unknown keys are ignored and every optional key may be ``null``.
"""

import json
from pathlib import Path
from typing import Any

from ..exceptions import CorruptedData, InvalidFormat
from ..models import CURRENT_SCHEMA_VERSION, Hymn
from .base import HymnFormat

# JSON key → Hymn attribute for the optional string fields.
_STRING_FIELDS = {
    "lyrics": "lyrics",
    "musicalKey": "musical_key",
    "copyright": "copyright",
    "author": "author",
    "notes": "notes",
}


def hymn_to_dict(hymn: Hymn) -> dict[str, Any]:
    data: dict[str, Any] = {"id": hymn.id, "title": hymn.title}
    for key, attr in _STRING_FIELDS.items():
        value = getattr(hymn, attr)
        if value is not None:
            data[key] = value
    if hymn.tags is not None:
        data["tags"] = list(hymn.tags)
    if hymn.song_number is not None:
        data["songNumber"] = hymn.song_number
    data["schemaVersion"] = hymn.schema_version
    return data


def hymn_from_dict(data: Any) -> Hymn:
    """Build a Hymn from one decoded JSON object.

    Raises InvalidFormat when the object has the wrong shape.
    """
    if not isinstance(data, dict):
        raise InvalidFormat(f"Expected a hymn object, got {type(data).__name__}")

    title = data.get("title")
    if not isinstance(title, str):
        raise InvalidFormat("Hymn 'title' is missing or is not a string")

    kwargs: dict[str, Any] = {"title": title}
    for key, attr in _STRING_FIELDS.items():
        kwargs[attr] = _optional(data, key, str)

    tags = _optional(data, "tags", list)
    if tags is not None and not all(isinstance(tag, str) for tag in tags):
        raise InvalidFormat("Hymn 'tags' must be a list of strings")
    kwargs["tags"] = tags

    song_number = _optional(data, "songNumber", int)
    if song_number is not None and song_number < 0:
        raise InvalidFormat(f"Hymn 'songNumber' must be non-negative, got {song_number}")
    kwargs["song_number"] = song_number

    hymn_id = _optional(data, "id", str)
    if hymn_id:
        kwargs["id"] = hymn_id

    schema_version = _optional(data, "schemaVersion", int)
    kwargs["schema_version"] = CURRENT_SCHEMA_VERSION if schema_version is None else schema_version

    return Hymn(**kwargs)


def load_json(payload: str | bytes) -> Any:
    """Parse raw JSON, raising CorruptedData with the parser message."""
    try:
        return json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CorruptedData(str(exc)) from exc


def decode_json(payload: str | bytes) -> Hymn:
    return hymn_from_dict(load_json(payload))


def decode_json_array(payload: str | bytes) -> list[Hymn]:
    data = load_json(payload)
    if not isinstance(data, list):
        raise InvalidFormat("Invalid JSON structure - expected array of hymn objects")
    return [hymn_from_dict(item) for item in data]


def decode_json_any(payload: str | bytes) -> list[Hymn]:
    """Decode either a single hymn object or an array of them."""
    data = load_json(payload)
    if isinstance(data, list):
        return [hymn_from_dict(item) for item in data]
    return [hymn_from_dict(data)]


def encode_json(hymn: Hymn, pretty: bool = True) -> str:
    return _dumps(hymn_to_dict(hymn), pretty)


def encode_json_array(hymns: list[Hymn], pretty: bool = True) -> str:
    return _dumps([hymn_to_dict(h) for h in hymns], pretty)


class JsonFormat(HymnFormat):
    """Read single hymns or batches; write a single object or an array."""

    name = "json"
    suffix = ".json"

    @classmethod
    def can_handle(cls, path: Path, sample: str | None = None) -> bool:
        if path.suffix.lower() == ".json":
            return True
        if path.suffix:
            return False
        return sample is not None and sample.lstrip().startswith(("{", "["))

    def read(self, text: str) -> list[Hymn]:
        return decode_json_any(text)

    def write(self, hymns: list[Hymn]) -> str:
        if len(hymns) == 1:
            return encode_json(hymns[0])
        return encode_json_array(hymns)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _optional(data: dict[str, Any], key: str, expected: type) -> Any:
    """Return ``data[key]`` if present and of *expected* type, None if absent/null."""
    value = data.get(key)
    if value is None:
        return None
    # bool is a subclass of int but never a valid song number or version.
    if isinstance(value, bool) or not isinstance(value, expected):
        raise InvalidFormat(f"Hymn '{key}' must be of type {expected.__name__}")
    return value


def _dumps(data: Any, pretty: bool) -> str:
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    return json.dumps(data, ensure_ascii=False)
