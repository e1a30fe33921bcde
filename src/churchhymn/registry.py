from pathlib import Path

from .exceptions import UnsupportedFormatError
from .formats.base import HymnFormat
from .formats.json_format import JsonFormat
from .formats.plaintext import PlainTextFormat

_FORMATS: list[type[HymnFormat]] = [
    JsonFormat,
    PlainTextFormat,
]

FORMAT_KINDS = ("auto", "text", "json")


def get_format(path: str | Path, kind: str = "auto", sample: str | None = None) -> HymnFormat:
    """Return an instantiated format for *path*.

    *kind* forces ``"text"`` or ``"json"``; ``"auto"`` picks by suffix and,
    for files without a known suffix, by sniffing *sample*. Files that match
    nothing are read as plain text.

    Raises UnsupportedFormatError for an unknown *kind*.
    """
    if kind != "auto":
        for cls in _FORMATS:
            if cls.name == kind:
                return cls()
        raise UnsupportedFormatError(kind)

    path = Path(path)
    for cls in _FORMATS:
        if cls.can_handle(path, sample):
            return cls()
    return PlainTextFormat()
