import pytest

from churchhymn.exceptions import UnsupportedFormatError
from churchhymn.formats.json_format import JsonFormat
from churchhymn.formats.plaintext import PlainTextFormat
from churchhymn.registry import get_format


def test_json_suffix():
    assert isinstance(get_format("hymns.json"), JsonFormat)


def test_txt_suffix():
    assert isinstance(get_format("Amazing Grace.txt"), PlainTextFormat)


def test_unknown_suffix_falls_back_to_plain_text():
    assert isinstance(get_format("hymn.md"), PlainTextFormat)


def test_suffixless_file_sniffed():
    assert isinstance(get_format("hymns", sample='[{"title": "A"}]'), JsonFormat)
    assert isinstance(get_format("hymns", sample="Amazing Grace"), PlainTextFormat)


def test_forced_kind_overrides_suffix():
    assert isinstance(get_format("hymn.txt", kind="json"), JsonFormat)
    assert isinstance(get_format("hymn.json", kind="text"), PlainTextFormat)


def test_unknown_kind_raises():
    with pytest.raises(UnsupportedFormatError):
        get_format("hymn.txt", kind="xml")
