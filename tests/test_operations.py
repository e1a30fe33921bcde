import json
import threading
from unittest.mock import patch

import pytest

from churchhymn.config import AppConfig
from churchhymn.exceptions import FileNotFound, OperationInProgress, UnknownImportError
from churchhymn.models import ExportMode, Hymn, ImportPreview
from churchhymn.operations import HymnOperations
from churchhymn.store import HymnStore


@pytest.fixture
def store():
    with HymnStore(":memory:") as s:
        s.initialize_schema()
        yield s


@pytest.fixture
def ops(store):
    operations = HymnOperations(store, AppConfig(chunk_size=2))
    yield operations
    operations.shutdown()


# ---------------------------------------------------------------------------
# Synchronous operations
# ---------------------------------------------------------------------------


def test_import_file_reports_progress(ops, tmp_path):
    path = tmp_path / "grace.txt"
    path.write_text("Amazing Grace\n\nAmazing grace", encoding="utf-8")
    preview = ops.import_file(path)
    assert preview.valid_count == 1
    assert ops.progress == 1.0
    assert ops.message == "Complete!"
    assert not ops.busy


def test_import_file_sees_existing_hymns(ops, store, tmp_path):
    store.insert(Hymn(title="Amazing Grace"))
    path = tmp_path / "grace.txt"
    path.write_text("AMAZING GRACE\n", encoding="utf-8")
    assert ops.import_file(path).duplicate_count == 1


def test_failed_import_releases_token(ops, tmp_path):
    with pytest.raises(FileNotFound):
        ops.import_file(tmp_path / "missing.txt")
    assert not ops.busy


def test_import_large_json(ops, tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps([{"title": f"H{i}"} for i in range(5)]), encoding="utf-8")
    preview = ops.import_large_json(path)
    assert preview.valid_count == 5
    assert ops.message.startswith("Complete")


def test_export_to_directory_uses_default_name(ops, tmp_path):
    path = ops.export([Hymn(title="A"), Hymn(title="B")], ExportMode.ALL_JSON, tmp_path)
    assert path == tmp_path / "Hymns.json"
    assert path.exists()
    assert ops.message == "Export complete!"


def test_export_single_plain_text(ops, tmp_path):
    path = ops.export([Hymn(title="Amazing Grace")], ExportMode.SINGLE_PLAIN_TEXT, tmp_path)
    assert path.name == "Amazing Grace.txt"
    assert path.read_text(encoding="utf-8").startswith("Amazing Grace")


def test_export_large_json(ops, tmp_path):
    path = ops.export_large_json([Hymn(title="A")], tmp_path / "out.json")
    assert json.loads(path.read_text(encoding="utf-8"))[0]["title"] == "A"


# ---------------------------------------------------------------------------
# Single in-flight operation
# ---------------------------------------------------------------------------


def test_second_operation_rejected_while_busy(ops, tmp_path):
    started = threading.Event()
    release = threading.Event()

    def slow_preview(*args, **kwargs):
        started.set()
        release.wait(timeout=5)
        return ImportPreview()

    results = []
    with patch("churchhymn.operations.preview_file", side_effect=slow_preview):
        future = ops.submit_import(tmp_path / "a.txt", results.append, results.append)
        assert started.wait(timeout=5)
        assert ops.is_importing
        with pytest.raises(OperationInProgress):
            ops.export([Hymn(title="A")], ExportMode.SINGLE_JSON, tmp_path)
        with pytest.raises(OperationInProgress):
            ops.submit_import(tmp_path / "b.txt", results.append, results.append)
        release.set()
        future.result(timeout=5)

    assert not ops.busy
    assert len(results) == 1
    assert isinstance(results[0], ImportPreview)


# ---------------------------------------------------------------------------
# Background operations
# ---------------------------------------------------------------------------


def test_submit_import_calls_on_complete(ops, tmp_path):
    path = tmp_path / "grace.txt"
    path.write_text("Amazing Grace\n", encoding="utf-8")
    completed, failed = [], []
    ops.submit_import(path, completed.append, failed.append).result(timeout=5)
    assert [p.valid_count for p in completed] == [1]
    assert failed == []


def test_submit_import_calls_on_error(ops, tmp_path):
    completed, failed = [], []
    ops.submit_import(tmp_path / "missing.txt", completed.append, failed.append).result(timeout=5)
    assert completed == []
    assert isinstance(failed[0], FileNotFound)
    assert not ops.busy


def test_unexpected_failure_becomes_unknown_error(ops, tmp_path):
    failed = []
    with patch("churchhymn.operations.preview_file", side_effect=ValueError("boom")):
        ops.submit_import(tmp_path / "a.txt", lambda _: None, failed.append).result(timeout=5)
    assert isinstance(failed[0], UnknownImportError)
    assert failed[0].detail == "boom"


def test_submit_export(ops, tmp_path):
    completed = []
    ops.submit_export(
        [Hymn(title="A")], ExportMode.SINGLE_JSON, tmp_path, completed.append, completed.append
    ).result(timeout=5)
    assert completed == [tmp_path / "A.json"]
