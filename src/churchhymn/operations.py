"""Import and export operations run one at a time.

:class:`HymnOperations` holds a single in-flight token. Starting an import
or export while another one is running raises
:class:`~churchhymn.exceptions.OperationInProgress`, whether the caller runs
it directly or submits it to the background worker.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, TypeVar

from .config import AppConfig
from .exceptions import HymnImportError, OperationInProgress, UnknownImportError
from .exporter import (
    default_export_filename,
    export_json,
    export_json_array,
    export_plain_text,
)
from .importer import Progress, ProgressCallback, preview_file
from .models import ExportMode, Hymn, ImportPreview
from .store import HymnStore
from .streaming import StreamingProgress, stream_export_json, stream_import_json

logger = logging.getLogger(__name__)

T = TypeVar("T")

IMPORT = "import"
EXPORT = "export"


class HymnOperations:
    def __init__(self, store: HymnStore, config: AppConfig | None = None):
        self.store = store
        self.config = config or AppConfig()
        self.progress = 0.0
        self.message = ""
        self._lock = threading.Lock()
        self._running: str | None = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def is_importing(self) -> bool:
        return self._running == IMPORT

    @property
    def is_exporting(self) -> bool:
        return self._running == EXPORT

    @property
    def busy(self) -> bool:
        return self._running is not None

    # In-flight token

    def _acquire(self, kind: str) -> None:
        if not self._lock.acquire(blocking=False):
            raise OperationInProgress(self._running or kind)
        self._running = kind
        self.progress = 0.0
        self.message = ""

    def _release(self) -> None:
        self._running = None
        self._lock.release()

    @contextmanager
    def _token(self, kind: str) -> Generator[None, None, None]:
        self._acquire(kind)
        try:
            yield
        finally:
            self._release()

    # Progress

    def _on_progress(self, callback: ProgressCallback | None) -> ProgressCallback:
        def update(report: Progress) -> None:
            self.progress = report.fraction
            self.message = report.message
            if callback is not None:
                callback(report)

        return update

    def _on_streaming_progress(self, report: StreamingProgress) -> None:
        self.progress = report.hymns_percentage or report.percentage
        self.message = f"{report.phase}: {report.hymns_processed} hymns processed"

    # Work (callers hold the token)

    def _import(
        self,
        path: Path,
        kind: str,
        existing: list[Hymn],
        on_progress: ProgressCallback | None = None,
    ) -> ImportPreview:
        return preview_file(path, existing, kind, self._on_progress(on_progress))

    def _export(self, hymns: list[Hymn], mode: ExportMode, destination: Path) -> Path:
        if destination.is_dir():
            destination = destination / default_export_filename(mode, hymns[0] if hymns else None)
        self.message = f"Exporting {len(hymns)} hymn(s)..."
        if mode is ExportMode.SINGLE_PLAIN_TEXT:
            path = export_plain_text(hymns[0], destination)
        elif mode is ExportMode.SINGLE_JSON:
            path = export_json(hymns[0], destination)
        else:
            path = export_json_array(hymns, destination)
        self.progress = 1.0
        self.message = "Export complete!"
        return path

    # Synchronous operations

    def import_file(
        self,
        path: Path,
        kind: str = "auto",
        on_progress: ProgressCallback | None = None,
    ) -> ImportPreview:
        with self._token(IMPORT):
            return self._import(path, kind, self.store.all(), on_progress)

    def import_large_json(self, path: Path) -> ImportPreview:
        with self._token(IMPORT):
            return stream_import_json(
                path,
                self.store.all(),
                chunk_size=self.config.chunk_size,
                progress=self._on_streaming_progress,
            )

    def export(self, hymns: list[Hymn], mode: ExportMode, destination: Path) -> Path:
        """Export *hymns* to *destination*.

        A directory destination gets the default file name for *mode*.
        """
        with self._token(EXPORT):
            return self._export(hymns, mode, destination)

    def export_large_json(self, hymns: list[Hymn], destination: Path) -> Path:
        with self._token(EXPORT):
            return stream_export_json(hymns, destination, self._on_streaming_progress)

    # Background operations

    def _submit(
        self,
        kind: str,
        work: Callable[[], T],
        on_complete: Callable[[T], None],
        on_error: Callable[[HymnImportError], None],
    ) -> Future:
        self._acquire(kind)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="churchhymn")

        def run() -> None:
            try:
                result = work()
            except HymnImportError as exc:
                logger.error("%s failed: %s", kind.capitalize(), exc)
                self._release()
                on_error(exc)
            except Exception as exc:
                logger.exception("%s failed unexpectedly", kind.capitalize())
                self._release()
                on_error(UnknownImportError(str(exc)))
            else:
                self._release()
                on_complete(result)

        try:
            return self._executor.submit(run)
        except RuntimeError:
            self._release()
            raise

    def submit_import(
        self,
        path: Path,
        on_complete: Callable[[ImportPreview], None],
        on_error: Callable[[HymnImportError], None],
        kind: str = "auto",
    ) -> Future:
        # sqlite connections stay on the thread that opened them.
        existing = self.store.all()
        return self._submit(
            IMPORT, lambda: self._import(path, kind, existing), on_complete, on_error
        )

    def submit_export(
        self,
        hymns: list[Hymn],
        mode: ExportMode,
        destination: Path,
        on_complete: Callable[[Path], None],
        on_error: Callable[[HymnImportError], None],
    ) -> Future:
        return self._submit(
            EXPORT, lambda: self._export(hymns, mode, destination), on_complete, on_error
        )

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
