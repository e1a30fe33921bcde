import errno


class ChurchHymnError(Exception):
    """Base exception for churchhymn."""


class HymnImportError(ChurchHymnError):
    """Base class for import/export failures shown to the user.

    ``detail`` carries the underlying message (parser error, OS error text)
    when there is one.
    """

    summary = "An unexpected error occurred"
    recovery_suggestion = "Try again or contact support if the problem persists"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.summary}: {self.detail}"
        return self.summary


class FileReadFailed(HymnImportError):
    summary = "Failed to read file"
    recovery_suggestion = "Try selecting a different file or check file permissions"


class InvalidFormat(HymnImportError):
    summary = "Invalid file format"
    recovery_suggestion = (
        "Check the import format documentation and ensure your file follows the correct format"
    )


class MissingTitle(HymnImportError):
    summary = "Hymn is missing a title"
    recovery_suggestion = "Add titles to all hymns in the file before importing"


class EmptyFile(HymnImportError):
    summary = "The selected file is empty"
    recovery_suggestion = "Select a file that contains hymn data"


class PermissionDenied(HymnImportError):
    summary = "Permission denied. Please check file permissions."
    recovery_suggestion = "Check file permissions or try selecting a different file"


class FileNotFound(HymnImportError):
    summary = "File not found. The file may have been moved or deleted."
    recovery_suggestion = "Ensure the file exists and try selecting it again"


class CorruptedData(HymnImportError):
    summary = "File appears to be corrupted"
    recovery_suggestion = "Try selecting a different file or check if the file has been damaged"


class UnknownImportError(HymnImportError):
    summary = "An unexpected error occurred"


class UnsupportedFormatError(ChurchHymnError):
    """Raised when no hymn format matches the requested kind or file."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unsupported hymn format: {kind}")


class StoreError(ChurchHymnError):
    """Raised when the hymn store cannot complete a write or read."""


class OperationInProgress(ChurchHymnError):
    """Raised when an import or export starts while another is running."""

    def __init__(self, running: str):
        self.running = running
        super().__init__(f"Another {running} operation is already in progress")


class ConfigError(ChurchHymnError):
    """Raised when the configuration file holds an invalid value."""


# ---------------------------------------------------------------------------
# OS error mapping
# ---------------------------------------------------------------------------


def map_read_error(exc: Exception) -> HymnImportError:
    """Translate an exception raised while reading a hymn file."""
    if isinstance(exc, HymnImportError):
        return exc
    if isinstance(exc, UnicodeDecodeError):
        return InvalidFormat(
            "File encoding is not supported. Please ensure the file uses UTF-8 encoding."
        )
    if isinstance(exc, OSError):
        if exc.errno in (errno.EACCES, errno.EPERM):
            return PermissionDenied()
        if exc.errno == errno.ENOENT:
            return FileNotFound()
        if exc.errno == errno.EFBIG:
            return FileReadFailed("File is too large to read")
        if exc.errno == errno.EISDIR:
            return FileReadFailed("Path is a directory, not a file")
        return FileReadFailed(exc.strerror or str(exc))
    return UnknownImportError(str(exc))


def map_write_error(exc: Exception, operation: str) -> HymnImportError:
    """Translate an exception raised while writing an export file."""
    if isinstance(exc, HymnImportError):
        return exc
    if isinstance(exc, UnicodeEncodeError):
        return InvalidFormat(f"Cannot encode {operation} data with the current encoding")
    if isinstance(exc, OSError):
        if exc.errno in (errno.EACCES, errno.EPERM):
            return PermissionDenied()
        if exc.errno == errno.ENOSPC:
            return FileReadFailed(f"Not enough disk space to save the {operation} file")
        if exc.errno == errno.EROFS:
            return FileReadFailed("Cannot write to read-only volume")
        if exc.errno == errno.EEXIST:
            return FileReadFailed("A file with the same name already exists")
        if exc.errno == errno.ENOENT:
            return FileNotFound()
        return FileReadFailed(f"Failed to export {operation}: {exc.strerror or exc}")
    return UnknownImportError(str(exc))
