from abc import ABC, abstractmethod
from pathlib import Path

from ..exceptions import InvalidFormat
from ..models import Hymn


class HymnFormat(ABC):
    """Abstract base class for the on-disk hymn formats."""

    name: str = ""
    suffix: str = ""

    @classmethod
    @abstractmethod
    def can_handle(cls, path: Path, sample: str | None = None) -> bool:
        """Return True if this format can read the file at *path*.

        *sample* is the start of the file content, used when the suffix
        alone does not decide.
        """

    @abstractmethod
    def read(self, text: str) -> list[Hymn]:
        """Decode *text* into one or more hymns.

        Raises InvalidFormat or CorruptedData if the text cannot be decoded.
        """

    @abstractmethod
    def write(self, hymns: list[Hymn]) -> str:
        """Encode *hymns* into the text written to disk."""

    def read_one(self, text: str) -> Hymn:
        """Convenience method: decode and return the first hymn."""
        hymns = self.read(text)
        if not hymns:
            raise InvalidFormat("No hymns found in the file.")
        return hymns[0]
