"""Port: storage of the single persisted vocabulary document."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class VocabularyFile(Protocol):
    @property
    def path(self) -> Path: ...

    def read_text(self) -> str:
        """Return the document, seeding a default template first if absent."""
        ...

    def write_text(self, text: str) -> None:
        """Replace the document atomically."""
        ...
