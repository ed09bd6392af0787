"""Port: user custom-dictionary replacements (settings collaborator)."""

from __future__ import annotations

from typing import Protocol

from fluidscribe.l1_entities.vocabulary import DictionaryEntry


class DictionarySource(Protocol):
    def entries(self) -> list[DictionaryEntry]: ...
