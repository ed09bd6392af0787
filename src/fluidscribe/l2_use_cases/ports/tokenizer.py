"""Port: subword tokenizer of the boosted backend."""

from __future__ import annotations

from typing import Protocol


class SubwordTokenizer(Protocol):
    def encode(self, text: str) -> list[int]:
        """Encode *text* into backend token ids, without special tokens."""
        ...
