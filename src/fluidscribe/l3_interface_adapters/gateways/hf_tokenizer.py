"""Gateway: HuggingFace ``tokenizers`` subword tokenizer -- implements SubwordTokenizer port."""

from __future__ import annotations

import logging
from pathlib import Path

import tokenizers

log = logging.getLogger('fscribe.vocab')


class HfSubwordTokenizer:
    def __init__(self, tokenizer: tokenizers.Tokenizer) -> None:
        self._tokenizer = tokenizer

    @classmethod
    def load(cls, tokenizer_repo: str, model_dir: Path | None = None) -> HfSubwordTokenizer:
        """Prefer a local ``tokenizer.json`` next to the model, else fetch from the Hub."""
        if model_dir is not None:
            tokenizer_file = model_dir / 'tokenizer.json'
            if tokenizer_file.is_file():
                return cls(tokenizers.Tokenizer.from_file(str(tokenizer_file)))
        log.debug('Loading tokenizer %s from the Hub', tokenizer_repo)
        return cls(tokenizers.Tokenizer.from_pretrained(tokenizer_repo))

    def encode(self, text: str) -> list[int]:
        return list(self._tokenizer.encode(text, add_special_tokens=False).ids)
