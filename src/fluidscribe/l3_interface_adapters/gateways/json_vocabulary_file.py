"""Gateway: the persisted vocabulary JSON document on local disk."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from fluidscribe.l1_entities.errors import StorageUnavailableError
from fluidscribe.l2_use_cases.vocabulary_boost import default_document

log = logging.getLogger('fscribe.vocab')


class JsonVocabularyFile:
    """Implements VocabularyFile. Seeds a template document on first read."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_exists(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f'Could not create {self._path.parent}', stage='storage') from exc
        if self._path.exists():
            return
        template = json.dumps(default_document(), indent=2, sort_keys=True) + '\n'
        self._write(template)
        log.info('Created vocabulary file from template: %s', self._path)

    def read_text(self) -> str:
        self._ensure_exists()
        try:
            return self._path.read_text(encoding='utf-8')
        except OSError as exc:
            raise StorageUnavailableError(f'Could not read {self._path}', stage='storage') from exc

    def write_text(self, text: str) -> None:
        self._ensure_exists()
        self._write(text)

    def _write(self, text: str) -> None:
        try:
            fd, tmp = tempfile.mkstemp(prefix='.vocab-', suffix='.json', dir=self._path.parent)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(text)
                os.replace(tmp, self._path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageUnavailableError(f'Could not write {self._path}', stage='storage') from exc
