"""Gateway: custom dictionary entries taken from the ``dictionary:`` block of the settings."""

from __future__ import annotations

from fluidscribe.l1_entities.config import AppConfig
from fluidscribe.l1_entities.vocabulary import DictionaryEntry


class SettingsDictionarySource:
    """Implements DictionarySource over a validated AppConfig."""

    def __init__(self, config: AppConfig) -> None:
        self._entries = list(config.dictionary)

    def entries(self) -> list[DictionaryEntry]:
        return list(self._entries)
