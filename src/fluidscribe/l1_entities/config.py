"""Configuration Pydantic models -- pure schema, no infrastructure defaults."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from fluidscribe.l1_entities.vocabulary import DictionaryEntry


class TranscriptionConfig(BaseModel):
    model: str
    chunk_duration: float | None = Field(
        default=None,
        gt=0,
        description='File chunk length in seconds, capped below the model limit; None derives it from that limit',
    )
    streaming_interval: float
    word_boosting: bool
    language: str | None = None  # None = let the model detect it


class VocabularySettings(BaseModel):
    path: str | None = None  # None = platform data dir
    max_terms: int = Field(gt=0)


class OutputConfig(BaseModel):
    directory: str
    format: Literal['text', 'json']


class AppConfig(BaseModel):
    transcription: TranscriptionConfig
    vocabulary: VocabularySettings
    output: OutputConfig
    dictionary: list[DictionaryEntry] = Field(default_factory=list)
