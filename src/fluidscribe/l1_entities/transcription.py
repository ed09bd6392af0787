"""Transcription result entities."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def format_wall_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS for wall-clock display."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f'{hours:02d}:{minutes:02d}:{secs:02d}'


class TranscriptionResult(BaseModel):
    """Text and confidence produced by one stream or segment call."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class FileTranscriptionResult(TranscriptionResult):
    """Aggregated result of a whole-file transcription."""

    duration_seconds: float = Field(ge=0.0)
    processing_time_seconds: float = Field(ge=0.0)
    file_name: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def no_speech(self) -> bool:
        """True when no chunk produced any text (silence, or every chunk too short)."""
        return not self.text.strip()
