"""Port: export of finished file transcriptions."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from fluidscribe.l1_entities.transcription import FileTranscriptionResult


class ResultExporter(Protocol):
    def export_text(self, result: FileTranscriptionResult, destination: Path) -> Path: ...

    def export_json(self, result: FileTranscriptionResult, destination: Path) -> Path: ...
