"""Gateway: file-based export of finished transcriptions -- implements ResultExporter port."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from fluidscribe.l1_entities.errors import StorageUnavailableError
from fluidscribe.l1_entities.transcription import FileTranscriptionResult, format_wall_time

log = logging.getLogger('fscribe.persist')


def render_text(result: FileTranscriptionResult) -> str:
    header = [
        f'Transcription: {result.file_name}',
        f'Date: {result.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")}',
        f'Duration: {format_wall_time(result.duration_seconds)}',
        f'Processing Time: {result.processing_time_seconds:.1f}s',
        f'Confidence: {result.confidence * 100:.1f}%',
        '',
        '---',
        '',
    ]
    return '\n'.join(header) + result.text + '\n'


def render_json(result: FileTranscriptionResult) -> str:
    document = {
        'text': result.text,
        'confidence': result.confidence,
        'duration': result.duration_seconds,
        'processingTime': result.processing_time_seconds,
        'fileName': result.file_name,
        'timestamp': result.timestamp.isoformat(timespec='seconds').replace('+00:00', 'Z'),
    }
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + '\n'


def _atomic_write(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f'.{path.name}-', dir=path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise StorageUnavailableError(f'Could not write {path}', stage='export') from exc


class FileResultExporter:
    """Writes transcription results as plain text or JSON."""

    def export_text(self, result: FileTranscriptionResult, destination: Path) -> Path:
        _atomic_write(destination, render_text(result))
        log.debug('Wrote text transcript to %s', destination)
        return destination

    def export_json(self, result: FileTranscriptionResult, destination: Path) -> Path:
        _atomic_write(destination, render_json(result))
        log.debug('Wrote JSON transcript to %s', destination)
        return destination
