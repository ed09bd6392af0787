"""Batch runner -- headless transcribe-from-file with progress on stderr."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from fluidscribe.l1_entities.errors import FluidscribeError
from fluidscribe.l1_entities.transcription import FileTranscriptionResult, format_wall_time
from fluidscribe.l4_frameworks_and_drivers.container import DependencyContainer

log = logging.getLogger('fscribe.cli')


def _err(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def default_output_path(audio_path: Path, out_dir: Path, fmt: str) -> Path:
    suffix = '.json' if fmt == 'json' else '.txt'
    return out_dir / f'{audio_path.stem}_transcription{suffix}'


def run_batch(
    audio_path: Path,
    container: DependencyContainer,
    out_path: Path,
    fmt: str = 'text',
) -> FileTranscriptionResult:
    """Transcribe *audio_path* in chunks and export the result. Blocks until done."""
    _err(f'Transcribing: {audio_path}')
    _err(f'Model: {container.spec.display_name}')

    last_status = ''

    def _on_progress(value: float, status: str) -> None:
        nonlocal last_status
        if status != last_status:
            last_status = status
            _err(f'  [{int(value * 100):3d}%] {status}')

    try:
        result = container.file_use_case().execute(audio_path, on_progress=_on_progress)
    except FluidscribeError as exc:
        log.error('Transcription of %s failed: %s', audio_path, exc, exc_info=True)
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc
    finally:
        container.provider.close()

    if result.no_speech:
        _err('No speech detected in the audio file.')

    try:
        if fmt == 'json':
            saved = container.exporter.export_json(result, out_path)
        else:
            saved = container.exporter.export_text(result, out_path)
    except FluidscribeError as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc

    _err(
        f'\nTranscription complete: {format_wall_time(result.duration_seconds)} of audio '
        f'in {result.processing_time_seconds:.1f}s (confidence {result.confidence * 100:.1f}%)'
    )
    _err(f'Saved: {saved}\n')
    print(result.text)
    return result
