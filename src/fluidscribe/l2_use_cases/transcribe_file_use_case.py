"""Use case: transcribe arbitrarily long audio/video files in bounded, resampled chunks."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from fluidscribe.l1_entities.audio_constants import MIN_SEGMENT_SAMPLES, SAMPLE_RATE, SUPPORTED_EXTENSIONS
from fluidscribe.l1_entities.errors import (
    AudioConversionFailedError,
    FileNotSupportedError,
    FluidscribeError,
    ModelLoadFailedError,
    TranscriptionFailedError,
)
from fluidscribe.l1_entities.transcription import FileTranscriptionResult
from fluidscribe.l2_use_cases.ports.audio_file_reader import AudioFileReader
from fluidscribe.l2_use_cases.ports.resampler import Resampler
from fluidscribe.l2_use_cases.ports.transcription_provider import TranscriptionProvider

log = logging.getLogger('fscribe.file')

CHUNK_SAFETY_FACTOR = 0.8

# Progress sub-ranges: setup owns [0, 0.3], chunks own [0.3, 0.9], completion is 1.0.
_SETUP_END = 0.3
_CHUNKS_SPAN = 0.6


@dataclass(frozen=True)
class FrameRange:
    """Half-open range ``[start, end)`` of source-file frames."""

    start: int
    end: int

    @property
    def frames(self) -> int:
        return self.end - self.start


def chunk_duration_for_limit(limit_seconds: float, safety: float = CHUNK_SAFETY_FACTOR) -> float:
    """Chunk duration strictly below the backend's hard per-call limit."""
    if limit_seconds <= 0:
        raise ValueError(f'limit_seconds must be positive, got {limit_seconds}')
    if not 0 < safety < 1:
        raise ValueError(f'safety must be in (0, 1), got {safety}')
    return limit_seconds * safety


def source_frames_per_chunk(chunk_seconds: float, source_rate: int, target_rate: int = SAMPLE_RATE) -> int:
    """Number of source frames that resample to *chunk_seconds* of target audio, truncated."""
    target_samples = int(chunk_seconds * target_rate)
    return max(target_samples * source_rate // target_rate, 1)


def plan_chunks(total_frames: int, chunk_frames: int) -> list[FrameRange]:
    """Split ``[0, total_frames)`` into ``ceil(L/C)`` contiguous, non-overlapping ranges."""
    if chunk_frames <= 0:
        raise ValueError(f'chunk_frames must be positive, got {chunk_frames}')
    return [
        FrameRange(start, min(start + chunk_frames, total_frames)) for start in range(0, max(total_frames, 0), chunk_frames)
    ]


def is_supported_file(path: Path) -> bool:
    return path.suffix.lower().lstrip('.') in SUPPORTED_EXTENSIONS


class _ProgressTracker:
    """Clamps reported progress so it never regresses."""

    def __init__(self, callback: Callable[[float, str], None] | None) -> None:
        self._callback = callback
        self._last = 0.0

    def report(self, value: float, status: str) -> None:
        self._last = max(self._last, min(value, 1.0))
        if self._callback is not None:
            self._callback(self._last, status)


class TranscribeFileUseCase:
    """Reads a file chunk by chunk, resamples each chunk, and runs the final pass on it.

    Memory stays bounded by one chunk: chunk N+1 is not read until chunk N's
    transcription has returned.
    """

    def __init__(
        self,
        provider: TranscriptionProvider,
        reader: AudioFileReader,
        resampler: Resampler,
        chunk_duration: float | None = None,
    ) -> None:
        self._provider = provider
        self._reader = reader
        self._resampler = resampler
        self._chunk_duration = chunk_duration

    @property
    def chunk_duration(self) -> float:
        """Configured duration, never above the safety-margined backend limit."""
        limit = chunk_duration_for_limit(self._provider.max_segment_seconds)
        if self._chunk_duration is not None:
            return min(self._chunk_duration, limit)
        return limit

    def execute(
        self,
        path: Path,
        on_progress: Callable[[float, str], None] | None = None,
    ) -> FileTranscriptionResult:
        progress = _ProgressTracker(on_progress)
        started = time.monotonic()

        if not is_supported_file(path):
            extension = path.suffix.lower().lstrip('.')
            raise FileNotSupportedError(
                f'Format .{extension} not supported. Supported: {", ".join(SUPPORTED_EXTENSIONS)}',
                stage='validate',
            )

        if not self._provider.is_ready:
            progress.report(0.1, 'Preparing ASR models...')
            try:
                self._provider.prepare(lambda p: progress.report(0.1 + p * 0.1, 'Preparing ASR models...'))
            except ModelLoadFailedError:
                raise
            except Exception as exc:
                raise ModelLoadFailedError('Transcription provider could not be prepared', stage='prepare') from exc

        progress.report(0.2, 'Analyzing audio file...')
        try:
            duration = self._reader.probe_duration(path)
        except Exception as exc:
            log.warning('Could not determine audio duration for %s: %s', path.name, exc)
            duration = 0.0

        try:
            handle = self._reader.open(path)
        except Exception as exc:
            raise AudioConversionFailedError(f'Could not open audio file {path.name}', stage='open') from exc

        texts: list[str] = []
        confidence_total = 0.0

        with handle:
            source_format = handle.format
            total_frames = handle.frames
            chunk_frames = source_frames_per_chunk(self.chunk_duration, source_format.sample_rate)
            chunks = plan_chunks(total_frames, chunk_frames)
            log.info(
                'Transcribing %s: %d frames @ %d Hz x%d (%s), %d chunk(s) of %d frames',
                path.name,
                total_frames,
                source_format.sample_rate,
                source_format.channels,
                source_format.sample_format,
                len(chunks),
                chunk_frames,
            )
            status = f'Transcribing audio ({int(duration)}s)...' if duration > 0 else 'Transcribing audio...'
            progress.report(_SETUP_END, status)

            for index, chunk in enumerate(chunks):
                try:
                    block = handle.read(chunk.start, chunk.frames)
                except Exception as exc:
                    raise AudioConversionFailedError(
                        f'Could not read audio chunk {index + 1}/{len(chunks)}', stage='read'
                    ) from exc

                try:
                    samples = self._resampler.to_canonical(block, source_format)
                except AudioConversionFailedError:
                    raise
                except Exception as exc:
                    raise AudioConversionFailedError('Could not resample audio', stage='resample') from exc
                del block

                if len(samples) < MIN_SEGMENT_SAMPLES:
                    log.debug('Skipping chunk %d: %d samples is under one second', index + 1, len(samples))
                else:
                    try:
                        result = self._provider.transcribe_final(samples)
                    except FluidscribeError:
                        raise
                    except Exception as exc:
                        raise TranscriptionFailedError(
                            f'Chunk {index + 1}/{len(chunks)} failed', stage='transcribe'
                        ) from exc
                    if result.text.strip():
                        texts.append(result.text)
                        confidence_total += result.confidence

                fraction = chunk.end / total_frames if total_frames else 1.0
                progress.report(_SETUP_END + fraction * _CHUNKS_SPAN, f'Transcribing... {int(fraction * 100)}%')

        if not texts:
            log.warning('No speech transcribed from %s (silence, or every chunk under one second)', path.name)

        confidence = confidence_total / len(texts) if texts else 0.0
        result = FileTranscriptionResult(
            text=' '.join(texts),
            confidence=min(max(confidence, 0.0), 1.0),
            duration_seconds=max(duration, 0.0),
            processing_time_seconds=time.monotonic() - started,
            file_name=path.name,
        )
        progress.report(1.0, 'Complete!')
        return result

