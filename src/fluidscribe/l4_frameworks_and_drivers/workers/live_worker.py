"""Thin thread worker shell for live dictation -- connects AudioSource to LiveTranscriptionUseCase."""

from __future__ import annotations

import logging
import time

from fluidscribe.l1_entities.audio_constants import CHANNELS, SAMPLE_RATE
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l2_use_cases.live_transcription_use_case import LiveTranscriptionUseCase
from fluidscribe.l2_use_cases.ports.audio_source import AudioSource
from fluidscribe.l2_use_cases.ports.transcription_provider import TranscriptionProvider
from fluidscribe.l4_frameworks_and_drivers.messages import ModelDownloadProgress, TranscriptUpdate, WorkerStatus

log = logging.getLogger('fscribe.live')

_POLL_SECONDS = 0.1


def run_live_worker(
    post_message,
    is_cancelled,
    provider: TranscriptionProvider,
    audio_source: AudioSource,
    use_case: LiveTranscriptionUseCase | None = None,
    streaming_interval: float = 1.0,
) -> TranscriptionResult | None:
    """Capture until *is_cancelled* returns True, streaming partial transcripts, then run the final pass.

    Runs on a worker thread; the capture callback only appends to the buffer,
    so inference never blocks audio delivery.
    """
    post_message(WorkerStatus(status='loading_model'))
    last_percent = -1

    def _on_progress(value: float) -> None:
        nonlocal last_percent
        percent = int(value * 100)
        if percent != last_percent:
            last_percent = percent
            post_message(ModelDownloadProgress(percent=percent, model_name=provider.name))

    try:
        provider.prepare(_on_progress)
    except Exception as e:
        log.error('Failed to prepare transcription provider: %s', e, exc_info=True)
        post_message(WorkerStatus(status='error', error=f'Failed to load model: {e}'))
        return None
    post_message(WorkerStatus(status='model_ready'))

    if use_case is None:
        use_case = LiveTranscriptionUseCase(provider, min_update_seconds=streaming_interval)

    try:
        audio_source.open(use_case.buffer, SAMPLE_RATE, CHANNELS)
    except Exception as e:
        log.error('Failed to open audio source: %s', e, exc_info=True)
        post_message(WorkerStatus(status='error', error=f'Cannot open microphone: {e}'))
        return None
    post_message(WorkerStatus(status='recording'))

    next_update = time.monotonic() + streaming_interval
    try:
        while not is_cancelled():
            time.sleep(_POLL_SECONDS)
            if time.monotonic() < next_update:
                continue
            next_update = time.monotonic() + streaming_interval
            try:
                partial = use_case.stream_update()
            except Exception as e:
                log.error('Streaming transcription failed: %s', e, exc_info=True)
                post_message(WorkerStatus(status='error', error=str(e)))
                continue
            if partial is not None:
                post_message(TranscriptUpdate(text=partial.text, confidence=partial.confidence))
    finally:
        audio_source.close()

    post_message(WorkerStatus(status='transcribing'))
    try:
        final = use_case.finish()
    except Exception as e:
        log.error('Final transcription failed: %s', e, exc_info=True)
        post_message(WorkerStatus(status='error', error=str(e)))
        return None

    post_message(
        TranscriptUpdate(
            text=final.text,
            confidence=final.confidence,
            is_final=True,
            boosted_terms=provider.detect_boosted_terms(final.text),
        )
    )
    post_message(WorkerStatus(status='stopped'))
    return final
