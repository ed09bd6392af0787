"""Use case: live dictation -- periodic streaming passes over a growing buffer, one final pass on stop."""

from __future__ import annotations

import numpy as np

from fluidscribe.l1_entities.audio_constants import MIN_SEGMENT_SAMPLES, SAMPLE_RATE
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l2_use_cases.audio_ingest_buffer import AudioIngestBuffer
from fluidscribe.l2_use_cases.ports.transcription_provider import TranscriptionProvider


class LiveTranscriptionUseCase:
    """Connects the capture buffer to the provider's streaming and final passes.

    Does NO I/O itself -- samples arrive via ``feed()`` (or directly in the
    shared buffer from the capture callback), results come out of
    ``stream_update()`` and ``finish()``. Both of those run on the
    transcription thread.
    """

    def __init__(
        self,
        provider: TranscriptionProvider,
        buffer: AudioIngestBuffer | None = None,
        min_update_seconds: float = 1.0,
    ) -> None:
        self._provider = provider
        self._buffer = buffer if buffer is not None else AudioIngestBuffer()
        self._min_update_samples = int(SAMPLE_RATE * min_update_seconds)
        self._last_streamed = 0
        self._latest_text = ''

    @property
    def buffer(self) -> AudioIngestBuffer:
        return self._buffer

    @property
    def latest_text(self) -> str:
        return self._latest_text

    @property
    def buffered_seconds(self) -> float:
        return self._buffer.count() / SAMPLE_RATE

    def feed(self, samples: np.ndarray) -> None:
        """Append canonical samples. Safe to call from the capture thread."""
        self._buffer.append(samples)

    def should_update(self) -> bool:
        count = self._buffer.count()
        return count >= MIN_SEGMENT_SAMPLES and count - self._last_streamed >= self._min_update_samples

    def stream_update(self) -> TranscriptionResult | None:
        """Run a streaming pass over everything captured so far.

        Returns None when under one second is buffered or too little new audio
        arrived since the previous update.
        """
        if not self.should_update():
            return None
        count = self._buffer.count()
        snapshot = self._buffer.get_prefix(count)
        result = self._provider.transcribe_streaming(snapshot)
        self._last_streamed = len(snapshot)
        self._latest_text = result.text
        return result

    def finish(self) -> TranscriptionResult:
        """Drain the whole buffer through the final pass and reset for the next session."""
        samples = self._buffer.get_all()
        try:
            if len(samples) < MIN_SEGMENT_SAMPLES:
                self._latest_text = ''
                return TranscriptionResult(text='', confidence=0.0)
            result = self._provider.transcribe_final(samples)
            self._latest_text = result.text
            return result
        finally:
            self._buffer.clear(keep_capacity=True)
            self._last_streamed = 0

    def reset(self) -> None:
        """Discard captured audio without transcribing it."""
        self._buffer.clear(keep_capacity=True)
        self._last_streamed = 0
        self._latest_text = ''
