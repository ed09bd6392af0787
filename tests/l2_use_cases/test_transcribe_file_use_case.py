"""Tests for the chunked file transcription use case."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from fluidscribe.l1_entities.errors import (
    AudioConversionFailedError,
    FileNotSupportedError,
    ModelLoadFailedError,
    TranscriptionFailedError,
)
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l2_use_cases.transcribe_file_use_case import TranscribeFileUseCase
from tests.conftest import FakeHandle, FakeProvider, FakeReader, FakeResampler


def _use_case(provider, handle, duration=None, chunk_duration=10.0, resampler=None):
    reader = FakeReader(handle, duration=duration)
    return TranscribeFileUseCase(provider, reader, resampler or FakeResampler(), chunk_duration=chunk_duration)


class TestTranscribeFileUseCase:
    def test_rejects_unsupported_extension(self, fake_provider):
        use_case = _use_case(fake_provider, FakeHandle(np.zeros(10, dtype=np.float32), 16000))
        with pytest.raises(FileNotSupportedError):
            use_case.execute(Path('notes.ogg'))
        assert fake_provider.prepare_calls == 0

    def test_prepares_provider_when_not_ready(self, fake_provider):
        handle = FakeHandle(np.zeros(16000 * 5, dtype=np.float32), 16000)
        _use_case(fake_provider, handle).execute(Path('a.wav'))
        assert fake_provider.prepare_calls == 1

    def test_prepare_failure_is_model_load_error(self, fake_provider):
        def boom(progress_callback=None):
            raise RuntimeError('no weights')

        fake_provider.prepare = boom
        handle = FakeHandle(np.zeros(16000, dtype=np.float32), 16000)
        with pytest.raises(ModelLoadFailedError):
            _use_case(fake_provider, handle).execute(Path('a.wav'))

    def test_chunks_at_source_rate(self):
        provider = FakeProvider(text='part')
        # 25 s at 44.1 kHz stereo, 10 s chunks -> 3 chunks
        handle = FakeHandle(np.zeros((44100 * 25, 2), dtype=np.int16), 44100)
        resampler = FakeResampler()
        result = _use_case(provider, handle, duration=25.0, resampler=resampler).execute(Path('a.wav'))

        assert handle.reads == [(0, 441000), (441000, 441000), (882000, 220500)]
        assert provider.final_calls == [160000, 160000, 80000]
        assert result.text == 'part part part'
        assert result.duration_seconds == 25.0
        assert handle.closed
        assert all(fmt.channels == 2 for _, fmt in resampler.blocks)

    def test_short_trailing_chunk_is_skipped(self):
        provider = FakeProvider(text='word')
        # 10.5 s with 10 s chunks -> the 0.5 s remainder is never transcribed
        handle = FakeHandle(np.zeros(168000, dtype=np.float32), 16000)
        result = _use_case(provider, handle).execute(Path('a.wav'))
        assert provider.final_calls == [160000]
        assert result.text == 'word'

    def test_whole_file_under_one_second_gives_empty_result(self):
        provider = FakeProvider()
        handle = FakeHandle(np.zeros(8000, dtype=np.float32), 16000)
        result = _use_case(provider, handle).execute(Path('short.wav'))
        assert provider.final_calls == []
        assert result.text == ''
        assert result.confidence == 0.0
        assert result.no_speech

    def test_confidence_is_mean_over_nonempty_chunks(self):
        provider = FakeProvider()
        confidences = iter([0.6, 0.0, 1.0])
        texts = iter(['a', '', 'b'])

        def transcribe_final(samples):
            return TranscriptionResult(text=next(texts), confidence=next(confidences))

        provider.transcribe_final = transcribe_final
        handle = FakeHandle(np.zeros(16000 * 30, dtype=np.float32), 16000)
        result = _use_case(provider, handle).execute(Path('a.wav'))
        assert result.text == 'a b'
        assert result.confidence == pytest.approx(0.8)

    def test_progress_is_monotonic_and_completes(self):
        provider = FakeProvider()
        handle = FakeHandle(np.zeros(16000 * 35, dtype=np.float32), 16000)
        reports: list[tuple[float, str]] = []
        _use_case(provider, handle).execute(Path('a.wav'), on_progress=lambda v, s: reports.append((v, s)))

        values = [v for v, _ in reports]
        assert values == sorted(values)
        assert values[-1] == 1.0
        assert reports[-1][1] == 'Complete!'
        chunk_values = [v for v, s in reports if s.startswith('Transcribing...')]
        assert all(0.3 <= v <= 0.9 for v in chunk_values)

    def test_duration_probe_failure_defaults_to_zero(self):
        provider = FakeProvider()
        handle = FakeHandle(np.zeros(16000 * 2, dtype=np.float32), 16000)
        result = _use_case(provider, handle, duration=None).execute(Path('a.wav'))
        assert result.duration_seconds == 0.0
        assert result.text == 'hello'

    def test_open_failure_is_conversion_error(self, fake_provider):
        reader = FakeReader(open_error=RuntimeError('corrupt'))
        use_case = TranscribeFileUseCase(fake_provider, reader, FakeResampler(), chunk_duration=10.0)
        with pytest.raises(AudioConversionFailedError) as info:
            use_case.execute(Path('a.wav'))
        assert info.value.stage == 'open'

    def test_read_failure_is_conversion_error(self, fake_provider):
        handle = FakeHandle(np.zeros(16000 * 2, dtype=np.float32), 16000)

        def bad_read(start, frames):
            raise OSError('truncated')

        handle.read = bad_read
        with pytest.raises(AudioConversionFailedError) as info:
            _use_case(fake_provider, handle).execute(Path('a.wav'))
        assert info.value.stage == 'read'
        assert handle.closed

    def test_backend_failure_is_transcription_error(self, fake_provider):
        fake_provider.final_error = RuntimeError('gpu lost')
        handle = FakeHandle(np.zeros(16000 * 2, dtype=np.float32), 16000)
        with pytest.raises(TranscriptionFailedError):
            _use_case(fake_provider, handle).execute(Path('a.wav'))

    def test_default_chunk_duration_derives_from_provider_limit(self):
        provider = FakeProvider(max_segment_seconds=30.0)
        use_case = TranscribeFileUseCase(provider, FakeReader(), FakeResampler())
        assert use_case.chunk_duration == 24.0
        assert use_case.chunk_duration < provider.max_segment_seconds

    def test_configured_chunk_duration_capped_below_provider_limit(self):
        provider = FakeProvider(max_segment_seconds=30.0)
        assert TranscribeFileUseCase(provider, FakeReader(), FakeResampler(), chunk_duration=30.0).chunk_duration == 24.0
        assert TranscribeFileUseCase(provider, FakeReader(), FakeResampler(), chunk_duration=90.0).chunk_duration == 24.0
        assert TranscribeFileUseCase(provider, FakeReader(), FakeResampler(), chunk_duration=5.0).chunk_duration == 5.0

    def test_oversized_chunk_duration_splits_file_below_limit(self):
        provider = FakeProvider(max_segment_seconds=30.0)
        handle = FakeHandle(np.zeros(16000 * 60, dtype=np.float32), 16000)
        use_case = TranscribeFileUseCase(provider, FakeReader(handle), FakeResampler(), chunk_duration=45.0)
        use_case.execute(Path('a.wav'))
        assert provider.final_calls == [16000 * 24, 16000 * 24, 16000 * 12]
