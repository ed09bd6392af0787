"""Tests for the scipy block resampler."""

from __future__ import annotations

import numpy as np
import pytest

from fluidscribe.l1_entities.audio_format import CANONICAL_FORMAT, AudioFormat
from fluidscribe.l1_entities.errors import AudioConversionFailedError
from fluidscribe.l3_interface_adapters.gateways.scipy_resampler import ScipyResampler


def _fmt(rate: int, channels: int = 1, sample_format: str = 'float32') -> AudioFormat:
    return AudioFormat(sample_rate=rate, channels=channels, sample_format=sample_format)


class TestScipyResampler:
    def test_canonical_passthrough_is_bit_exact(self):
        rng = np.random.default_rng(0)
        block = rng.uniform(-1, 1, size=(1600, 1)).astype(np.float32)
        out = ScipyResampler().to_canonical(block, CANONICAL_FORMAT)
        assert out.dtype == np.float32
        assert np.array_equal(out, block[:, 0])
        assert not np.shares_memory(out, block)

    def test_canonical_1d_input(self):
        block = np.linspace(-1, 1, 100, dtype=np.float32)
        assert np.array_equal(ScipyResampler().to_canonical(block, CANONICAL_FORMAT), block)

    def test_downsamples_44k1(self):
        block = np.zeros((44100, 1), dtype=np.float32)
        out = ScipyResampler().to_canonical(block, _fmt(44100))
        assert len(out) == 16000
        assert out.dtype == np.float32

    def test_upsamples_8k(self):
        out = ScipyResampler().to_canonical(np.zeros((8000, 1), dtype=np.float32), _fmt(8000))
        assert len(out) == 16000

    def test_stereo_downmixed_by_mean(self):
        block = np.column_stack([np.full(100, 0.5), np.full(100, -0.5)]).astype(np.float32)
        out = ScipyResampler().to_canonical(block, _fmt(16000, channels=2))
        np.testing.assert_allclose(out, np.zeros(100), atol=1e-7)

    def test_int16_scaled_to_unit_range(self):
        block = np.array([[16384], [-32768]], dtype=np.int16)
        out = ScipyResampler().to_canonical(block, _fmt(16000, sample_format='int16'))
        np.testing.assert_allclose(out, [0.5, -1.0])

    def test_preserves_tone_frequency(self):
        rate = 48000
        t = np.arange(rate) / rate
        block = np.sin(2 * np.pi * 440 * t).astype(np.float32).reshape(-1, 1)
        out = ScipyResampler().to_canonical(block, _fmt(rate))
        spectrum = np.abs(np.fft.rfft(out))
        peak_hz = np.argmax(spectrum) * 16000 / len(out)
        assert peak_hz == pytest.approx(440, abs=2)

    def test_channel_mismatch(self):
        with pytest.raises(AudioConversionFailedError):
            ScipyResampler().to_canonical(np.zeros((10, 2), dtype=np.float32), _fmt(16000, channels=1))

    def test_rejects_3d(self):
        with pytest.raises(AudioConversionFailedError):
            ScipyResampler().to_canonical(np.zeros((2, 2, 2), dtype=np.float32), _fmt(16000, channels=2))
