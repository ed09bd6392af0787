"""Gateway: block resampler built on scipy's polyphase filter -- implements Resampler port."""

from __future__ import annotations

from math import gcd

import numpy as np
from scipy.signal import resample_poly

from fluidscribe.l1_entities.audio_constants import SAMPLE_RATE
from fluidscribe.l1_entities.audio_format import AudioFormat
from fluidscribe.l1_entities.errors import AudioConversionFailedError


def _to_float32(block: np.ndarray) -> np.ndarray:
    if np.issubdtype(block.dtype, np.integer):
        scale = float(np.iinfo(block.dtype).max) + 1.0
        return (block.astype(np.float32) / scale).astype(np.float32)
    return block.astype(np.float32, copy=False)


class ScipyResampler:
    """Converts one independent block to 16 kHz mono float32.

    Each block is converted in isolation; no filter state carries over from
    the previous block. Input already in the canonical format is passed through
    unchanged (copied, bit-exact).
    """

    def to_canonical(self, block: np.ndarray, source_format: AudioFormat) -> np.ndarray:
        if block.ndim not in (1, 2):
            raise AudioConversionFailedError(f'Expected a 1-D or 2-D block, got {block.ndim}-D', stage='resample')
        if block.ndim == 2 and block.shape[1] != source_format.channels:
            raise AudioConversionFailedError(
                f'Block has {block.shape[1]} channel(s), format says {source_format.channels}', stage='resample'
            )

        if source_format.is_canonical and block.dtype == np.float32:
            return np.array(block.reshape(-1), dtype=np.float32, copy=True)

        rate = source_format.sample_rate
        try:
            samples = _to_float32(block)
            if samples.ndim == 2:
                samples = samples.mean(axis=1, dtype=np.float32) if samples.shape[1] > 1 else samples[:, 0]

            if rate != SAMPLE_RATE and len(samples):
                divisor = gcd(SAMPLE_RATE, rate)
                samples = resample_poly(samples, SAMPLE_RATE // divisor, rate // divisor)
        except (ValueError, TypeError, MemoryError) as exc:
            raise AudioConversionFailedError(
                f'Could not convert {rate} Hz audio to {SAMPLE_RATE} Hz', stage='resample'
            ) from exc

        return np.ascontiguousarray(samples, dtype=np.float32)
