"""Gateway: sounddevice microphone capture -- implements AudioSource port."""

from __future__ import annotations

import logging

import numpy as np
import sounddevice as sd

from fluidscribe.l1_entities.audio_constants import CHANNELS, SAMPLE_RATE
from fluidscribe.l2_use_cases.audio_ingest_buffer import AudioIngestBuffer

log = logging.getLogger('fscribe.audio')


class SounddeviceAudioSource:
    """Wraps sounddevice.InputStream; each callback batch is appended straight into the buffer."""

    def __init__(self, device: int | str | None = None) -> None:
        self._device = device
        self._stream: sd.InputStream | None = None

    def open(self, buffer: AudioIngestBuffer, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> None:
        def _callback(indata, frames, time_info, status):
            if status:
                log.debug('Input stream status: %s', status)
            samples = indata if channels == 1 else indata.mean(axis=1, dtype=np.float32)
            buffer.append(samples.reshape(-1))

        self._stream = sd.InputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype='float32',
            device=self._device,
            callback=_callback,
        )
        self._stream.start()
        log.info('Capture started [rate=%d, channels=%d]', sample_rate, channels)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            log.info('Capture stopped')
