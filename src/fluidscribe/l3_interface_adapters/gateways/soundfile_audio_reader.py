"""Gateway: libsndfile-backed chunked reader -- implements AudioFileReader port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np
import soundfile as sf

from fluidscribe.l1_entities.audio_format import AudioFormat

log = logging.getLogger('fscribe.audio')

# libsndfile subtype -> numpy dtype that holds it losslessly
_SUBTYPE_DTYPES = {
    'PCM_S8': 'int16',
    'PCM_U8': 'int16',
    'PCM_16': 'int16',
    'PCM_24': 'int32',
    'PCM_32': 'int32',
    'FLOAT': 'float32',
    'DOUBLE': 'float64',
}

# Extensions libsndfile decodes directly; everything else goes through ffmpeg.
SOUNDFILE_EXTENSIONS = ('wav', 'flac', 'aiff', 'caf', 'mp3')


def dtype_for_subtype(subtype: str) -> str:
    return _SUBTYPE_DTYPES.get(subtype, 'float32')


class SoundfileHandle:
    """Random-access view over an open ``soundfile.SoundFile``.

    ``on_close`` runs after the file is closed, e.g. to remove a temporary file.
    """

    def __init__(self, sound_file: sf.SoundFile, on_close: Callable[[], None] | None = None) -> None:
        self._file = sound_file
        self._on_close = on_close
        self._dtype = dtype_for_subtype(sound_file.subtype)
        self._format = AudioFormat(
            sample_rate=sound_file.samplerate,
            channels=sound_file.channels,
            sample_format=self._dtype,
        )

    @property
    def format(self) -> AudioFormat:
        return self._format

    @property
    def frames(self) -> int:
        return self._file.frames

    def read(self, start: int, frames: int) -> np.ndarray:
        self._file.seek(start)
        return self._file.read(frames, dtype=self._dtype, always_2d=True)

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
        if self._on_close is not None:
            callback, self._on_close = self._on_close, None
            callback()

    def __enter__(self) -> SoundfileHandle:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SoundfileAudioReader:
    def open(self, path: Path) -> SoundfileHandle:
        if not path.exists():
            raise FileNotFoundError(f'Audio file not found: {path}')
        handle = SoundfileHandle(sf.SoundFile(str(path)))
        log.debug('Opened %s via libsndfile (%s)', path.name, handle.format)
        return handle

    def probe_duration(self, path: Path) -> float:
        info = sf.info(str(path))
        return info.frames / info.samplerate if info.samplerate else 0.0
