"""Gateway: picks libsndfile or ffmpeg per file extension."""

from __future__ import annotations

from pathlib import Path

from fluidscribe.l2_use_cases.ports.audio_file_reader import AudioFileHandle, AudioFileReader
from fluidscribe.l3_interface_adapters.gateways.soundfile_audio_reader import SOUNDFILE_EXTENSIONS


class RoutingAudioReader:
    def __init__(self, native: AudioFileReader, fallback: AudioFileReader) -> None:
        self._native = native
        self._fallback = fallback

    def _pick(self, path: Path) -> AudioFileReader:
        if path.suffix.lower().lstrip('.') in SOUNDFILE_EXTENSIONS:
            return self._native
        return self._fallback

    def open(self, path: Path) -> AudioFileHandle:
        return self._pick(path).open(path)

    def probe_duration(self, path: Path) -> float:
        return self._pick(path).probe_duration(path)
