"""Gateway: ffmpeg-backed reader for containers libsndfile cannot decode (m4a, aac, mp4, mov)."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
import tempfile
from pathlib import Path

import soundfile as sf

from fluidscribe.l3_interface_adapters.gateways.soundfile_audio_reader import SoundfileHandle

log = logging.getLogger('fscribe.audio')

_FFMPEG_TIMEOUT = 1800  # seconds; multi-hour recordings transcode slowly
_FFPROBE_TIMEOUT = 30


def _require(tool: str) -> str:
    binary = shutil.which(tool)
    if binary is None:
        raise RuntimeError(
            f'{tool} is required but not found on PATH.\n  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
        )
    return binary


class FfmpegAudioReader:
    """Transcodes the audio track to a temporary float32 WAV at its native rate and channel count.

    The WAV is then read chunk by chunk like any other file, so memory stays
    bounded by one chunk. The temporary file is removed when the handle closes.
    """

    def __init__(self, temp_dir: Path | None = None) -> None:
        self._temp_dir = temp_dir

    def open(self, path: Path) -> SoundfileHandle:
        if not path.exists():
            raise FileNotFoundError(f'Audio file not found: {path}')
        ffmpeg = _require('ffmpeg')

        fd, tmp_name = tempfile.mkstemp(prefix='fscribe-', suffix='.wav', dir=self._temp_dir)
        os.close(fd)
        tmp_path = Path(tmp_name)

        cmd = [
            ffmpeg,
            '-y',
            '-i',
            str(path),
            '-vn',
            '-acodec',
            'pcm_f32le',
            '-f',
            'wav',
            # switch to an RF64 header once the output passes the 4 GiB RIFF limit
            '-rf64',
            'auto',
            '-v',
            'error',
            str(tmp_path),
        ]
        try:
            try:
                result = subprocess.run(cmd, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
            except subprocess.TimeoutExpired as exc:
                raise RuntimeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s processing: {path}') from exc
            except OSError as exc:
                raise RuntimeError(f'Failed to launch ffmpeg: {exc}') from exc

            if result.returncode != 0:
                stderr = result.stderr.decode('utf-8', errors='replace').strip()
                raise RuntimeError(f'ffmpeg exited with code {result.returncode} for: {path}\n{stderr}')

            sound_file = sf.SoundFile(str(tmp_path))
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        log.debug('Transcoded %s to %s', path.name, tmp_path)
        return SoundfileHandle(sound_file, on_close=lambda: tmp_path.unlink(missing_ok=True))

    def probe_duration(self, path: Path) -> float:
        ffprobe = _require('ffprobe')
        cmd = [
            ffprobe,
            '-v',
            'error',
            '-show_entries',
            'format=duration',
            '-of',
            'default=noprint_wrappers=1:nokey=1',
            str(path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=_FFPROBE_TIMEOUT)  # noqa: S603
        except subprocess.TimeoutExpired as exc:
            raise RuntimeError(f'ffprobe timed out after {_FFPROBE_TIMEOUT}s probing: {path}') from exc
        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace').strip()
            raise RuntimeError(f'ffprobe exited with code {result.returncode} for: {path}\n{stderr}')
        return float(result.stdout.decode('utf-8').strip())
