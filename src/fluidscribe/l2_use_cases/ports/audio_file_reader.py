"""Port: random-access reader over audio/video container files."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import numpy as np

from fluidscribe.l1_entities.audio_format import AudioFormat


class AudioFileHandle(Protocol):
    """An open file. Frames are counted at the file's native sample rate."""

    @property
    def format(self) -> AudioFormat: ...

    @property
    def frames(self) -> int: ...

    def read(self, start: int, frames: int) -> np.ndarray:
        """Read up to *frames* frames from *start*, shaped (frames, channels), native dtype."""
        ...

    def close(self) -> None: ...

    def __enter__(self) -> AudioFileHandle: ...

    def __exit__(self, *exc_info) -> None: ...


class AudioFileReader(Protocol):
    def open(self, path: Path) -> AudioFileHandle:
        """Open *path* for reading. Raises on missing/undecodable files."""
        ...

    def probe_duration(self, path: Path) -> float:
        """Return duration in seconds. Raises when it cannot be determined."""
        ...
