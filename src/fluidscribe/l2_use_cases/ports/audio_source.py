"""Port: live audio capture source."""

from __future__ import annotations

from typing import Protocol

from fluidscribe.l2_use_cases.audio_ingest_buffer import AudioIngestBuffer


class AudioSource(Protocol):
    """Abstract capture stream that pushes canonical samples into a buffer."""

    def open(self, buffer: AudioIngestBuffer, sample_rate: int, channels: int) -> None:
        """Start capturing; each delivered batch is appended to *buffer*."""
        ...

    def close(self) -> None:
        """Stop capturing."""
        ...
