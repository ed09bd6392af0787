"""Port: speech-to-text transcription provider."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import numpy as np

from fluidscribe.l1_entities.provider_state import ProviderState
from fluidscribe.l1_entities.transcription import TranscriptionResult

ProgressCallback = Callable[[float], None]


class TranscriptionProvider(Protocol):
    """Uniform capability over interchangeable acoustic-model backends.

    Samples are always canonical: 16 kHz mono float32.
    """

    @property
    def name(self) -> str: ...

    @property
    def is_available(self) -> bool:
        """Platform capability, probed once at construction."""
        ...

    @property
    def state(self) -> ProviderState: ...

    @property
    def is_ready(self) -> bool: ...

    @property
    def is_boosting_active(self) -> bool: ...

    @property
    def max_segment_seconds(self) -> float: ...

    def prepare(self, progress_callback: ProgressCallback | None = None) -> None:
        """Download and load models. Idempotent once ready; raises on failure."""
        ...

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        """Same as ``transcribe_final``."""
        ...

    def transcribe_streaming(self, samples: np.ndarray) -> TranscriptionResult:
        """Low-latency, unbiased pass used while recording."""
        ...

    def transcribe_final(self, samples: np.ndarray) -> TranscriptionResult:
        """Higher-quality pass, vocabulary-boosted when available."""
        ...

    def models_exist_on_disk(self) -> bool: ...

    def clear_cache(self) -> None:
        """Delete persisted model artifacts and return to UNPREPARED."""
        ...

    def detect_boosted_terms(self, text: str, limit: int = 2) -> list[str]: ...
