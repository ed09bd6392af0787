"""Port: opaque acoustic-model inference engine."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import numpy as np

from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l1_entities.vocabulary import VocabularyBundle


class AsrEngine(Protocol):
    """One configured decoder instance. Zero framework types leak through."""

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        """Transcribe canonical samples in a single call."""
        ...


class AsrEngineFactory(Protocol):
    """Loads model weights once and builds engines that share them."""

    @property
    def is_available(self) -> bool: ...

    def load(self, model_dir: Path) -> Any:
        """Load weights from *model_dir*. The return value is opaque to callers."""
        ...

    def create_engine(self, model: Any, bundle: VocabularyBundle | None = None) -> AsrEngine:
        """Build an engine; with *bundle* the engine is biased toward its terms."""
        ...

    def release(self, model: Any) -> None:
        """Free weights returned by ``load``."""
        ...
