"""Gateway: whisper.cpp inference engines -- implements AsrEngineFactory / AsrEngine ports."""

from __future__ import annotations

import contextlib
import logging
import math
import os
import sys
import threading
from pathlib import Path

import numpy as np
from pywhispercpp.model import Model

from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l1_entities.vocabulary import VocabularyBundle

log = logging.getLogger('fscribe.engine')

# whisper.cpp keeps at most ~half its 448-token context for the prompt.
PROMPT_TOKEN_BUDGET = 200

_SUPPORTED_PLATFORMS = ('darwin', 'linux', 'win32')


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout and interleaving with CLI progress output.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


class LoadedWhisperModel:
    """One set of whisper.cpp weights plus the lock serializing calls into it."""

    def __init__(self, model: Model, path: Path) -> None:
        self.model = model
        self.path = path
        self.lock = threading.Lock()


def build_initial_prompt(bundle: VocabularyBundle, budget: int = PROMPT_TOKEN_BUDGET) -> str:
    """Comma-separated term list in bundle (priority) order, cut at *budget* tokens."""
    parts: list[str] = []
    used = 0
    for term in bundle.terms:
        cost = len(term.token_ids) + 1
        if used + cost > budget:
            break
        parts.append(term.text)
        used += cost
    return ', '.join(parts)


def _segment_confidence(segments) -> float:
    probabilities = []
    for seg in segments:
        value = getattr(seg, 'probability', None)
        if value is None or not math.isfinite(value):
            continue
        probabilities.append(min(max(float(value), 0.0), 1.0))
    if not probabilities:
        return 1.0
    return sum(probabilities) / len(probabilities)


class WhisperCppEngine:
    """A decoder configuration over shared weights. ``initial_prompt`` biases decoding."""

    def __init__(self, loaded: LoadedWhisperModel, initial_prompt: str = '', language: str | None = None) -> None:
        self._loaded = loaded
        self._initial_prompt = initial_prompt
        self._language = language

    @property
    def initial_prompt(self) -> str:
        return self._initial_prompt

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        # pywhispercpp keeps params on the model between calls, so always set the prompt.
        kwargs: dict = {'initial_prompt': self._initial_prompt}
        if self._language:
            kwargs['language'] = self._language

        audio = np.ascontiguousarray(samples, dtype=np.float32)
        with self._loaded.lock, _suppress_c_stdout():
            raw_segments = self._loaded.model.transcribe(audio, **kwargs)

        segments = [seg for seg in raw_segments if seg.text.strip()]
        text = ' '.join(seg.text.strip() for seg in segments)
        return TranscriptionResult(text=text, confidence=_segment_confidence(segments))


class WhisperCppEngineFactory:
    """pywhispercpp adapter. Loads weights once; engines built from them share the same Model."""

    def __init__(self, model_file: str, language: str | None = None) -> None:
        self._model_file = model_file
        self._language = language
        self._is_available = sys.platform in _SUPPORTED_PLATFORMS

    @property
    def is_available(self) -> bool:
        return self._is_available

    def load(self, model_dir: Path) -> LoadedWhisperModel:
        path = model_dir / self._model_file
        if not path.is_file():
            raise FileNotFoundError(f'Model file not found: {path}')
        with _suppress_c_stdout():
            model = Model(str(path), print_progress=False, print_realtime=False)
        log.debug('Loaded whisper.cpp weights from %s', path)
        return LoadedWhisperModel(model, path)

    def create_engine(self, model: LoadedWhisperModel, bundle: VocabularyBundle | None = None) -> WhisperCppEngine:
        prompt = build_initial_prompt(bundle) if bundle is not None else ''
        if bundle is not None and not prompt:
            raise ValueError('No boost term fits in the prompt budget')
        return WhisperCppEngine(model, initial_prompt=prompt, language=self._language)

    def release(self, model: LoadedWhisperModel) -> None:
        """Explicitly release the weights, suppressing C-level teardown noise."""
        with model.lock, _suppress_c_stdout():
            model.model = None
