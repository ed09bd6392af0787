"""Use case: transcription provider with a fast streaming engine and a vocabulary-boosted final engine."""

from __future__ import annotations

import logging
import time
from typing import Any

import numpy as np

from fluidscribe.l1_entities.audio_constants import SAMPLE_RATE
from fluidscribe.l1_entities.errors import FluidscribeError, ModelLoadFailedError, TranscriptionFailedError
from fluidscribe.l1_entities.provider_state import ProviderState
from fluidscribe.l1_entities.speech_models import SpeechModelSpec
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l2_use_cases.model_acquisition import acquire_model
from fluidscribe.l2_use_cases.ports.asr_engine import AsrEngine, AsrEngineFactory
from fluidscribe.l2_use_cases.ports.model_fetcher import ModelFetcher
from fluidscribe.l2_use_cases.ports.transcription_provider import ProgressCallback
from fluidscribe.l2_use_cases.vocabulary_boost import BoostedTermDetector, VocabularyBoostStore

log = logging.getLogger('fscribe.provider')


class _MonotonicProgress:
    def __init__(self, callback: ProgressCallback | None) -> None:
        self._callback = callback
        self._last = 0.0

    def __call__(self, value: float) -> None:
        if self._callback is None or value < self._last:
            return
        self._last = value
        self._callback(value)


class DualEngineProvider:
    """Backend-agnostic TranscriptionProvider.

    ``prepare()`` always builds a *fast* engine (no vocabulary bias) for
    ``transcribe_streaming``. When the vocabulary store yields a non-empty
    bundle, a second *boosted* engine is built for ``transcribe_final``;
    otherwise the final pass reuses the fast engine and boosting is reported
    inactive. Both engines share one set of loaded weights.

    If the boosted engine raises, the identical input is retried once on the
    fast engine before any error reaches the caller.
    """

    def __init__(
        self,
        spec: SpeechModelSpec,
        fetcher: ModelFetcher,
        engine_factory: AsrEngineFactory,
        vocabulary: VocabularyBoostStore | None = None,
        word_boosting: bool = True,
    ) -> None:
        self._spec = spec
        self._fetcher = fetcher
        self._factory = engine_factory
        self._vocabulary = vocabulary
        self._word_boosting = word_boosting
        self._is_available = engine_factory.is_available

        self._state = ProviderState.UNPREPARED
        self._model: Any = None
        self._fast_engine: AsrEngine | None = None
        self._final_engine: AsrEngine | None = None
        self._boosted_term_count = 0
        self._detector = BoostedTermDetector(())

    @property
    def name(self) -> str:
        return self._spec.display_name

    @property
    def spec(self) -> SpeechModelSpec:
        return self._spec

    @property
    def is_available(self) -> bool:
        return self._is_available

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ProviderState.READY

    @property
    def is_boosting_active(self) -> bool:
        return self._final_engine is not None and self._final_engine is not self._fast_engine

    @property
    def boosted_term_count(self) -> int:
        return self._boosted_term_count

    @property
    def max_segment_seconds(self) -> float:
        return self._spec.max_segment_seconds

    @property
    def streaming_engine(self) -> AsrEngine | None:
        return self._fast_engine

    @property
    def final_engine(self) -> AsrEngine | None:
        return self._final_engine

    # -- lifecycle --

    def prepare(self, progress_callback: ProgressCallback | None = None) -> None:
        if self._state is ProviderState.READY:
            return
        if not self._is_available:
            raise ModelLoadFailedError(f'{self.name} is not supported on this platform', stage='probe')

        progress = _MonotonicProgress(progress_callback)
        self._state = ProviderState.PREPARING
        log.info('Preparing %s [model=%s]', self.name, self._spec.model_id)
        progress(0.05)
        started = time.monotonic()

        model: Any = None
        try:
            model = acquire_model(self._spec, self._fetcher, self._factory.load, progress)
            log.debug('Model weights loaded in %.2fs', time.monotonic() - started)
            fast = self._factory.create_engine(model)
            final, term_count, detector = self._build_final_engine(model, fast)
        except Exception as exc:
            self._state = ProviderState.UNPREPARED
            if model is not None:
                self._factory.release(model)
            log.error('Preparing %s failed: %s', self.name, exc, exc_info=True)
            if isinstance(exc, ModelLoadFailedError):
                raise
            raise ModelLoadFailedError(f'Failed to load {self.name}', stage='load') from exc
        progress(0.70)

        self._model = model
        self._fast_engine = fast
        self._final_engine = final
        self._boosted_term_count = term_count
        self._detector = detector
        self._state = ProviderState.READY
        progress(1.0)
        log.info(
            'Models ready [boosting_active=%s, terms=%d] in %.2fs',
            self.is_boosting_active,
            term_count,
            time.monotonic() - started,
        )

    def _build_final_engine(self, model: Any, fast: AsrEngine) -> tuple[AsrEngine, int, BoostedTermDetector]:
        if not self._word_boosting or self._vocabulary is None:
            log.debug('Word boosting disabled by configuration')
            return fast, 0, BoostedTermDetector(())
        try:
            bundle = self._vocabulary.load_bundle()
            if bundle is None:
                log.debug('No vocabulary boost terms found; final pass uses the fast engine')
                return fast, 0, BoostedTermDetector(())
            boosted = self._factory.create_engine(model, bundle)
        except Exception as exc:
            log.warning('Failed to configure vocabulary boosting: %s', exc)
            return fast, 0, BoostedTermDetector(())
        log.info('Enabled vocabulary boosting with %d terms (final pass only)', len(bundle.terms))
        return boosted, len(bundle.terms), BoostedTermDetector(bundle.terms)

    def models_exist_on_disk(self) -> bool:
        return self._fetcher.has_required_artifacts(self._spec, self._fetcher.cache_dir(self._spec))

    def clear_cache(self) -> None:
        log.info('Clearing model cache for %s', self.name)
        self._release()
        self._fetcher.delete_cache(self._spec)

    def close(self) -> None:
        """Release loaded weights without touching the on-disk cache."""
        self._release()

    def _release(self) -> None:
        if self._model is not None:
            self._factory.release(self._model)
        self._model = None
        self._fast_engine = None
        self._final_engine = None
        self._boosted_term_count = 0
        self._detector = BoostedTermDetector(())
        self._state = ProviderState.UNPREPARED

    # -- transcription --

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        return self.transcribe_final(samples)

    def transcribe_streaming(self, samples: np.ndarray) -> TranscriptionResult:
        engine = self._require(self._fast_engine)
        try:
            return engine.transcribe(samples)
        except FluidscribeError:
            raise
        except Exception as exc:
            raise TranscriptionFailedError('Streaming transcription failed', stage='streaming') from exc

    def transcribe_final(self, samples: np.ndarray) -> TranscriptionResult:
        engine = self._require(self._final_engine or self._fast_engine)
        try:
            return self._transcribe_segmented(engine, samples)
        except Exception as exc:
            fallback = self._fast_engine
            if fallback is None or fallback is engine:
                if isinstance(exc, FluidscribeError):
                    raise
                raise TranscriptionFailedError('Final transcription failed', stage='final') from exc
            log.warning('Boosted final transcription failed (%s), retrying without vocabulary boost', exc)

        try:
            return self._transcribe_segmented(fallback, samples)
        except FluidscribeError:
            raise
        except Exception as exc:
            raise TranscriptionFailedError('Final transcription failed on both engines', stage='final') from exc

    def _transcribe_segmented(self, engine: AsrEngine, samples: np.ndarray) -> TranscriptionResult:
        """Single call when within the per-call limit, else consecutive segments joined by spaces."""
        max_samples = int(self._spec.max_segment_seconds * SAMPLE_RATE)
        if len(samples) <= max_samples:
            return engine.transcribe(samples)

        texts: list[str] = []
        confidences: list[float] = []
        for start in range(0, len(samples), max_samples):
            result = engine.transcribe(samples[start : start + max_samples])
            text = result.text.strip()
            if text:
                texts.append(text)
                confidences.append(result.confidence)
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return TranscriptionResult(text=' '.join(texts), confidence=confidence)

    def _require(self, engine: AsrEngine | None) -> AsrEngine:
        if self._state is not ProviderState.READY or engine is None:
            raise TranscriptionFailedError(f'{self.name} is not ready; call prepare() first', stage='state')
        return engine

    def detect_boosted_terms(self, text: str, limit: int = 2) -> list[str]:
        if not self.is_boosting_active:
            return []
        return self._detector.detect(text, limit)
