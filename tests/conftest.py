"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import numpy as np
import pytest

from fluidscribe.l1_entities.audio_constants import SAMPLE_RATE
from fluidscribe.l1_entities.audio_format import AudioFormat
from fluidscribe.l1_entities.config import AppConfig
from fluidscribe.l1_entities.provider_state import ProviderState
from fluidscribe.l1_entities.speech_models import SpeechModelSpec
from fluidscribe.l1_entities.transcription import TranscriptionResult
from fluidscribe.l1_entities.vocabulary import DictionaryEntry, VocabularyBundle
from fluidscribe.l2_use_cases.audio_ingest_buffer import AudioIngestBuffer
from fluidscribe.l2_use_cases.ports.model_fetcher import RemoteFile
from fluidscribe.l2_use_cases.vocabulary_boost import default_document
from fluidscribe.l4_frameworks_and_drivers.infra_config import build_app_config

# --- Protocol-conforming Fakes ---


class FakeEngine:
    """Fake AsrEngine: records every call, optionally raises."""

    def __init__(self, text: str = 'hello world', confidence: float = 0.9, error: Exception | None = None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls: list[np.ndarray] = []

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        self.calls.append(samples)
        if self.error is not None:
            raise self.error
        return TranscriptionResult(text=self.text, confidence=self.confidence)


class FakeEngineFactory:
    """Fake AsrEngineFactory. Boosted engines say 'boosted'; fast engines say 'fast'."""

    def __init__(
        self,
        available: bool = True,
        load_error: Exception | None = None,
        boosted_error: Exception | None = None,
        create_boosted_error: Exception | None = None,
    ):
        self.is_available = available
        self.load_error = load_error
        self.boosted_error = boosted_error
        self.create_boosted_error = create_boosted_error
        self.load_calls: list[Path] = []
        self.bundles: list[VocabularyBundle | None] = []
        self.engines: list[FakeEngine] = []
        self.released: list[object] = []

    def load(self, model_dir: Path) -> object:
        self.load_calls.append(model_dir)
        if self.load_error is not None:
            raise self.load_error
        return {'model_dir': model_dir}

    def create_engine(self, model: object, bundle: VocabularyBundle | None = None) -> FakeEngine:
        self.bundles.append(bundle)
        if bundle is not None:
            if self.create_boosted_error is not None:
                raise self.create_boosted_error
            engine = FakeEngine(text='boosted', confidence=0.95, error=self.boosted_error)
        else:
            engine = FakeEngine(text='fast', confidence=0.8)
        self.engines.append(engine)
        return engine

    def release(self, model: object) -> None:
        self.released.append(model)


class FakeFetcher:
    """Fake ModelFetcher. ``download_errors`` are raised by successive ``download`` calls."""

    def __init__(
        self,
        root: Path,
        download_errors: list[Exception | None] | None = None,
        remote_files: list[RemoteFile] | None = None,
    ):
        self.root = root
        self.download_errors = list(download_errors or [])
        self.remote_files = remote_files if remote_files is not None else []
        self.calls: list[str] = []
        self.downloaded_files: list[str] = []

    def cache_dir(self, spec: SpeechModelSpec) -> Path:
        return self.root / spec.cache_subdir

    def download(self, spec: SpeechModelSpec, on_progress=None) -> Path:
        self.calls.append('download')
        error = self.download_errors.pop(0) if self.download_errors else None
        if error is not None:
            raise error
        target = self.cache_dir(spec)
        target.mkdir(parents=True, exist_ok=True)
        (target / spec.model_file).write_bytes(b'weights')
        if on_progress is not None:
            on_progress(0.5)
            on_progress(1.0)
        return target

    def delete_cache(self, spec: SpeechModelSpec) -> None:
        self.calls.append('delete_cache')
        shutil.rmtree(self.cache_dir(spec), ignore_errors=True)

    def list_remote_files(self, spec: SpeechModelSpec) -> list[RemoteFile]:
        self.calls.append('list_remote_files')
        return list(self.remote_files)

    def download_file(self, spec: SpeechModelSpec, remote: RemoteFile, destination: Path) -> None:
        self.calls.append(f'download_file:{remote.path}')
        self.downloaded_files.append(remote.path)
        destination.write_bytes(b'x' * max(remote.size, 1))

    def has_required_artifacts(self, spec: SpeechModelSpec, directory: Path) -> bool:
        return all((directory / spec.local_relative(name)).exists() for name in spec.required_files)


class FakeHandle:
    """In-memory AudioFileHandle over a (frames, channels) array."""

    def __init__(self, data: np.ndarray, sample_rate: int, sample_format: str | None = None):
        self.data = data if data.ndim == 2 else data.reshape(-1, 1)
        self._format = AudioFormat(
            sample_rate=sample_rate,
            channels=self.data.shape[1],
            sample_format=sample_format or str(self.data.dtype),
        )
        self.reads: list[tuple[int, int]] = []
        self.closed = False

    @property
    def format(self) -> AudioFormat:
        return self._format

    @property
    def frames(self) -> int:
        return self.data.shape[0]

    def read(self, start: int, frames: int) -> np.ndarray:
        self.reads.append((start, frames))
        return self.data[start : start + frames]

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeReader:
    """Fake AudioFileReader handing out one prepared handle."""

    def __init__(self, handle: FakeHandle | None = None, duration: float | None = None, open_error=None):
        self.handle = handle
        self.duration = duration
        self.open_error = open_error

    def open(self, path: Path) -> FakeHandle:
        if self.open_error is not None:
            raise self.open_error
        return self.handle

    def probe_duration(self, path: Path) -> float:
        if self.duration is None:
            raise RuntimeError('no duration')
        return self.duration


class FakeResampler:
    """Mono float32 zeros of the length a real resampler would produce."""

    def __init__(self):
        self.blocks: list[tuple[int, AudioFormat]] = []

    def to_canonical(self, block: np.ndarray, source_format: AudioFormat) -> np.ndarray:
        self.blocks.append((len(block), source_format))
        length = round(len(block) * SAMPLE_RATE / source_format.sample_rate)
        return np.zeros(length, dtype=np.float32)


class FakeProvider:
    """Fake TranscriptionProvider for use case tests."""

    def __init__(self, text: str = 'hello', confidence: float = 0.9, max_segment_seconds: float = 1500.0):
        self.name = 'Fake'
        self.is_available = True
        self.state = ProviderState.UNPREPARED
        self.is_boosting_active = False
        self.max_segment_seconds = max_segment_seconds
        self.text = text
        self.confidence = confidence
        self.prepare_calls = 0
        self.streaming_calls: list[int] = []
        self.final_calls: list[int] = []
        self.final_error: Exception | None = None

    @property
    def is_ready(self) -> bool:
        return self.state is ProviderState.READY

    def prepare(self, progress_callback=None) -> None:
        self.prepare_calls += 1
        if progress_callback is not None:
            progress_callback(1.0)
        self.state = ProviderState.READY

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        return self.transcribe_final(samples)

    def transcribe_streaming(self, samples: np.ndarray) -> TranscriptionResult:
        self.streaming_calls.append(len(samples))
        return TranscriptionResult(text=f'{self.text} (partial)', confidence=self.confidence)

    def transcribe_final(self, samples: np.ndarray) -> TranscriptionResult:
        self.final_calls.append(len(samples))
        if self.final_error is not None:
            raise self.final_error
        return TranscriptionResult(text=self.text, confidence=self.confidence)

    def models_exist_on_disk(self) -> bool:
        return self.is_ready

    def clear_cache(self) -> None:
        self.state = ProviderState.UNPREPARED

    def detect_boosted_terms(self, text: str, limit: int = 2) -> list[str]:
        return []

    def close(self) -> None:
        pass


class FakeTokenizer:
    """One token per whitespace-separated word; words listed in ``untokenizable`` yield nothing."""

    def __init__(self, untokenizable: set[str] | None = None):
        self.untokenizable = untokenizable or set()
        self.encode_calls: list[str] = []

    def encode(self, text: str) -> list[int]:
        self.encode_calls.append(text)
        if text in self.untokenizable:
            return []
        return [sum(map(ord, word)) for word in text.split()]


class FakeVocabularyFile:
    """In-memory VocabularyFile; seeds the template document on first read like the real one."""

    def __init__(self, text: str | None = None):
        self.text = text
        self.writes: list[str] = []

    @property
    def path(self) -> Path:
        return Path('/fake/custom_vocabulary.json')

    def read_text(self) -> str:
        if self.text is None:
            self.text = json.dumps(default_document(), indent=2, sort_keys=True)
        return self.text

    def write_text(self, text: str) -> None:
        self.writes.append(text)
        self.text = text


class FakeDictionarySource:
    def __init__(self, entries: list[DictionaryEntry] | None = None):
        self._entries = entries or []

    def entries(self) -> list[DictionaryEntry]:
        return list(self._entries)


class FakeAudioSource:
    """Fake AudioSource: pushes its chunks into the buffer as soon as it is opened."""

    def __init__(self, chunks: list[np.ndarray] | None = None, open_error: Exception | None = None) -> None:
        self._chunks = list(chunks or [])
        self.open_error = open_error
        self.open_calls: list[tuple[int, int]] = []
        self.close_calls: int = 0

    def open(self, buffer: AudioIngestBuffer, sample_rate: int, channels: int) -> None:
        self.open_calls.append((sample_rate, channels))
        if self.open_error is not None:
            raise self.open_error
        for chunk in self._chunks:
            buffer.append(chunk)

    def close(self) -> None:
        self.close_calls += 1


def vocabulary_json(terms: list[dict], **tuning) -> str:
    return json.dumps({**tuning, 'terms': terms})


# --- Standard Fixtures ---


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    d = tmp_path / 'output'
    d.mkdir()
    return d


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def test_spec() -> SpeechModelSpec:
    return SpeechModelSpec(
        model_id='tiny-test',
        display_name='Tiny Test',
        repo_id='example/tiny-test',
        required_files=('ggml-tiny-test.bin',),
        model_file='ggml-tiny-test.bin',
        cache_subdir='test/tiny-test',
        tokenizer_repo='example/tiny-tokenizer',
    )


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
transcription:
  model: "small-q8_0"
  streaming_interval: 2.0
  word_boosting: false
vocabulary:
  max_terms: 64
output:
  directory: "./test_output"
  format: "json"
dictionary:
  - triggers: ["open ai", "open a i"]
    replacement: "OpenAI"
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_tokenizer() -> FakeTokenizer:
    return FakeTokenizer()
