"""Dependency container -- composition root for wiring all layers together."""

from __future__ import annotations

from pathlib import Path

from fluidscribe.l1_entities.config import AppConfig
from fluidscribe.l1_entities.speech_models import SpeechModelSpec, get_speech_model
from fluidscribe.l2_use_cases.dual_engine_provider import DualEngineProvider
from fluidscribe.l2_use_cases.live_transcription_use_case import LiveTranscriptionUseCase
from fluidscribe.l2_use_cases.ports.audio_file_reader import AudioFileReader
from fluidscribe.l2_use_cases.ports.audio_source import AudioSource
from fluidscribe.l2_use_cases.ports.model_fetcher import ModelFetcher
from fluidscribe.l2_use_cases.ports.persistence import ResultExporter
from fluidscribe.l2_use_cases.ports.resampler import Resampler
from fluidscribe.l2_use_cases.ports.tokenizer import SubwordTokenizer
from fluidscribe.l2_use_cases.transcribe_file_use_case import TranscribeFileUseCase
from fluidscribe.l2_use_cases.vocabulary_boost import VocabularyBoostStore
from fluidscribe.l3_interface_adapters.gateways.ffmpeg_audio_reader import FfmpegAudioReader
from fluidscribe.l3_interface_adapters.gateways.file_result_exporter import FileResultExporter
from fluidscribe.l3_interface_adapters.gateways.hf_model_fetcher import HfModelFetcher
from fluidscribe.l3_interface_adapters.gateways.hf_tokenizer import HfSubwordTokenizer
from fluidscribe.l3_interface_adapters.gateways.json_vocabulary_file import JsonVocabularyFile
from fluidscribe.l3_interface_adapters.gateways.paths import VOCABULARY_PATH
from fluidscribe.l3_interface_adapters.gateways.routing_audio_reader import RoutingAudioReader
from fluidscribe.l3_interface_adapters.gateways.scipy_resampler import ScipyResampler
from fluidscribe.l3_interface_adapters.gateways.settings_dictionary_source import SettingsDictionarySource
from fluidscribe.l3_interface_adapters.gateways.soundfile_audio_reader import SoundfileAudioReader
from fluidscribe.l3_interface_adapters.gateways.whisper_cpp_engine import WhisperCppEngineFactory


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing.

    Holds exactly one VocabularyBoostStore: every consumer in the process
    reads and writes the same on-disk document through it.
    """

    def __init__(self, config: AppConfig, fetcher: ModelFetcher | None = None) -> None:
        self.config = config
        self.spec: SpeechModelSpec = get_speech_model(config.transcription.model)

        self.fetcher: ModelFetcher = fetcher if fetcher is not None else HfModelFetcher()
        self.vocabulary = VocabularyBoostStore(
            JsonVocabularyFile(self.vocabulary_path),
            dictionary=SettingsDictionarySource(config),
            tokenizer_loader=self._load_tokenizer,
            max_terms=config.vocabulary.max_terms,
        )
        self.engine_factory = WhisperCppEngineFactory(self.spec.model_file, language=config.transcription.language)
        self.provider = DualEngineProvider(
            spec=self.spec,
            fetcher=self.fetcher,
            engine_factory=self.engine_factory,
            vocabulary=self.vocabulary,
            word_boosting=config.transcription.word_boosting,
        )
        self.resampler: Resampler = ScipyResampler()
        self.reader: AudioFileReader = RoutingAudioReader(SoundfileAudioReader(), FfmpegAudioReader())
        self.exporter: ResultExporter = FileResultExporter()

    @property
    def vocabulary_path(self) -> Path:
        if self.config.vocabulary.path:
            return Path(self.config.vocabulary.path).expanduser()
        return VOCABULARY_PATH

    def _load_tokenizer(self) -> SubwordTokenizer:
        return HfSubwordTokenizer.load(self.spec.tokenizer_repo, self.fetcher.cache_dir(self.spec))

    def file_use_case(self) -> TranscribeFileUseCase:
        return TranscribeFileUseCase(
            provider=self.provider,
            reader=self.reader,
            resampler=self.resampler,
            chunk_duration=self.config.transcription.chunk_duration,
        )

    def live_use_case(self) -> LiveTranscriptionUseCase:
        return LiveTranscriptionUseCase(
            provider=self.provider,
            min_update_seconds=self.config.transcription.streaming_interval,
        )

    @staticmethod
    def audio_source() -> AudioSource:
        from fluidscribe.l3_interface_adapters.gateways.sounddevice_audio_source import (  # noqa: PLC0415 -- deferred: PortAudio loaded only when recording
            SounddeviceAudioSource,
        )

        return SounddeviceAudioSource()
