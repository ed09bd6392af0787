"""Speech model catalogue -- one static table keyed by model identifier.

Display name, remote repository, artifact layout and per-call duration limit
live in a single record per model so they cannot drift apart.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SpeechModelSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    model_id: str
    display_name: str
    repo_id: str
    revision: str = 'main'
    sub_path: str = ''
    required_prefixes: tuple[str, ...] = ()
    required_files: tuple[str, ...] = ()
    model_file: str
    cache_subdir: str
    tokenizer_repo: str
    max_segment_seconds: float = 1500.0

    def local_relative(self, remote_path: str) -> str:
        """Map a remote repo path to its location inside the local cache directory."""
        if self.sub_path and remote_path.startswith(self.sub_path + '/'):
            return remote_path[len(self.sub_path) + 1 :]
        return remote_path

    def is_required(self, remote_path: str) -> bool:
        if remote_path in self.required_files:
            return True
        return any(remote_path.startswith(prefix) for prefix in self.required_prefixes)

    @property
    def allow_patterns(self) -> list[str]:
        return [*self.required_files, *(f'{prefix}*' for prefix in self.required_prefixes)]


_WHISPER_CPP_REPO = 'ggerganov/whisper.cpp'
_BREEZE_REPO = 'alan314159/Breeze-ASR-25-whispercpp'


def _whisper_cpp(model_id: str, display_name: str, tokenizer_repo: str) -> SpeechModelSpec:
    filename = f'ggml-{model_id}.bin'
    return SpeechModelSpec(
        model_id=model_id,
        display_name=display_name,
        repo_id=_WHISPER_CPP_REPO,
        required_files=(filename,),
        model_file=filename,
        cache_subdir=f'whisper-cpp/{model_id}',
        tokenizer_repo=tokenizer_repo,
    )


def _breeze(model_id: str, filename: str, display_name: str) -> SpeechModelSpec:
    return SpeechModelSpec(
        model_id=model_id,
        display_name=display_name,
        repo_id=_BREEZE_REPO,
        required_files=(filename,),
        model_file=filename,
        cache_subdir=f'breeze/{model_id}',
        tokenizer_repo='MediaTek-Research/Breeze-ASR-25',
    )


SPEECH_MODELS: dict[str, SpeechModelSpec] = {
    spec.model_id: spec
    for spec in (
        _whisper_cpp('large-v3-turbo-q8_0', 'Whisper Large v3 Turbo (q8)', 'openai/whisper-large-v3-turbo'),
        _whisper_cpp('large-v3-turbo', 'Whisper Large v3 Turbo', 'openai/whisper-large-v3-turbo'),
        _whisper_cpp('large-v3-q5_0', 'Whisper Large v3 (q5)', 'openai/whisper-large-v3'),
        _whisper_cpp('medium-q8_0', 'Whisper Medium (q8)', 'openai/whisper-medium'),
        _whisper_cpp('small-q8_0', 'Whisper Small (q8)', 'openai/whisper-small'),
        _whisper_cpp('base.en', 'Whisper Base (English)', 'openai/whisper-base.en'),
        _breeze('breeze-q8', 'ggml-model-q8_0.bin', 'Breeze ASR 25 (q8)'),
        _breeze('breeze-q5', 'ggml-model-q5_k.bin', 'Breeze ASR 25 (q5)'),
    )
}

DEFAULT_MODEL_ID = 'large-v3-turbo-q8_0'


def get_speech_model(model_id: str) -> SpeechModelSpec:
    """Look up *model_id*. Raises KeyError listing the known identifiers."""
    try:
        return SPEECH_MODELS[model_id]
    except KeyError:
        known = ', '.join(sorted(SPEECH_MODELS))
        raise KeyError(f'Unknown speech model {model_id!r}. Known: {known}') from None
