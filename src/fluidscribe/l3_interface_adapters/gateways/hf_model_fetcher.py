"""Gateway: HuggingFace model fetcher -- implements ModelFetcher port."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

from huggingface_hub import HfApi, hf_hub_download, snapshot_download
from huggingface_hub.hf_api import RepoFile
from pywhispercpp.constants import MODELS_DIR

from fluidscribe.l1_entities.speech_models import SpeechModelSpec
from fluidscribe.l2_use_cases.ports.model_fetcher import RemoteFile

log = logging.getLogger('fscribe.models')

_TOKEN_ENV_VARS = ('HF_TOKEN', 'HUGGING_FACE_HUB_TOKEN', 'HUGGINGFACEHUB_API_TOKEN')


def hf_token() -> str | None:
    """First non-empty token from the usual HuggingFace environment variables."""
    for name in _TOKEN_ENV_VARS:
        value = os.environ.get(name, '').strip()
        if value:
            return value
    return None


def _make_progress_class(callback: Callable[[float], None]) -> type:
    """Create a tqdm-compatible class that reports download progress via *callback*."""

    class _ProgressReporter:
        def __init__(self, *args, **kwargs):
            self.total: int = kwargs.get('total', 0) or 0
            self.n: int = 0
            if self.total > 0:
                callback(0.0)

        def update(self, n: int = 1) -> None:
            self.n += n
            if self.total > 0:
                callback(min(self.n / self.total, 1.0))

        def close(self) -> None:
            pass

        def set_description(self, *a, **kw) -> None:
            pass

        def set_description_str(self, *a, **kw) -> None:
            pass

        def refresh(self) -> None:
            pass

        def __enter__(self):
            return self

        def __exit__(self, *args):
            self.close()

    return _ProgressReporter


class HfModelFetcher:
    """Downloads speech model artifacts from the HuggingFace Hub into a local cache."""

    def __init__(self, root: Path | None = None, api: HfApi | None = None) -> None:
        self._root = root if root is not None else Path(MODELS_DIR)
        self._api = api if api is not None else HfApi(token=hf_token())

    def cache_dir(self, spec: SpeechModelSpec) -> Path:
        return self._root / spec.cache_subdir

    def has_required_artifacts(self, spec: SpeechModelSpec, directory: Path) -> bool:
        if not (directory / spec.model_file).is_file():
            return False
        if any(not (directory / spec.local_relative(name)).exists() for name in spec.required_files):
            return False
        for prefix in spec.required_prefixes:
            local = directory / spec.local_relative(prefix.rstrip('/'))
            if not local.exists():
                return False
        return True

    def download(self, spec: SpeechModelSpec, on_progress: Callable[[float], None] | None = None) -> Path:
        target = self.cache_dir(spec)
        if self.has_required_artifacts(spec, target):
            log.debug('Using cached %s at %s', spec.model_id, target)
            return target
        target.mkdir(parents=True, exist_ok=True)

        kwargs: dict = dict(
            repo_id=spec.repo_id,
            revision=spec.revision,
            local_dir=target,
            allow_patterns=spec.allow_patterns,
            token=hf_token(),
        )
        if on_progress is not None:
            kwargs['tqdm_class'] = _make_progress_class(on_progress)
        log.info('Downloading %s from %s', spec.model_id, spec.repo_id)
        snapshot_download(**kwargs)

        if spec.sub_path:
            self._flatten_sub_path(spec, target)
        return target

    def _flatten_sub_path(self, spec: SpeechModelSpec, target: Path) -> None:
        nested = target / spec.sub_path
        if not nested.is_dir():
            return
        for item in nested.iterdir():
            destination = target / item.name
            if destination.exists():
                continue
            os.replace(item, destination)
        shutil.rmtree(target / spec.sub_path.split('/')[0], ignore_errors=True)

    def delete_cache(self, spec: SpeechModelSpec) -> None:
        target = self.cache_dir(spec)
        if target.exists():
            log.info('Deleting model cache %s', target)
            shutil.rmtree(target)

    def list_remote_files(self, spec: SpeechModelSpec) -> list[RemoteFile]:
        entries = self._api.list_repo_tree(
            spec.repo_id,
            path_in_repo=spec.sub_path or None,
            revision=spec.revision,
            recursive=True,
        )
        files: list[RemoteFile] = []
        for entry in entries:
            if isinstance(entry, RepoFile):
                files.append(RemoteFile(path=entry.path, size=entry.size if entry.size is not None else -1))
        return files

    def download_file(self, spec: SpeechModelSpec, remote: RemoteFile, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix='.fscribe-dl-', dir=destination.parent) as staging:
            fetched = hf_hub_download(
                repo_id=spec.repo_id,
                filename=remote.path,
                revision=spec.revision,
                local_dir=staging,
                token=hf_token(),
            )
            os.replace(fetched, destination)
