"""Use case: model acquisition with a bounded three-tier recovery ladder."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from fluidscribe.l1_entities.errors import ModelLoadFailedError
from fluidscribe.l1_entities.speech_models import SpeechModelSpec
from fluidscribe.l2_use_cases.ports.model_fetcher import ModelFetcher

log = logging.getLogger('fscribe.models')

T = TypeVar('T')

_TIER2_PROGRESS = 0.35
_TIER3_START = 0.45
_TIER3_SPAN = 0.40


def _noop(_: float) -> None:
    pass


def acquire_model(
    spec: SpeechModelSpec,
    fetcher: ModelFetcher,
    load: Callable[[Path], T],
    progress: Callable[[float], None] | None = None,
) -> T:
    """Download and load *spec*, trying each recovery tier exactly once.

    1. standard full-artifact download, then ``load``;
    2. delete the local cache directory and repeat 1;
    3. restricted file-by-file transfer of required artifacts only, then ``load``.

    Raises ModelLoadFailedError only after all three tiers fail.
    """
    report = progress or _noop

    try:
        return load(fetcher.download(spec, on_progress=lambda p: report(0.05 + p * 0.25)))
    except Exception as exc:
        log.warning('Initial load of %s failed (%s). Clearing cache and retrying once.', spec.model_id, exc)

    try:
        fetcher.delete_cache(spec)
    except OSError as exc:
        log.warning('Could not delete cache for %s: %s', spec.model_id, exc)

    report(_TIER2_PROGRESS)
    try:
        return load(fetcher.download(spec))
    except Exception as exc:
        log.warning('Standard download retry for %s failed (%s). Falling back to file-by-file fetch.', spec.model_id, exc)

    report(_TIER3_START)
    try:
        model_dir = fetch_required_files(spec, fetcher, report)
        return load(model_dir)
    except Exception as exc:
        raise ModelLoadFailedError(
            f'{spec.display_name} download is incomplete or corrupted; cache was cleared and fallback retry also failed',
            stage='acquire',
        ) from exc


def fetch_required_files(
    spec: SpeechModelSpec,
    fetcher: ModelFetcher,
    progress: Callable[[float], None] | None = None,
) -> Path:
    """Fetch only the required artifacts of *spec*, one file at a time.

    Files already present locally are skipped but still advance progress.
    """
    report = progress or _noop
    target = fetcher.cache_dir(spec)
    if fetcher.has_required_artifacts(spec, target):
        log.info('Required artifacts for %s already present in %s', spec.model_id, target)
        return target

    target.mkdir(parents=True, exist_ok=True)
    files = [f for f in fetcher.list_remote_files(spec) if spec.is_required(f.path)]
    if not files:
        raise ModelLoadFailedError(f'No {spec.display_name} files found in remote listing', stage='list')

    total = len(files)
    for index, remote in enumerate(files):
        destination = target / spec.local_relative(remote.path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            log.debug('Skipping %s: already present', remote.path)
        elif remote.size == 0:
            destination.touch()
        else:
            log.debug('Fetching %s (%d bytes)', remote.path, remote.size)
            fetcher.download_file(spec, remote, destination)
        report(_TIER3_START + (index + 1) / total * _TIER3_SPAN)

    if not fetcher.has_required_artifacts(spec, target):
        raise ModelLoadFailedError(
            'Fallback download finished but required artifacts are still missing', stage='verify'
        )
    return target
