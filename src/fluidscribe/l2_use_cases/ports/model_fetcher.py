"""Port: model artifact fetch/cache subsystem."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fluidscribe.l1_entities.speech_models import SpeechModelSpec


@dataclass(frozen=True)
class RemoteFile:
    """A file in a remote model repository."""

    path: str
    size: int = -1  # -1 when the listing omits it


class ModelFetcher(Protocol):
    def cache_dir(self, spec: SpeechModelSpec) -> Path:
        """Local directory holding *spec*'s artifacts."""
        ...

    def download(self, spec: SpeechModelSpec, on_progress: Callable[[float], None] | None = None) -> Path:
        """Standard full-artifact download. Returns the local model directory."""
        ...

    def delete_cache(self, spec: SpeechModelSpec) -> None: ...

    def list_remote_files(self, spec: SpeechModelSpec) -> list[RemoteFile]:
        """Recursively list the remote artifact tree."""
        ...

    def download_file(self, spec: SpeechModelSpec, remote: RemoteFile, destination: Path) -> None:
        """Fetch one file, landing at *destination* atomically."""
        ...

    def has_required_artifacts(self, spec: SpeechModelSpec, directory: Path) -> bool: ...
