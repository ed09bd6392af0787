"""Worker messages -- contracts between thread workers and the CLI front end."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class WorkerStatus:
    """Posted by workers for lifecycle updates (loading_model, model_ready, recording, error ...)."""

    status: str
    error: str = ''


@dataclass(frozen=True)
class TranscriptUpdate:
    """Posted with streaming (``is_final=False``) and final transcripts."""

    text: str
    confidence: float
    is_final: bool = False
    boosted_terms: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ModelDownloadProgress:
    """Posted during model preparation to report progress percentage."""

    percent: int
    model_name: str

