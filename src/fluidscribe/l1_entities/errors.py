"""Domain error types."""

from __future__ import annotations


class FluidscribeError(Exception):
    """Base for every caller-visible failure.

    ``stage`` names the step that failed (``open``, ``read``, ``resample``,
    ``acquire`` ...) so configuration problems can be told apart from
    transient I/O problems. The underlying exception travels as ``__cause__``.
    """

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        text = f'[{self.stage}] {self.message}' if self.stage else self.message
        if self.__cause__ is not None:
            text = f'{text}: {self.__cause__}'
        return text


class ModelLoadFailedError(FluidscribeError):
    """Raised when ASR models cannot be downloaded or loaded."""


class AudioConversionFailedError(FluidscribeError):
    """Raised when an audio file cannot be opened, read, or resampled."""


class TranscriptionFailedError(FluidscribeError):
    """Raised when the inference backend fails on a segment."""


class FileNotSupportedError(FluidscribeError):
    """Raised for file extensions outside the supported container list."""


class InvalidVocabularyConfigError(FluidscribeError):
    """Raised when a vocabulary document does not parse or validate."""


class StorageUnavailableError(FluidscribeError):
    """Raised when the application data directory cannot be used."""
