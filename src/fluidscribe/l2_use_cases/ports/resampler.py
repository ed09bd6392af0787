"""Port: conversion of arbitrary PCM blocks into the canonical format."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from fluidscribe.l1_entities.audio_format import AudioFormat


class Resampler(Protocol):
    def to_canonical(self, block: np.ndarray, source_format: AudioFormat) -> np.ndarray:
        """Convert one independent block to 16 kHz mono float32."""
        ...
