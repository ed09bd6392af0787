"""L1 entity: PCM stream format description."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fluidscribe.l1_entities.audio_constants import CHANNELS, SAMPLE_FORMAT, SAMPLE_RATE


class AudioFormat(BaseModel):
    """Sample rate, channel count and sample representation of a PCM source."""

    model_config = ConfigDict(frozen=True)

    sample_rate: int = Field(gt=0)
    channels: int = Field(gt=0)
    sample_format: str = Field(description="numpy dtype name: 'float32', 'float64', 'int16' or 'int32'")

    @property
    def is_canonical(self) -> bool:
        return self == CANONICAL_FORMAT


CANONICAL_FORMAT = AudioFormat(sample_rate=SAMPLE_RATE, channels=CHANNELS, sample_format=SAMPLE_FORMAT)
