"""L1 entity: transcription provider lifecycle state."""

from __future__ import annotations

import enum


class ProviderState(enum.Enum):
    UNPREPARED = 'unprepared'
    PREPARING = 'preparing'
    READY = 'ready'
