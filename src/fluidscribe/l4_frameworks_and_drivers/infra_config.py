"""Infrastructure defaults -- lives in L4, not domain."""

from __future__ import annotations

import copy

from fluidscribe.l1_entities.config import AppConfig
from fluidscribe.l1_entities.speech_models import DEFAULT_MODEL_ID
from fluidscribe.l1_entities.vocabulary import MAX_TERMS

APP_CONFIG_DEFAULTS: dict = {
    'transcription': {
        'model': DEFAULT_MODEL_ID,
        'chunk_duration': None,
        'streaming_interval': 1.0,
        'word_boosting': True,
        'language': None,
    },
    'vocabulary': {
        'path': None,
        'max_terms': MAX_TERMS,
    },
    'output': {
        'directory': './output',
        'format': 'text',
    },
    'dictionary': [],
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
