"""Debug logging setup -- a file handler for long jobs, stderr for ``-v``."""

from __future__ import annotations

import logging
from pathlib import Path

_CONSOLE_HANDLER = 'fscribe-console'
_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_file_logging(output_dir: Path) -> Path:
    """Configure file-based debug logging into the output directory."""
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / 'fscribe_debug.log'
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger('fscribe')
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    logging.getLogger('fscribe.cli').info('Debug logging started → %s', log_path)
    return log_path


def setup_console_logging(verbose: bool) -> None:
    """Warnings always reach stderr; ``verbose`` lowers the threshold to DEBUG."""
    root = logging.getLogger('fscribe')
    for existing in list(root.handlers):
        if existing.get_name() == _CONSOLE_HANDLER:
            root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.set_name(_CONSOLE_HANDLER)
    handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.addHandler(handler)
