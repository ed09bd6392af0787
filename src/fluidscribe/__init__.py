"""fluidscribe -- live and long-form speech-to-text with vocabulary boosting."""

__version__ = '0.4.0'
