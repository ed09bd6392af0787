"""Canonical audio constants shared by every layer."""

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_FORMAT = 'float32'

MIN_SEGMENT_SAMPLES = SAMPLE_RATE  # chunks shorter than 1s are never sent to a backend

SUPPORTED_EXTENSIONS = ('wav', 'mp3', 'm4a', 'aac', 'flac', 'aiff', 'caf', 'mp4', 'mov')
