"""Speech-to-speech chat backend."""

__version__ = "0.1.0"
