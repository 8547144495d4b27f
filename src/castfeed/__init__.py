"""castfeed - publish a folder of audio files as a podcast."""

__version__ = "0.1.0"
