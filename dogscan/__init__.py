"""dogscan - multi-source content scanning and moderation engine."""

__version__ = "0.1.0"
