"""Copy Maker - AI marketing copy generation and content threading."""

__version__ = "0.1.0"
