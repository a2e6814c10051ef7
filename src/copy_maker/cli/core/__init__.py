"""Core utilities for CLI - pure functions and shared types."""

from .types import CopyRunResult, Failure, Result, Success
from .loaders import load_configuration
from .console import console
from .ai_progress import AIProgressDisplay

__all__ = [
    # Types
    "Result",
    "Success",
    "Failure",
    "CopyRunResult",
    # Loaders
    "load_configuration",
    # Console
    "console",
    # Progress
    "AIProgressDisplay",
]
