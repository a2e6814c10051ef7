"""Copy feature - generation, evaluation, styles and snapshot commands."""

from .commands import evaluate, generate, list_styles_command, load, suggest
from .params import CopyGenerationParams, SnapshotLoadParams
from .service import CopyGeneratorService, SnapshotLoaderService

__all__ = [
    "evaluate",
    "generate",
    "list_styles_command",
    "load",
    "suggest",
    "CopyGenerationParams",
    "SnapshotLoadParams",
    "CopyGeneratorService",
    "SnapshotLoaderService",
]
