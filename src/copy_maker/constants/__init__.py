"""Global constants package for the copy generation engine.

PACKAGE STRUCTURE:
-----------------
- limits.py   : word-count defaults, SEO character limits, provider defaults
- status.py   : node kinds, loop states, operation status, snapshot kinds

USAGE EXAMPLES:
--------------
    from copy_maker.constants import NodeKind, LoopState
    from copy_maker.constants import SEO_META_DESCRIPTION_LIMIT
"""

from .limits import (
    WORD_COUNT_SHORT,
    WORD_COUNT_MEDIUM,
    WORD_COUNT_LONG,
    WORD_COUNT_TOLERANCE_PERCENTAGE,
    SHORT_CONTENT_THRESHOLD,
    SHORT_CONTENT_TOLERANCE_PERCENTAGE,
    MAX_REVISION_ATTEMPTS_DEFAULT,
    MAX_REVISION_ATTEMPTS_LIMIT,
    SEO_URL_SLUG_LIMIT,
    SEO_META_DESCRIPTION_LIMIT,
    SEO_H1_LIMIT,
    SEO_H2_LIMIT,
    SEO_H3_LIMIT,
    SEO_OG_TITLE_LIMIT,
    SEO_OG_DESCRIPTION_LIMIT,
    SEO_VARIANTS_MAX,
    AI_MAX_TOKENS_DEFAULT,
    AI_TIMEOUT_SECONDS,
    AI_TEMPERATURE_DEFAULT,
    AI_TEMPERATURE_PRECISE,
    RETRY_DELAY_SECONDS,
)
from .status import (
    NodeKind,
    LoopState,
    OperationStatus,
    SnapshotKind,
)

__all__ = [
    # Word count
    "WORD_COUNT_SHORT",
    "WORD_COUNT_MEDIUM",
    "WORD_COUNT_LONG",
    "WORD_COUNT_TOLERANCE_PERCENTAGE",
    "SHORT_CONTENT_THRESHOLD",
    "SHORT_CONTENT_TOLERANCE_PERCENTAGE",
    "MAX_REVISION_ATTEMPTS_DEFAULT",
    "MAX_REVISION_ATTEMPTS_LIMIT",
    # SEO
    "SEO_URL_SLUG_LIMIT",
    "SEO_META_DESCRIPTION_LIMIT",
    "SEO_H1_LIMIT",
    "SEO_H2_LIMIT",
    "SEO_H3_LIMIT",
    "SEO_OG_TITLE_LIMIT",
    "SEO_OG_DESCRIPTION_LIMIT",
    "SEO_VARIANTS_MAX",
    # Providers
    "AI_MAX_TOKENS_DEFAULT",
    "AI_TIMEOUT_SECONDS",
    "AI_TEMPERATURE_DEFAULT",
    "AI_TEMPERATURE_PRECISE",
    "RETRY_DELAY_SECONDS",
    # Enums
    "NodeKind",
    "LoopState",
    "OperationStatus",
    "SnapshotKind",
]
