"""Limit constants for the copy generation engine.

This module contains all limits and defaults:
- Word-count tolerance and revision budgets
- SEO character limits
- Provider token and timeout defaults

AI CONTEXT:
-----------
Tolerance values are percentages (2.0 means 2%). The revision budget counts
revision requests made after the first draft, so a budget of 3 allows at
most 4 provider requests for one piece of copy.

MODIFICATION GUIDE:
------------------
- WORD_COUNT_* values are only defaults; every one of them can be
  overridden per call on the ConfigurationModel
- SEO_*_LIMIT values follow common search engine display widths
"""

from typing import Final

# =============================================================================
# WORD COUNT PRESETS
# =============================================================================

WORD_COUNT_SHORT: Final[int] = 75
"""Mid-point of the short preset (50-100 words)."""

WORD_COUNT_MEDIUM: Final[int] = 150
"""Mid-point of the medium preset (100-200 words)."""

WORD_COUNT_LONG: Final[int] = 300
"""Mid-point of the long preset (200-400 words)."""


# =============================================================================
# WORD COUNT ADHERENCE
# =============================================================================

WORD_COUNT_TOLERANCE_PERCENTAGE: Final[float] = 2.0
"""Default accepted deviation from target for regular content."""

SHORT_CONTENT_THRESHOLD: Final[int] = 100
"""Targets below this many words use the short-content band."""

SHORT_CONTENT_TOLERANCE_PERCENTAGE: Final[float] = 20.0
"""Accepted deviation for short content."""

MAX_REVISION_ATTEMPTS_DEFAULT: Final[int] = 3
"""Default number of revision requests after the first draft."""

MAX_REVISION_ATTEMPTS_LIMIT: Final[int] = 5
"""Hard upper bound for the revision budget."""


# =============================================================================
# SEO CHARACTER LIMITS
# =============================================================================

SEO_URL_SLUG_LIMIT: Final[int] = 60
SEO_META_DESCRIPTION_LIMIT: Final[int] = 160
SEO_H1_LIMIT: Final[int] = 60
SEO_H2_LIMIT: Final[int] = 70
SEO_H3_LIMIT: Final[int] = 70
SEO_OG_TITLE_LIMIT: Final[int] = 60
SEO_OG_DESCRIPTION_LIMIT: Final[int] = 110

SEO_VARIANTS_MAX: Final[int] = 10
"""Maximum variants requested for any SEO field."""


# =============================================================================
# AI PROVIDER DEFAULTS
# =============================================================================

AI_MAX_TOKENS_DEFAULT: Final[int] = 4096
"""Default maximum tokens for AI responses."""

AI_TIMEOUT_SECONDS: Final[int] = 60
"""Timeout for a single provider call in seconds."""

AI_TEMPERATURE_DEFAULT: Final[float] = 0.7
"""Default temperature for copy generation."""

AI_TEMPERATURE_PRECISE: Final[float] = 0.5
"""Temperature for revisions and scoring, where precision matters."""

RETRY_DELAY_SECONDS: Final[float] = 1.0
"""Delay between transient-error retries inside the revision loop."""
