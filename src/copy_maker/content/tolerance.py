"""Word-count tolerance policy."""

from __future__ import annotations

import math
from enum import Enum
from fractions import Fraction

from pydantic import BaseModel, ConfigDict

from .models import ConfigurationModel


class ToleranceMode(str, Enum):
    FLEXIBLE = "flexible"
    """Wide band for short content."""

    PERCENTAGE = "percentage"
    EXACT = "exact"
    """Strict mode: only the exact target is accepted."""


class TolerancePolicy(BaseModel):
    """Accepted deviation from a target word count.

    Comparisons use exact fractions, so a 2% band on 200 words accepts 204
    but not 205.
    """

    model_config = ConfigDict(frozen=True)

    target: int
    mode: ToleranceMode
    percentage: float = 0.0

    @classmethod
    def for_target(cls, config: ConfigurationModel, target: int) -> TolerancePolicy:
        """Pick the policy for a configuration and target.

        Targets below the short-content threshold use the flexible band.
        Otherwise strict mode means exact, and the configured percentage
        applies in every other case.
        """
        if target < config.short_content_threshold:
            return cls(
                target=target,
                mode=ToleranceMode.FLEXIBLE,
                percentage=config.short_content_tolerance_percentage,
            )
        if config.strict_word_count:
            return cls(target=target, mode=ToleranceMode.EXACT, percentage=0.0)
        return cls(
            target=target,
            mode=ToleranceMode.PERCENTAGE,
            percentage=config.word_count_tolerance_percentage,
        )

    def _allowed_deviation(self) -> Fraction:
        return Fraction(str(self.percentage)) * self.target / 100

    def is_satisfied(self, actual: int) -> bool:
        return abs(actual - self.target) <= self._allowed_deviation()

    def deviation(self, actual: int) -> int:
        return abs(actual - self.target)

    @property
    def minimum(self) -> int:
        return max(0, math.ceil(self.target - self._allowed_deviation()))

    @property
    def maximum(self) -> int:
        return math.floor(self.target + self._allowed_deviation())

    def describe(self) -> str:
        """Human-readable acceptable range, used in prompts and logs."""
        if self.mode == ToleranceMode.EXACT:
            return f"exactly {self.target} words"
        return f"{self.minimum}-{self.maximum} words (target {self.target}, ±{self.percentage:g}%)"
