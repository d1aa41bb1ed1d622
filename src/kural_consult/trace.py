"""
Helpers for recording which tiers of the cascade were tried and why they
were left.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import TierAttempt, TierOutcome


@dataclass
class ResolutionTrace:
    """
    Collects the ordered tier attempts for one question.

    Only the last attempt can be ``selected``; every earlier one is either
    ``empty`` or ``failed``.
    """

    question: str
    attempts: list[TierAttempt] = field(default_factory=list)

    def record(self, tier: str, outcome: TierOutcome, detail: str = "") -> None:
        self.attempts.append(TierAttempt(tier=tier, outcome=outcome, detail=detail))

    def step_path(self) -> list[str]:
        """Human-readable path, one line per attempted tier."""
        lines: list[str] = []
        for number, attempt in enumerate(self.attempts, start=1):
            suffix = f" ({attempt.detail})" if attempt.detail else ""
            lines.append(f"{number}. {attempt.tier}: {attempt.outcome}{suffix}")
        return lines
