"""
Classification Domain Policies
==============================

Stateless decision logic used by the classification engine:
- ResponseValidator: is a backend answer usable as-is?
- FallbackClassifier: local low-certainty guess when it is not
- CategoryUpdatePolicy: may a suggestion overwrite the ticket's category?
"""

import random
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ticketdesk.config import DEFAULT_FALLBACK_CATEGORIES
from ticketdesk.tickets.domain import Category, Ticket
from ticketdesk.classification.domain.entities import (
    ClassificationResult, ClassificationSource, FallbackReason
)

REQUIRED_FIELDS = ("category", "explanation", "confidence")


class ResponseValidator:
    """
    Checks a raw backend answer against structural and domain constraints.

    Any violation rejects the whole answer.
    """

    def validate(self, raw: Any, known_category_names: Sequence[str]) -> bool:
        if not isinstance(raw, Mapping):
            return False

        if any(raw.get(name) is None for name in REQUIRED_FIELDS):
            return False

        category = raw["category"]
        if not isinstance(category, str) or category not in known_category_names:
            return False

        # bool is an int subclass but never a score
        confidence = raw["confidence"]
        if isinstance(confidence, bool) or not isinstance(confidence, int):
            return False
        if not 1 <= confidence <= 100:
            return False

        explanation = raw["explanation"]
        if not isinstance(explanation, str) or not explanation.strip():
            return False

        return True


class FallbackClassifier:
    """
    Produces a random but well-formed classification.

    Confidence is drawn from [MIN_CONFIDENCE, MAX_CONFIDENCE] so a fallback
    never looks like a certain answer.
    """

    MIN_CONFIDENCE = 10
    MAX_CONFIDENCE = 95
    EXPLANATION_TEMPLATE = "Automatically classified using fallback system ({reason})"

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def fallback(self, reason: FallbackReason | str, known_category_names: Sequence[str]) -> ClassificationResult:
        names = list(known_category_names) or list(DEFAULT_FALLBACK_CATEGORIES)
        reason_text = reason.value if isinstance(reason, FallbackReason) else reason

        return ClassificationResult(
            category=self._rng.choice(names),
            explanation=self.EXPLANATION_TEMPLATE.format(reason=reason_text),
            confidence=self._rng.randint(self.MIN_CONFIDENCE, self.MAX_CONFIDENCE),
            source=ClassificationSource.FALLBACK
        )


@dataclass(frozen=True)
class CategoryUpdateDecision:
    """Outcome of CategoryUpdatePolicy with the reason when the category is kept."""
    should_update: bool
    reason: Optional[str] = None


class CategoryUpdatePolicy:
    """
    Decides whether a suggested category may replace the ticket's category.

    A ticket that was classified before (non-empty explanation) and whose
    category differs from the suggestion is presumed to have been changed
    by a user, and keeps its category. Explanation and confidence are
    refreshed regardless.
    """

    REASON_NOT_FOUND = "category not found"
    REASON_MANUAL_OVERRIDE = "user has manually set category"

    def decide(self, ticket: Ticket, suggested_category: Optional[Category]) -> CategoryUpdateDecision:
        if suggested_category is None:
            return CategoryUpdateDecision(False, self.REASON_NOT_FOUND)

        if not ticket.category_id:
            return CategoryUpdateDecision(True)

        if not ticket.has_been_classified:
            return CategoryUpdateDecision(True)

        if ticket.category_id == suggested_category.id:
            return CategoryUpdateDecision(True)

        return CategoryUpdateDecision(False, self.REASON_MANUAL_OVERRIDE)

    def should_update_category(self, ticket: Ticket, suggested_category: Optional[Category]) -> bool:
        return self.decide(ticket, suggested_category).should_update
