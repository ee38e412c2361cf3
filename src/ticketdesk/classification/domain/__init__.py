"""
Classification Domain Layer
===========================

Contains:
- Entities / Value Objects: ClassificationResult, ClassificationRequest,
  RateLimitPolicy, RateLimitStatus, backend outcomes, ClassificationPromptBuilder
- Policies: ResponseValidator, FallbackClassifier, CategoryUpdatePolicy

This layer is framework-agnostic and contains pure business logic.
"""

from ticketdesk.classification.domain.entities import (
    ClassificationResult,
    ClassificationSource,
    FallbackReason,
    RateLimitPolicy,
    RateLimitStatus,
    ClassificationRequest,
    BackendSuccess,
    BackendTransportError,
    BackendParseError,
    BackendOutcome,
    ClassificationPromptBuilder,
)
from ticketdesk.classification.domain.policies import (
    ResponseValidator,
    FallbackClassifier,
    CategoryUpdatePolicy,
    CategoryUpdateDecision,
)

__all__ = [
    "ClassificationResult",
    "ClassificationSource",
    "FallbackReason",
    "RateLimitPolicy",
    "RateLimitStatus",
    "ClassificationRequest",
    "BackendSuccess",
    "BackendTransportError",
    "BackendParseError",
    "BackendOutcome",
    "ClassificationPromptBuilder",
    "ResponseValidator",
    "FallbackClassifier",
    "CategoryUpdatePolicy",
    "CategoryUpdateDecision",
]
