"""
Classification Domain Entities
==============================

Value objects exchanged between the classification engine, its backend
and the rate limiter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union


class ClassificationSource(str, Enum):
    """Where a classification came from. Logged, never persisted."""
    LLM = "llm"
    FALLBACK = "fallback"


class FallbackReason(str, Enum):
    """Why the fallback classifier was used; embedded in the explanation."""
    DISABLED = "feature disabled"
    INVALID_RESPONSE = "invalid response"
    UPSTREAM_ERROR = "upstream error"


@dataclass(frozen=True)
class ClassificationResult:
    """
    Result of ticket classification.

    `category` is a category name from the vocabulary the result was
    produced against.
    """
    category: str
    explanation: str
    confidence: int  # 1 to 100
    source: ClassificationSource = ClassificationSource.LLM

    def __post_init__(self):
        """Validate classification result."""
        if not 1 <= self.confidence <= 100:
            raise ValueError("Confidence must be between 1 and 100")
        if not self.explanation.strip():
            raise ValueError("Explanation must not be empty")

    @property
    def is_fallback(self) -> bool:
        return self.source is ClassificationSource.FALLBACK

    def to_dict(self) -> dict:
        """The caller-facing shape; the source is intentionally omitted."""
        return {
            "category": self.category,
            "explanation": self.explanation,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class RateLimitPolicy:
    """Budget of backend calls: `max_calls` per fixed window, counted under `key`."""
    key: str
    max_calls: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitStatus:
    """Snapshot of a rate limit window."""
    calls_made: int
    max_calls: int
    remaining_calls: int
    window_seconds: int
    available_in_seconds: int


@dataclass(frozen=True)
class ClassificationRequest:
    """Everything the backend needs for one classification call."""
    ticket_id: str
    system_prompt: str
    user_prompt: str
    model: str
    temperature: float
    max_tokens: int

    @property
    def messages(self) -> List[dict]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


# ========== Backend outcomes ==========

@dataclass(frozen=True)
class BackendSuccess:
    """The backend answered with a decoded JSON value (not yet validated)."""
    payload: Any


@dataclass(frozen=True)
class BackendTransportError:
    """The call did not complete: network, provider or timeout failure."""
    message: str


@dataclass(frozen=True)
class BackendParseError:
    """The call completed but the answer was not JSON."""
    message: str
    raw_content: Optional[str] = field(default=None)


BackendOutcome = Union[BackendSuccess, BackendTransportError, BackendParseError]


class ClassificationPromptBuilder:
    """
    Builds prompts for ticket classification.

    The category vocabulary is passed in for every call since categories
    can change at runtime.
    """

    SYSTEM_PROMPT_TEMPLATE = """You are a support ticket classification system. Analyze the provided ticket and classify it into one of the available categories.

Available categories: {categories}

You must respond ONLY with a valid JSON object containing exactly these keys:
- category: string (must be one of the available categories)
- explanation: string (brief explanation of why this category was chosen, max 100 characters)
- confidence: integer (confidence score from 1-100)

Example response:
{{"category":"Technical Support","explanation":"User experiencing login issues with the application","confidence":85}}

Do not include any other text outside the JSON object."""

    @classmethod
    def build_system_prompt(cls, categories: List[str]) -> str:
        """System prompt naming the allowed categories."""
        return cls.SYSTEM_PROMPT_TEMPLATE.format(categories=", ".join(categories))

    @classmethod
    def build_prompt(cls, subject: str, body: str, status: str) -> str:
        """Build classification prompt from ticket content."""
        return f"Ticket Subject: {subject}\n\nTicket Body: {body}\n\nCurrent Status: {status}"
