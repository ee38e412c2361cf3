"""
Classification Application DTOs
================================

Pydantic models for the classification endpoints.
"""

from pydantic import BaseModel, Field

from ticketdesk.tickets.application import TicketResponse
from ticketdesk.classification.domain import ClassificationResult, RateLimitStatus


class ClassificationInfo(BaseModel):
    """Classification result information."""
    category: str
    explanation: str
    confidence: int = Field(..., ge=1, le=100)

    @classmethod
    def from_domain(cls, result: ClassificationResult) -> "ClassificationInfo":
        return cls(**result.to_dict())


class RateLimitStatusResponse(BaseModel):
    """Classification call budget for the current window."""
    calls_made: int
    max_calls: int
    remaining_calls: int
    window_seconds: int
    available_in_seconds: int = Field(..., description="Seconds until the window resets (0 if none is active)")

    @classmethod
    def from_domain(cls, status: RateLimitStatus) -> "RateLimitStatusResponse":
        return cls(
            calls_made=status.calls_made,
            max_calls=status.max_calls,
            remaining_calls=status.remaining_calls,
            window_seconds=status.window_seconds,
            available_in_seconds=status.available_in_seconds
        )


class ClassifyResponse(BaseModel):
    """Response model for ticket classification."""
    ticket: TicketResponse
    classification: ClassificationInfo
    rate_limit_status: RateLimitStatusResponse
    classification_enabled: bool


class ClassifyStatusResponse(BaseModel):
    """Response model for the classification status endpoint."""
    rate_limit_status: RateLimitStatusResponse
    classification_enabled: bool
