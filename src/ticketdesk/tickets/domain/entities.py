"""
Ticket Domain Entities
======================

Pure Python business objects for support tickets and their categories.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ticketdesk.config import VALID_STATUSES


@dataclass
class Category:
    """A named bucket tickets are classified into."""
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Ticket:
    """
    Support ticket.

    `explanation` and `confidence` come from the latest automatic
    classification; a ticket without an explanation has never been
    classified.
    """
    id: str
    subject: str
    body: str
    status: str
    category_id: Optional[str] = None
    category: Optional[Category] = None
    explanation: Optional[str] = None
    confidence: Optional[int] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate ticket invariants."""
        if self.status not in VALID_STATUSES:
            raise ValueError(f"Invalid ticket status: {self.status}")
        if self.confidence is not None and not 1 <= self.confidence <= 100:
            raise ValueError("Confidence must be between 1 and 100")

    @property
    def has_been_classified(self) -> bool:
        """Whether an automatic classification was ever applied."""
        return bool(self.explanation)
