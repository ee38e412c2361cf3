"""
Tickets Infrastructure Layer
============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from ticketdesk.tickets.infrastructure.models import TicketModel, CategoryModel
from ticketdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyCategoryRepository
)

__all__ = [
    "TicketModel",
    "CategoryModel",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyCategoryRepository",
]
