"""
Tickets Domain Layer
====================

Contains:
- Entities: Ticket, Category

This layer is framework-agnostic and contains pure business logic.
"""

from ticketdesk.tickets.domain.entities import Category, Ticket

__all__ = [
    "Category",
    "Ticket",
]
