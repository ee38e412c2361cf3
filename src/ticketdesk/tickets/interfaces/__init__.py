"""
Tickets Interfaces Layer
========================

Contains:
- Controllers: FastAPI route handlers
"""

from ticketdesk.tickets.interfaces.controllers import (
    tickets_router,
    categories_router,
    get_ticket_service
)

__all__ = ["tickets_router", "categories_router", "get_ticket_service"]
