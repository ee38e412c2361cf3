"""
Tickets Application Layer
==========================

Contains:
- Services: Ticket CRUD orchestration
- Repository interfaces used by this and the classification module
- DTOs: Data transfer objects for API serialization
"""

from ticketdesk.tickets.application.dto import (
    TicketCreateRequest,
    TicketUpdateRequest,
    TicketListQuery,
    TicketResponse,
    TicketListResponse,
    PaginationInfo,
    CategoryInfo,
    CategoryResponse,
    CategoryListResponse,
)
from ticketdesk.tickets.application.services import (
    TicketService,
    ITicketRepository,
    ICategoryRepository,
)

__all__ = [
    # DTOs
    "TicketCreateRequest",
    "TicketUpdateRequest",
    "TicketListQuery",
    "TicketResponse",
    "TicketListResponse",
    "PaginationInfo",
    "CategoryInfo",
    "CategoryResponse",
    "CategoryListResponse",
    # Services
    "TicketService",
    # Repository Interfaces
    "ITicketRepository",
    "ICategoryRepository",
]
