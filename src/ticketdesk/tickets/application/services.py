"""
Tickets Application Services
=============================

Repository interfaces and the CRUD use cases for tickets and categories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ticketdesk.config import MAX_PER_PAGE
from ticketdesk.core import ResourceNotFoundException, ValidationException
from ticketdesk.tickets.domain import Category, Ticket
from ticketdesk.tickets.application.dto import (
    TicketCreateRequest, TicketUpdateRequest, TicketListQuery
)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID, with its category loaded."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 15,
        offset: int = 0
    ) -> Tuple[List[Ticket], int]:
        """List tickets matching filters; returns the page and the total count."""

    @abstractmethod
    async def create(self, fields: dict) -> Ticket:
        """Create new ticket."""

    @abstractmethod
    async def update(self, ticket_id: str, fields: dict) -> Ticket:
        """Apply a partial update to an existing ticket."""

    @abstractmethod
    async def update_classification(
        self,
        ticket_id: str,
        explanation: str,
        confidence: int,
        category_id: Optional[str] = None
    ) -> Ticket:
        """
        Write classification fields in a single update.

        The category is left untouched when `category_id` is None.
        """


class ICategoryRepository(ABC):
    """Interface for category data access."""

    @abstractmethod
    async def list_names(self) -> List[str]:
        """Names of all categories."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by exact (case-sensitive) name."""

    @abstractmethod
    async def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""

    @abstractmethod
    async def list_with_ticket_counts(self) -> List[Tuple[Category, int]]:
        """All categories with the number of tickets in each."""

    @abstractmethod
    async def create(self, name: str) -> Category:
        """Create new category."""


# ========== Application Services ==========

class TicketService:
    """
    Service for ticket and category CRUD.

    Validates references before handing writes to the repositories.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        category_repository: ICategoryRepository
    ):
        self._tickets = ticket_repository
        self._categories = category_repository

    async def list_tickets(self, query: TicketListQuery) -> Tuple[List[Ticket], int, int]:
        """
        List tickets with search, filters, sorting and pagination.

        Returns:
            Tuple of (tickets, total, effective per_page)
        """
        per_page = min(query.per_page, MAX_PER_PAGE)
        tickets, total = await self._tickets.list(
            query.filters(),
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            limit=per_page,
            offset=(query.page - 1) * per_page
        )
        return tickets, total, per_page

    async def get_ticket(self, ticket_id: str) -> Ticket:
        """
        Get a ticket by ID.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def create_ticket(self, payload: TicketCreateRequest) -> Ticket:
        """Create a ticket after checking its category reference."""
        fields = payload.model_dump()
        await self._ensure_category_exists(fields.get("category_id"))
        return await self._tickets.create(fields)

    async def update_ticket(self, ticket_id: str, payload: TicketUpdateRequest) -> Ticket:
        """Apply only the fields present in the payload."""
        await self.get_ticket(ticket_id)

        fields = payload.model_dump(exclude_unset=True)
        if "category_id" in fields:
            await self._ensure_category_exists(fields["category_id"])

        return await self._tickets.update(ticket_id, fields)

    async def list_categories(self) -> List[Tuple[Category, int]]:
        """Categories with ticket counts."""
        return await self._categories.list_with_ticket_counts()

    async def _ensure_category_exists(self, category_id: Optional[str]) -> None:
        if category_id is None:
            return
        if await self._categories.get_by_id(category_id) is None:
            raise ValidationException(
                "The selected category_id is invalid.",
                {"category_id": category_id}
            )
