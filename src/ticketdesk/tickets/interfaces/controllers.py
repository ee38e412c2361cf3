"""
Tickets Controllers (API Routes)
=================================

FastAPI routes for ticket CRUD, search and category listing.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.config import DEFAULT_PER_PAGE
from ticketdesk.core import ResourceNotFoundException, ValidationException
from ticketdesk.infrastructure.database import get_session
from ticketdesk.tickets.application import (
    TicketService,
    TicketCreateRequest, TicketUpdateRequest, TicketListQuery,
    TicketResponse, TicketListResponse, PaginationInfo,
    CategoryResponse, CategoryListResponse
)
from ticketdesk.tickets.application.dto import (
    TicketStatusStr, SortFieldStr, SortOrderStr
)
from ticketdesk.tickets.infrastructure import (
    SQLAlchemyTicketRepository,
    SQLAlchemyCategoryRepository
)
from ticketdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets", tags=["Tickets"])
category_router = APIRouter(prefix="/categories", tags=["Categories"])


# ========== Dependencies ==========

async def get_ticket_service(
    session: AsyncSession = Depends(get_session)
) -> TicketService:
    """Get ticket service bound to the request's session."""
    return TicketService(
        SQLAlchemyTicketRepository(session),
        SQLAlchemyCategoryRepository(session)
    )


# ========== Route Handlers ==========

@category_router.get(
    "",
    response_model=CategoryListResponse,
    summary="List categories with ticket counts"
)
async def list_categories(service: TicketService = Depends(get_ticket_service)):
    categories = await service.list_categories()
    return CategoryListResponse(
        data=[CategoryResponse.from_domain(category, count) for category, count in categories]
    )


@router.get(
    "",
    response_model=TicketListResponse,
    summary="List tickets",
    description="""
    Search (subject, body, explanation), filter and paginate tickets.

    `per_page` is capped at 100.
    """
)
async def list_tickets(
    search: Optional[str] = Query(None, description="Substring to search for"),
    status_filter: Optional[TicketStatusStr] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    min_confidence: Optional[int] = Query(None, ge=1, le=100),
    max_confidence: Optional[int] = Query(None, ge=1, le=100),
    created_by: Optional[str] = Query(None),
    sort_by: SortFieldStr = Query("created_at"),
    sort_order: SortOrderStr = Query("desc"),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1),
    service: TicketService = Depends(get_ticket_service)
):
    query = TicketListQuery(
        search=search,
        status=status_filter,
        category_id=category_id,
        min_confidence=min_confidence,
        max_confidence=max_confidence,
        created_by=created_by,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page
    )
    tickets, total, effective_per_page = await service.list_tickets(query)

    return TicketListResponse(
        data=[TicketResponse.from_domain(t) for t in tickets],
        pagination=PaginationInfo.build(page, effective_per_page, total, len(tickets))
    )


@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket"
)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketService = Depends(get_ticket_service)
):
    try:
        ticket = await service.create_ticket(payload)
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)

    logger.info("Ticket created", extra={"ticket_id": ticket.id})
    return TicketResponse.from_domain(ticket)


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket by ID"
)
async def get_ticket(
    ticket_id: str,
    service: TicketService = Depends(get_ticket_service)
):
    try:
        ticket = await service.get_ticket(ticket_id)
    except ResourceNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")

    return TicketResponse.from_domain(ticket)


@router.patch(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Update a ticket",
    description="Partial update; a manual category change here is what classification later preserves."
)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: TicketService = Depends(get_ticket_service)
):
    try:
        ticket = await service.update_ticket(ticket_id, payload)
    except ResourceNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    except ValidationException as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)

    logger.info(
        "Ticket updated",
        extra={"ticket_id": ticket.id, "fields": sorted(payload.model_fields_set)}
    )
    return TicketResponse.from_domain(ticket)


# Export routers for inclusion in main app
tickets_router = router
categories_router = category_router
