"""
Tickets Application DTOs
=========================

Pydantic models for request/response validation of the ticket and
category endpoints.
"""

import math
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticketdesk.config import DEFAULT_PER_PAGE
from ticketdesk.tickets.domain import Category, Ticket


# ========== Type Aliases for Literals ==========
TicketStatusStr = Literal["open", "in_progress", "resolved", "closed"]
SortFieldStr = Literal["created_at", "updated_at", "subject", "status", "confidence"]
SortOrderStr = Literal["asc", "desc"]


# ========== Request DTOs ==========

class TicketCreateRequest(BaseModel):
    """Request model for creating a ticket."""
    category_id: Optional[str] = Field(None, description="Category ID")
    subject: str = Field(..., min_length=1, max_length=255, description="Ticket subject")
    body: str = Field(..., min_length=1, description="Ticket body")
    status: TicketStatusStr = Field(..., description="Ticket status")
    explanation: Optional[str] = Field(None, max_length=255)
    confidence: Optional[int] = Field(None, ge=1, le=100)
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class TicketUpdateRequest(BaseModel):
    """
    Request model for partial ticket updates (PATCH).

    Only fields present in the payload are applied; subject, body and
    status may be omitted but not nulled.
    """
    category_id: Optional[str] = None
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    body: Optional[str] = Field(None, min_length=1)
    status: Optional[TicketStatusStr] = None
    explanation: Optional[str] = Field(None, max_length=255)
    confidence: Optional[int] = Field(None, ge=1, le=100)
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @field_validator("subject", "body", "status")
    @classmethod
    def reject_null(cls, v):
        """Required fields can be left out of a PATCH but not cleared."""
        if v is None:
            raise ValueError("field cannot be null")
        return v


class TicketListQuery(BaseModel):
    """Query parameters for the ticket list endpoint."""
    search: Optional[str] = None
    status: Optional[TicketStatusStr] = None
    category_id: Optional[str] = None
    min_confidence: Optional[int] = Field(None, ge=1, le=100)
    max_confidence: Optional[int] = Field(None, ge=1, le=100)
    created_by: Optional[str] = None
    sort_by: SortFieldStr = "created_at"
    sort_order: SortOrderStr = "desc"
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1)

    def filters(self) -> dict:
        """Filters that were actually supplied."""
        keys = ("search", "status", "category_id", "min_confidence", "max_confidence", "created_by")
        return {key: getattr(self, key) for key in keys if getattr(self, key) is not None}


# ========== Response DTOs ==========

class CategoryInfo(BaseModel):
    """Category embedded in ticket responses."""
    id: str
    name: str


class CategoryResponse(BaseModel):
    """Category with the number of tickets filed under it."""
    id: str
    name: str
    tickets_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, category: Category, tickets_count: int) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            tickets_count=tickets_count,
            created_at=category.created_at,
            updated_at=category.updated_at
        )


class CategoryListResponse(BaseModel):
    data: List[CategoryResponse]


class TicketResponse(BaseModel):
    """Response model for a single ticket."""
    id: str
    category_id: Optional[str]
    category: Optional[CategoryInfo]
    subject: str
    body: str
    status: TicketStatusStr
    explanation: Optional[str]
    confidence: Optional[int]
    created_by: Optional[str]
    updated_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketResponse":
        """Create from domain entity."""
        category = None
        if ticket.category is not None:
            category = CategoryInfo(id=ticket.category.id, name=ticket.category.name)
        return cls(
            id=ticket.id,
            category_id=ticket.category_id,
            category=category,
            subject=ticket.subject,
            body=ticket.body,
            status=ticket.status,
            explanation=ticket.explanation,
            confidence=ticket.confidence,
            created_by=ticket.created_by,
            updated_by=ticket.updated_by,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at
        )


class PaginationInfo(BaseModel):
    """Pagination metadata for list responses."""
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None

    @classmethod
    def build(cls, page: int, per_page: int, total: int, count: int) -> "PaginationInfo":
        first = (page - 1) * per_page + 1 if count else None
        return cls(
            current_page=page,
            last_page=max(math.ceil(total / per_page), 1),
            per_page=per_page,
            total=total,
            from_=first,
            to=first + count - 1 if first is not None else None
        )


class TicketListResponse(BaseModel):
    """Paginated ticket list."""
    data: List[TicketResponse]
    pagination: PaginationInfo
