"""
Tickets Infrastructure Repositories
=====================================

Concrete implementations of repository interfaces using SQLAlchemy.

Repositories return domain entities; ORM models never leave this layer.
"""

from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ticketdesk.core import RepositoryException
from ticketdesk.tickets.application import ITicketRepository, ICategoryRepository
from ticketdesk.tickets.domain import Category, Ticket
from ticketdesk.tickets.infrastructure.models import TicketModel, CategoryModel


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _category_to_domain(model: CategoryModel) -> Category:
    return Category(
        id=str(model.id),
        name=model.name,
        created_at=model.created_at,
        updated_at=model.updated_at
    )


def _ticket_to_domain(model: TicketModel) -> Ticket:
    return Ticket(
        id=str(model.id),
        subject=model.subject,
        body=model.body,
        status=model.status,
        category_id=str(model.category_id) if model.category_id else None,
        category=_category_to_domain(model.category) if model.category else None,
        explanation=model.explanation,
        confidence=model.confidence,
        created_by=model.created_by,
        updated_by=model.updated_by,
        created_at=model.created_at,
        updated_at=model.updated_at
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, ticket_id: str) -> Optional[TicketModel]:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        stmt = (
            select(TicketModel)
            .options(selectinload(TicketModel.category))
            .where(TicketModel.id == ticket_uuid)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID; malformed IDs are treated as absent."""
        model = await self._get_model(ticket_id)
        return _ticket_to_domain(model) if model else None

    async def list(
        self,
        filters: dict,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 15,
        offset: int = 0
    ) -> Tuple[List[Ticket], int]:
        """List tickets with filters."""
        conditions = []

        if "search" in filters:
            pattern = f"%{filters['search']}%"
            conditions.append(or_(
                TicketModel.subject.ilike(pattern),
                TicketModel.body.ilike(pattern),
                TicketModel.explanation.ilike(pattern)
            ))

        if "status" in filters:
            conditions.append(TicketModel.status == filters["status"])

        if "category_id" in filters:
            category_uuid = _parse_uuid(filters["category_id"])
            if category_uuid is None:
                return [], 0
            conditions.append(TicketModel.category_id == category_uuid)

        if "min_confidence" in filters:
            conditions.append(TicketModel.confidence >= filters["min_confidence"])

        if "max_confidence" in filters:
            conditions.append(TicketModel.confidence <= filters["max_confidence"])

        if "created_by" in filters:
            conditions.append(TicketModel.created_by == filters["created_by"])

        count_stmt = select(func.count(TicketModel.id)).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        direction = desc if sort_order == "desc" else asc
        stmt = (
            select(TicketModel)
            .options(selectinload(TicketModel.category))
            .where(*conditions)
            .order_by(direction(getattr(TicketModel, sort_by)), direction(TicketModel.id))
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [_ticket_to_domain(m) for m in result.scalars().all()], total

    async def create(self, fields: dict) -> Ticket:
        """Create new ticket."""
        values = dict(fields)
        values["category_id"] = _parse_uuid(values.get("category_id"))

        model = TicketModel(id=uuid4(), **values)
        self._session.add(model)
        await self._session.flush()

        return await self.get_by_id(str(model.id))

    async def update(self, ticket_id: str, fields: dict) -> Ticket:
        """Apply a partial update to an existing ticket."""
        model = await self._get_model(ticket_id)
        if model is None:
            raise RepositoryException(f"Ticket {ticket_id} not found")

        for key, value in fields.items():
            if key == "category_id":
                value = _parse_uuid(value)
            setattr(model, key, value)

        await self._session.flush()
        return await self.get_by_id(ticket_id)

    async def update_classification(
        self,
        ticket_id: str,
        explanation: str,
        confidence: int,
        category_id: Optional[str] = None
    ) -> Ticket:
        """Write explanation, confidence and (optionally) category in one flush."""
        fields = {"explanation": explanation, "confidence": confidence}
        if category_id is not None:
            fields["category_id"] = category_id
        return await self.update(ticket_id, fields)


class SQLAlchemyCategoryRepository(ICategoryRepository):
    """SQLAlchemy implementation of category repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_names(self) -> List[str]:
        """Names of all categories."""
        result = await self._session.execute(select(CategoryModel.name).order_by(CategoryModel.name))
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by exact name."""
        result = await self._session.execute(select(CategoryModel).where(CategoryModel.name == name))
        model = result.scalar_one_or_none()
        # Collations can be case-insensitive; the vocabulary is not
        if model is None or model.name != name:
            return None
        return _category_to_domain(model)

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        category_uuid = _parse_uuid(category_id)
        if category_uuid is None:
            return None
        model = await self._session.get(CategoryModel, category_uuid)
        return _category_to_domain(model) if model else None

    async def list_with_ticket_counts(self) -> List[Tuple[Category, int]]:
        """All categories with their ticket counts."""
        stmt = (
            select(CategoryModel, func.count(TicketModel.id))
            .outerjoin(TicketModel, TicketModel.category_id == CategoryModel.id)
            .group_by(CategoryModel.id)
            .order_by(CategoryModel.name)
        )
        result = await self._session.execute(stmt)
        return [(_category_to_domain(model), count) for model, count in result.all()]

    async def create(self, name: str) -> Category:
        """Create new category."""
        model = CategoryModel(id=uuid4(), name=name)
        self._session.add(model)
        await self._session.flush()
        return _category_to_domain(model)
