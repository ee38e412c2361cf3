"""
Classification Controllers (API Routes)
========================================

FastAPI routes for classifying tickets and inspecting the call budget.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core import RateLimitExceededException, ResourceNotFoundException
from ticketdesk.infrastructure.database import get_session
from ticketdesk.tickets.application import TicketResponse
from ticketdesk.tickets.infrastructure import (
    SQLAlchemyTicketRepository,
    SQLAlchemyCategoryRepository
)
from ticketdesk.classification.application import (
    ClassificationEngine,
    TicketClassificationService,
    ClassificationInfo,
    RateLimitStatusResponse,
    ClassifyResponse,
    ClassifyStatusResponse,
)
from ticketdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets", tags=["Ticket Classification"])


CLASSIFY_RESPONSE_EXAMPLE = {
    "ticket": {
        "id": "123e4567-e89b-12d3-a456-426614174000",
        "category_id": "0b6f1c1e-5d7a-4b8e-9c3f-2a1d4e5f6a7b",
        "category": {"id": "0b6f1c1e-5d7a-4b8e-9c3f-2a1d4e5f6a7b", "name": "Technical Support"},
        "subject": "Cannot log in",
        "body": "The login page keeps rejecting my password since this morning.",
        "status": "open",
        "explanation": "User experiencing login issues with the application",
        "confidence": 85,
        "created_by": None,
        "updated_by": None,
        "created_at": "2025-08-29T10:00:00Z",
        "updated_at": "2025-08-29T10:05:00Z"
    },
    "classification": {
        "category": "Technical Support",
        "explanation": "User experiencing login issues with the application",
        "confidence": 85
    },
    "rate_limit_status": {
        "calls_made": 3,
        "max_calls": 10,
        "remaining_calls": 7,
        "window_seconds": 60,
        "available_in_seconds": 42
    },
    "classification_enabled": True
}


# ========== Dependencies ==========

def get_classification_engine(request: Request) -> ClassificationEngine:
    """Process-wide engine created at startup (shares the rate limiter)."""
    engine = getattr(request.app.state, "classification_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Classification service not initialized"
        )
    return engine


async def get_classification_service(
    engine: ClassificationEngine = Depends(get_classification_engine),
    session: AsyncSession = Depends(get_session)
) -> TicketClassificationService:
    """Get classification service bound to the request's session."""
    return TicketClassificationService(
        engine,
        SQLAlchemyTicketRepository(session),
        SQLAlchemyCategoryRepository(session)
    )


# ========== Route Handlers ==========

@router.get(
    "/classify/status",
    response_model=ClassifyStatusResponse,
    summary="Classification rate limit status"
)
async def classify_status(engine: ClassificationEngine = Depends(get_classification_engine)):
    return ClassifyStatusResponse(
        rate_limit_status=RateLimitStatusResponse.from_domain(engine.rate_limit_status()),
        classification_enabled=engine.enabled
    )


@router.post(
    "/{ticket_id}/classify",
    response_model=ClassifyResponse,
    summary="Classify a ticket",
    description="""
    Assign a category, explanation and confidence to a ticket.

    When LLM classification is disabled, or the provider fails or answers
    with an invalid payload, a fallback classification is used instead.
    A category the user changed after an earlier classification is kept;
    explanation and confidence are always refreshed.

    Returns **429** with a `Retry-After` header when the call budget is spent.
    """,
    responses={
        200: {
            "description": "Ticket classified",
            "content": {"application/json": {"example": CLASSIFY_RESPONSE_EXAMPLE}}
        },
        404: {"description": "Ticket not found"},
        429: {"description": "Rate limit exceeded"}
    }
)
async def classify_ticket(
    request: Request,
    ticket_id: str,
    service: TicketClassificationService = Depends(get_classification_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    try:
        outcome = await service.classify_ticket(ticket_id)
    except ResourceNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    except RateLimitExceededException as e:
        logger.warning(
            "Classification rejected by rate limit",
            extra={"correlation_id": correlation_id, "ticket_id": ticket_id}
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": e.message,
                "rate_limit_status": RateLimitStatusResponse.from_domain(
                    service.rate_limit_status()
                ).model_dump()
            },
            headers={"Retry-After": str(e.available_in_seconds)}
        )

    logger.info(
        "Ticket classification applied",
        extra={
            "correlation_id": correlation_id,
            "ticket_id": ticket_id,
            "category": outcome.result.category,
            "fallback": outcome.result.is_fallback
        }
    )

    return ClassifyResponse(
        ticket=TicketResponse.from_domain(outcome.ticket),
        classification=ClassificationInfo.from_domain(outcome.result),
        rate_limit_status=RateLimitStatusResponse.from_domain(outcome.rate_limit_status),
        classification_enabled=service.enabled
    )


# Export router for inclusion in main app
classification_router = router
