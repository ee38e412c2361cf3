"""
Classification Application Layer
=================================

Contains:
- Services: ClassificationEngine, TicketUpdateApplier, TicketClassificationService
- Ports: IRateLimiter, IClassificationBackend
- DTOs: Data transfer objects for API serialization
"""

from ticketdesk.classification.application.dto import (
    ClassificationInfo,
    RateLimitStatusResponse,
    ClassifyResponse,
    ClassifyStatusResponse,
)
from ticketdesk.classification.application.services import (
    ClassificationEngine,
    ClassifierOptions,
    TicketUpdateApplier,
    TicketClassification,
    TicketClassificationService,
    IRateLimiter,
    IClassificationBackend,
)

__all__ = [
    # DTOs
    "ClassificationInfo",
    "RateLimitStatusResponse",
    "ClassifyResponse",
    "ClassifyStatusResponse",
    # Services
    "ClassificationEngine",
    "ClassifierOptions",
    "TicketUpdateApplier",
    "TicketClassification",
    "TicketClassificationService",
    # Ports
    "IRateLimiter",
    "IClassificationBackend",
]
