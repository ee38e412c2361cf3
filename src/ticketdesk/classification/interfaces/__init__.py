"""
Classification Interfaces Layer
===============================

Contains:
- Controllers: FastAPI route handlers
"""

from ticketdesk.classification.interfaces.controllers import (
    classification_router,
    get_classification_engine
)

__all__ = ["classification_router", "get_classification_engine"]
