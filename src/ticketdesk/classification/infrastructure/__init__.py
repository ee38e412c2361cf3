"""
Classification Infrastructure Layer
====================================

Contains:
- InMemoryRateLimiter: process-wide fixed-window limiter
- LLMClassificationBackend: chat completion adapter for the backend port
"""

from ticketdesk.classification.infrastructure.rate_limiter import InMemoryRateLimiter
from ticketdesk.classification.infrastructure.backend import LLMClassificationBackend

__all__ = [
    "InMemoryRateLimiter",
    "LLMClassificationBackend",
]
