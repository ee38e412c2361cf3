"""
Classification Application Services
====================================

Orchestrates ticket classification:

- ClassificationEngine decides whether to call the backend, enforces the
  rate limit, validates the answer and falls back on any soft failure.
- TicketUpdateApplier writes a result onto a ticket, protecting manual
  category overrides.
- TicketClassificationService is the classify-by-id use case.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ticketdesk.config import Settings
from ticketdesk.core import RateLimitExceededException, ResourceNotFoundException
from ticketdesk.shared.infrastructure.logging import get_logger, log_latency
from ticketdesk.tickets.application import ITicketRepository, ICategoryRepository
from ticketdesk.tickets.domain import Ticket
from ticketdesk.classification.domain import (
    ClassificationResult, ClassificationSource, FallbackReason,
    ClassificationRequest, ClassificationPromptBuilder,
    RateLimitPolicy, RateLimitStatus,
    BackendOutcome, BackendSuccess, BackendTransportError,
    ResponseValidator, FallbackClassifier, CategoryUpdatePolicy,
)


# ========== Ports ==========

class IRateLimiter(ABC):
    """Fixed-window call counter keyed by name."""

    @abstractmethod
    def allow(self, key: str, max_calls: int, window_seconds: int) -> bool:
        """Record one call if the window has room; check and increment are atomic."""

    @abstractmethod
    def status(self, key: str, max_calls: int, window_seconds: int) -> RateLimitStatus:
        """Report the window without recording a call."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Forget the window for `key`."""


class IClassificationBackend(ABC):
    """External classifier. Failures are returned as outcomes, not raised."""

    @abstractmethod
    async def classify(self, request: ClassificationRequest) -> BackendOutcome:
        """Run one classification request."""


# ========== Configuration ==========

@dataclass(frozen=True)
class ClassifierOptions:
    """Static knobs of the classification engine."""
    enabled: bool
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float
    rate_limit: RateLimitPolicy

    @classmethod
    def from_settings(cls, config: Settings) -> "ClassifierOptions":
        return cls(
            enabled=config.classify_enabled,
            model=config.llm_model,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            timeout_seconds=config.llm_timeout_seconds,
            rate_limit=RateLimitPolicy(
                key=config.rate_limit_key,
                max_calls=config.rate_limit_max_calls,
                window_seconds=config.rate_limit_window_seconds
            )
        )


# ========== Application Services ==========

class ClassificationEngine:
    """
    Decides how a ticket gets classified.

    `classify` only raises RateLimitExceededException; every other path
    returns a valid ClassificationResult.
    """

    def __init__(
        self,
        backend: IClassificationBackend,
        rate_limiter: IRateLimiter,
        options: ClassifierOptions,
        fallback: Optional[FallbackClassifier] = None,
        validator: Optional[ResponseValidator] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._backend = backend
        self._rate_limiter = rate_limiter
        self._options = options
        self._fallback = fallback or FallbackClassifier()
        self._validator = validator or ResponseValidator()
        self._logger = logger or get_logger(__name__)

    @property
    def enabled(self) -> bool:
        return self._options.enabled

    def rate_limit_status(self) -> RateLimitStatus:
        """Current state of the classification call budget."""
        policy = self._options.rate_limit
        return self._rate_limiter.status(policy.key, policy.max_calls, policy.window_seconds)

    async def classify(self, ticket: Ticket, vocabulary: Sequence[str]) -> ClassificationResult:
        """
        Classify a ticket against a snapshot of the category vocabulary.

        Args:
            ticket: Ticket to classify
            vocabulary: Category names valid for this call

        Returns:
            ClassificationResult from the backend, or a fallback result

        Raises:
            RateLimitExceededException: The call budget for this window is spent
        """
        names: List[str] = list(vocabulary)

        if not self._options.enabled:
            return self._use_fallback(ticket, FallbackReason.DISABLED, names)

        policy = self._options.rate_limit
        if not self._rate_limiter.allow(policy.key, policy.max_calls, policy.window_seconds):
            status = self.rate_limit_status()
            self._logger.warning(
                "Classification rate limit exceeded",
                extra={
                    "ticket_id": ticket.id,
                    "rate_limit_key": policy.key,
                    "available_in_seconds": status.available_in_seconds
                }
            )
            raise RateLimitExceededException(policy.key, status.available_in_seconds)

        outcome = await self._invoke_backend(self._build_request(ticket, names))

        if not isinstance(outcome, BackendSuccess):
            self._logger.error(
                "LLM classification failed",
                extra={"ticket_id": ticket.id, "error": outcome.message}
            )
            return self._use_fallback(ticket, FallbackReason.UPSTREAM_ERROR, names)

        if not self._validator.validate(outcome.payload, names):
            self._logger.warning(
                "Invalid LLM classification response",
                extra={"ticket_id": ticket.id, "response": outcome.payload}
            )
            return self._use_fallback(ticket, FallbackReason.INVALID_RESPONSE, names)

        result = ClassificationResult(
            category=outcome.payload["category"],
            explanation=outcome.payload["explanation"],
            confidence=outcome.payload["confidence"],
            source=ClassificationSource.LLM
        )
        self._logger.info(
            "Ticket classified successfully with LLM",
            extra={"ticket_id": ticket.id, "category": result.category, "confidence": result.confidence}
        )
        return result

    def _build_request(self, ticket: Ticket, names: List[str]) -> ClassificationRequest:
        return ClassificationRequest(
            ticket_id=ticket.id,
            system_prompt=ClassificationPromptBuilder.build_system_prompt(names),
            user_prompt=ClassificationPromptBuilder.build_prompt(ticket.subject, ticket.body, ticket.status),
            model=self._options.model,
            temperature=self._options.temperature,
            max_tokens=self._options.max_tokens
        )

    async def _invoke_backend(self, request: ClassificationRequest) -> BackendOutcome:
        timeout = self._options.timeout_seconds
        try:
            with log_latency(self._logger, "llm_classification", ticket_id=request.ticket_id):
                return await asyncio.wait_for(self._backend.classify(request), timeout=timeout)
        except asyncio.TimeoutError:
            return BackendTransportError(f"Classification timed out after {timeout}s")
        except Exception as e:
            return BackendTransportError(f"Classification backend failed: {type(e).__name__}: {e}")

    def _use_fallback(self, ticket: Ticket, reason: FallbackReason, names: List[str]) -> ClassificationResult:
        result = self._fallback.fallback(reason, names)
        self._logger.info(
            "Using fallback classification",
            extra={
                "ticket_id": ticket.id,
                "reason": reason.value,
                "category": result.category,
                "confidence": result.confidence
            }
        )
        return result


class TicketUpdateApplier:
    """
    Applies a classification result to a ticket.

    Explanation and confidence are always written; the category only when
    CategoryUpdatePolicy allows it.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        category_repository: ICategoryRepository,
        policy: Optional[CategoryUpdatePolicy] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._tickets = ticket_repository
        self._categories = category_repository
        self._policy = policy or CategoryUpdatePolicy()
        self._logger = logger or get_logger(__name__)

    async def apply(self, ticket: Ticket, result: ClassificationResult) -> Ticket:
        # The vocabulary may have changed since classification; a missing
        # category counts as no suggestion.
        suggested = await self._categories.get_by_name(result.category)
        decision = self._policy.decide(ticket, suggested)

        updated = await self._tickets.update_classification(
            ticket.id,
            explanation=result.explanation,
            confidence=result.confidence,
            category_id=suggested.id if decision.should_update else None
        )

        if decision.should_update:
            self._logger.info(
                "Applied full classification to ticket",
                extra={
                    "ticket_id": ticket.id,
                    "category": result.category,
                    "confidence": result.confidence,
                    "category_updated": True,
                    "source": result.source.value
                }
            )
        else:
            self._logger.info(
                "Applied partial classification to ticket",
                extra={
                    "ticket_id": ticket.id,
                    "suggested_category": result.category,
                    "confidence": result.confidence,
                    "category_updated": False,
                    "reason": decision.reason,
                    "source": result.source.value
                }
            )

        return updated


@dataclass(frozen=True)
class TicketClassification:
    """What the classify use case hands back to the caller."""
    ticket: Ticket
    result: ClassificationResult
    rate_limit_status: RateLimitStatus


class TicketClassificationService:
    """
    Classify a stored ticket by ID and persist the outcome.
    """

    def __init__(
        self,
        engine: ClassificationEngine,
        ticket_repository: ITicketRepository,
        category_repository: ICategoryRepository,
        applier: Optional[TicketUpdateApplier] = None
    ):
        self._engine = engine
        self._tickets = ticket_repository
        self._categories = category_repository
        self._applier = applier or TicketUpdateApplier(ticket_repository, category_repository)

    @property
    def enabled(self) -> bool:
        return self._engine.enabled

    def rate_limit_status(self) -> RateLimitStatus:
        return self._engine.rate_limit_status()

    async def classify_ticket(self, ticket_id: str) -> TicketClassification:
        """
        Classify a ticket and apply the result.

        The reported rate limit status is taken before the call.

        Raises:
            ResourceNotFoundException: Ticket does not exist
            RateLimitExceededException: Call budget spent for this window
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        rate_limit_status = self._engine.rate_limit_status()
        vocabulary = await self._categories.list_names()

        result = await self._engine.classify(ticket, vocabulary)
        updated = await self._applier.apply(ticket, result)

        return TicketClassification(ticket=updated, result=result, rate_limit_status=rate_limit_status)
