"""
LLM Classification Backend
===========================

Adapts an `ILLMClient` chat completion to the classification backend port.
"""

import json
from typing import Optional

from ticketdesk.core import LLMException
from ticketdesk.infrastructure.llm import ILLMClient, JSON_OBJECT_FORMAT
from ticketdesk.classification.application import IClassificationBackend
from ticketdesk.classification.domain import (
    ClassificationRequest, BackendOutcome,
    BackendSuccess, BackendTransportError, BackendParseError
)


def _strip_code_fence(content: str) -> str:
    """Some models wrap JSON in markdown fences even when asked not to."""
    text = content.strip()
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if text.startswith("```"):
        return text.split("```")[1].split("```")[0].strip()
    return text


class LLMClassificationBackend(IClassificationBackend):
    """
    Classification backend backed by a chat completion model.

    With no client configured every call reports a transport error, so the
    engine degrades to fallback classification.
    """

    def __init__(self, llm_client: Optional[ILLMClient]):
        self._llm = llm_client

    async def classify(self, request: ClassificationRequest) -> BackendOutcome:
        if self._llm is None:
            return BackendTransportError("LLM client not configured")

        try:
            response = await self._llm.chat_completion(
                messages=request.messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                operation="classification",
                response_format=JSON_OBJECT_FORMAT,
                model=request.model
            )
        except LLMException as e:
            return BackendTransportError(e.message)
        except Exception as e:
            return BackendTransportError(f"Unexpected LLM client error: {type(e).__name__}: {e}")

        content = response.content or ""
        try:
            payload = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError as e:
            return BackendParseError(f"Invalid JSON response from LLM: {e}", raw_content=content)

        return BackendSuccess(payload)
