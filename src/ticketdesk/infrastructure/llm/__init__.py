"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (OpenAI, Groq, Z.AI) providing a clean interface
for chat completions.

The classification module depends on `ILLMClient`, never on a concrete SDK.
"""

import asyncio
import json
import re
import time
from typing import List, Optional, Any
from abc import ABC, abstractmethod

from openai import AsyncOpenAI
from zai import ZaiClient

from ticketdesk.config import Settings, settings
from ticketdesk.core import LLMException, ConfigurationException

JSON_OBJECT_FORMAT = {"type": "json_object"}


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the methods the application actually needs are defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion",
        response_format: Optional[dict] = None,
        model: Optional[str] = None
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT models.

    Provides async wrapper around OpenAI SDK operations.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=base_url,
            timeout=timeout or settings.llm_timeout_seconds,
            max_retries=0
        )
        self._model = settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion",
        response_format: Optional[dict] = None,
        model: Optional[str] = None
    ) -> ChatCompletionResult:
        """
        Generate chat completion using an OpenAI-compatible API.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            operation: Operation type, used for logging context
            response_format: e.g. {"type": "json_object"} for strict JSON answers
            model: Overrides the configured model

        Returns:
            ChatCompletionResult with generated text

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()
        request: dict[str, Any] = {
            "model": model or self._model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            request["response_format"] = response_format

        try:
            response = await self._client.chat.completions.create(**request)
            content = response.choices[0].message.content or ""
            usage = response.usage
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}")

        return ChatCompletionResult(
            content=content,
            model=request["model"],
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )


class GroqLLMClient(OpenAILLMClient):
    """
    Groq client implementation for Llama models.

    Groq is OpenAI-compatible with ultra-fast inference.
    """

    BASE_URL = "https://api.groq.com/openai/v1"

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        api_key = api_key or settings.groq_api_key
        if not api_key:
            raise ConfigurationException("Groq API key not configured")
        super().__init__(api_key=api_key, base_url=self.BASE_URL, timeout=timeout)


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread to keep the
    event loop free and the caller's timeout effective.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._model = settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion",
        response_format: Optional[dict] = None,
        model: Optional[str] = None
    ) -> ChatCompletionResult:
        """Generate chat completion using GLM."""
        start_time = time.perf_counter()
        model_name = model or self._model

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}")

        # Z.AI doesn't return token usage, so we estimate
        return ChatCompletionResult(
            content=content,
            model=model_name,
            prompt_tokens=len(str(messages)),
            completion_tokens=len(content),
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for testing.

    Answers classification requests with the first category listed in the
    system prompt, without calling external APIs.
    """

    _CATEGORIES_LINE = re.compile(r"Available categories:\s*(.+)")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion",
        response_format: Optional[dict] = None,
        model: Optional[str] = None
    ) -> ChatCompletionResult:
        """Return mock response based on operation type."""
        if operation == "classification":
            system_prompt = str(messages[0].get("content", "")) if messages else ""
            match = self._CATEGORIES_LINE.search(system_prompt)
            categories = [c.strip() for c in match.group(1).split(",")] if match else []
            content = json.dumps({
                "category": categories[0] if categories else "General Inquiry",
                "explanation": "Mock: classified without calling a provider",
                "confidence": 80
            })
        else:
            content = "This is a mock LLM response for testing purposes."

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=0
        )


def build_llm_client(config: Settings = settings) -> ILLMClient:
    """
    Build the chat completion client selected by configuration.

    Raises:
        ConfigurationException: Unknown provider or missing API key
    """
    if config.mock_llm:
        return MockLLMClient()

    provider = config.llm_provider.lower().strip()
    if provider == "openai":
        return OpenAILLMClient(config.openai_api_key, timeout=config.llm_timeout_seconds)
    if provider == "groq":
        return GroqLLMClient(config.groq_api_key, timeout=config.llm_timeout_seconds)
    if provider == "zai":
        return ZAIILLMClient(config.zai_api_key)

    raise ConfigurationException(f"Unsupported LLM provider: {config.llm_provider}")
