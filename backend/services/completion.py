"""
Text-completion port and the OpenAI adapter behind it.

The generator only sees CompletionRequest / CompletionResult; provider errors are
mapped onto the retryable / non-retryable generation error classes here.
"""
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import openai
from openai import AsyncOpenAI

from core.config import settings
from core.exceptions import (
    CompletionRateLimitError,
    CompletionTimeoutError,
    ConfigurationError,
    GenerationError,
    NonRetryableGenerationError,
    RetryableGenerationError,
)
from core.logger import api_logger, logger

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class CompletionRequest:
    instruction_text: str
    system_instruction: Optional[str] = None
    temperature: float = 0.8
    max_tokens: int = 1000
    response_schema: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class CompletionResult:
    success: bool
    content: Union[str, Dict[str, Any], list, None] = None
    error: Optional[str] = None
    tokens_used: int = 0
    retryable: bool = False


class TextCompletionService(ABC):
    """Anything that turns an instruction into text or a JSON object."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResult:
        pass


def decode_content(text: Optional[str]) -> Union[str, Dict[str, Any], list, None]:
    """Return parsed JSON when the text is JSON (optionally fenced), else the raw text."""
    if text is None:
        return None

    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        stripped = match.group(1).strip()

    if stripped.startswith(("{", "[")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            logger.debug("Completion content looked like JSON but did not parse, keeping raw text")
    return text


def classify_openai_error(error: Exception) -> GenerationError:
    """Map an openai SDK exception onto the generation error taxonomy."""
    message = str(error)

    if isinstance(error, openai.APITimeoutError):
        return CompletionTimeoutError(f"Completion request timed out: {message}")
    if isinstance(error, openai.RateLimitError):
        return CompletionRateLimitError(f"Completion rate limit reached: {message}")
    if isinstance(error, (openai.APIConnectionError, openai.InternalServerError)):
        return RetryableGenerationError(f"Completion service unavailable: {message}")
    if isinstance(error, (
        openai.BadRequestError,
        openai.AuthenticationError,
        openai.PermissionDeniedError,
        openai.NotFoundError,
        openai.UnprocessableEntityError,
    )):
        return NonRetryableGenerationError(f"Completion request rejected: {message}")
    return GenerationError(f"Completion failed: {message}")


class OpenAICompletionService(TextCompletionService):
    """Chat completions through AsyncOpenAI with optional JSON-schema output."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.completion_timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            # Retries are handled by the generator.
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
            logger.info(f"OpenAI completion client initialized for model {self.model}")
        return self._client

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        messages = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": request.instruction_text})

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "timeout": self.timeout,
        }
        if request.response_schema:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "speed_write_script", "schema": request.response_schema, "strict": True},
            }

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            classified = classify_openai_error(e)
            logger.warning(f"OpenAI completion failed ({classified.error_code}): {str(e)}")
            raise classified from e

        tokens_used = response.usage.total_tokens if response.usage else 0
        api_logger.log_api_usage("openai", "script_generation", tokens_used)

        if not response.choices:
            return CompletionResult(success=False, error="Completion returned no choices", tokens_used=tokens_used)

        text = response.choices[0].message.content
        if not text or not text.strip():
            return CompletionResult(success=False, error="Completion returned empty content", tokens_used=tokens_used)

        return CompletionResult(success=True, content=decode_content(text), tokens_used=tokens_used)
