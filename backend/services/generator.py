"""
Script generator: instruction assembly, completion call with retries,
template-echo detection and structural parsing.
"""
import asyncio
import json
import random
from typing import Any, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import settings
from core.exceptions import (
    CompletionTimeoutError,
    NonRetryableGenerationError,
    ParseFailureError,
    RetryableGenerationError,
    ScriptEngineException,
    TemplateEchoError,
)
from core.logger import generation_logger, logger
from services.completion import CompletionRequest, CompletionResult, TextCompletionService
from services.duration_budget import calculate_duration
from services.models import EnrichedInput, GeneratedScript, GenerationRules, ScriptMetadata
from services.output_parser import ScriptParser
from services.prompts import (
    SCRIPT_RESPONSE_SCHEMA,
    TEMPLATE_MARKERS,
    build_instruction,
    get_prompt_variant,
)


def is_template_echo(content: Any) -> bool:
    """True when the output carries the instruction template's section markers."""
    if content is None:
        return False
    text = content if isinstance(content, str) else json.dumps(content)
    return all(marker in text for marker in TEMPLATE_MARKERS)


class ScriptGenerator:
    """Generates one structured script per call through a TextCompletionService."""

    def __init__(
        self,
        completion_service: TextCompletionService,
        timeout: Optional[float] = None,
        wait=None,
    ):
        self.completion_service = completion_service
        self.timeout = timeout or settings.completion_timeout
        self.wait = wait or wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_backoff_min,
            max=settings.retry_backoff_max,
        )

    def build_request(
        self,
        enriched: EnrichedInput,
        rules: GenerationRules,
        rng: Optional[random.Random] = None,
    ) -> CompletionRequest:
        variant = get_prompt_variant(enriched.input.script_type)
        return CompletionRequest(
            instruction_text=build_instruction(enriched, rules, rng=rng),
            system_instruction=variant.system_instruction,
            temperature=variant.temperature,
            max_tokens=settings.completion_max_tokens,
            response_schema=SCRIPT_RESPONSE_SCHEMA,
        )

    async def generate(
        self,
        enriched: EnrichedInput,
        rules: GenerationRules,
        rng: Optional[random.Random] = None,
    ) -> GeneratedScript:
        request = self.build_request(enriched, rules, rng=rng)
        max_attempts = max(1, rules.constraints.max_retries)

        result: Optional[CompletionResult] = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(RetryableGenerationError),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.warning(f"Retrying script generation (attempt {attempt_number}/{max_attempts})")
                result = await self._complete_once(request)

        if is_template_echo(result.content):
            logger.error("Completion echoed the instruction template instead of writing a script")
            raise TemplateEchoError()

        sections = ScriptParser.parse(result.content)
        if sections is None:
            logger.error(f"Could not parse completion output into script sections: {str(result.content)[:200]}")
            raise ParseFailureError("Generated content could not be split into hook, bridge, golden nugget and call to action")

        word_count = sections.word_count
        request_input = enriched.input
        generation_logger.info(
            f"Generated {request_input.duration}s {request_input.script_type} script: "
            f"{word_count} words, {result.tokens_used} tokens"
        )

        return GeneratedScript(
            hook=sections.hook,
            bridge=sections.bridge,
            golden_nugget=sections.golden_nugget,
            wta=sections.wta,
            metadata=ScriptMetadata(
                duration=request_input.duration,
                script_type=request_input.script_type,
                tone=request_input.tone,
                word_count=word_count,
                estimated_duration=calculate_duration(word_count),
                strategies=rules.component_strategies,
            ),
        )

    async def _complete_once(self, request: CompletionRequest) -> CompletionResult:
        try:
            result = await asyncio.wait_for(self.completion_service.complete(request), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise CompletionTimeoutError(f"Completion did not respond within {self.timeout}s") from e
        except ScriptEngineException:
            raise
        except Exception as e:
            logger.error(f"Completion service failed unexpectedly: {type(e).__name__}: {str(e)}")
            raise NonRetryableGenerationError(f"Completion service failed: {str(e)}") from e

        if not result.success:
            message = result.error or "Completion service returned no content"
            if result.retryable:
                raise RetryableGenerationError(message)
            raise NonRetryableGenerationError(message)

        return result
