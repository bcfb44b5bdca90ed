#!/usr/bin/env python3
"""
Tests for the script generator and the completion adapter behind it.
"""
import random
import unittest
import sys
from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
from tenacity import wait_none

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.append(str(backend_dir))
sys.path.append(str(Path(__file__).parent))

from core.exceptions import (
    CompletionRateLimitError,
    CompletionTimeoutError,
    ConfigurationError,
    GenerationError,
    NonRetryableGenerationError,
    ParseFailureError,
    RetryableGenerationError,
    TemplateEchoError,
)
from services.completion import (
    CompletionResult,
    OpenAICompletionService,
    classify_openai_error,
    decode_content,
)
from services.context_enricher import ContextEnricher
from services.generator import ScriptGenerator, is_template_echo
from services.hook_examples import BANNED_OPENERS_RULE
from services.models import ScriptContext, ScriptRequest
from services.prompts import SCRIPT_RESPONSE_SCHEMA, build_instruction
from services.rule_engine import RuleEngine
from fakes import SCRIPT_30S, FakeCompletionService, hard_failure, rate_limited


def make_inputs(script_type="speed", tone="educational", keywords=()):
    request = ScriptRequest(
        idea="How to remember everything you read",
        duration="30",
        script_type=script_type,
        tone=tone,
    )
    context = ScriptContext(user_id="user-1", profile={}, negative_keywords=list(keywords))
    enriched = ContextEnricher.enrich(request, context)
    return enriched, RuleEngine.apply_rules(enriched)


class TestScriptGenerator(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.enriched, self.rules = make_inputs()

    def make_generator(self, responses=None, **kwargs):
        self.completion = FakeCompletionService(responses, delay=kwargs.pop("delay", 0.0))
        return ScriptGenerator(self.completion, wait=wait_none(), **kwargs)

    async def test_generates_structured_script(self):
        generator = self.make_generator()
        script = await generator.generate(self.enriched, self.rules, rng=random.Random(0))

        self.assertEqual(script.sections.to_dict(), SCRIPT_30S)
        self.assertEqual(script.metadata.word_count, 75)
        self.assertEqual(script.metadata.estimated_duration, 34)
        self.assertEqual(script.metadata.duration, "30")
        self.assertEqual(script.metadata.strategies, self.rules.component_strategies)
        self.assertEqual(self.completion.call_count, 1)

    async def test_retries_transient_failures(self):
        generator = self.make_generator([rate_limited(), rate_limited(), SCRIPT_30S])
        script = await generator.generate(self.enriched, self.rules)

        self.assertEqual(script.hook, SCRIPT_30S["hook"])
        self.assertEqual(self.completion.call_count, 3)

    async def test_retryable_result_is_retried(self):
        generator = self.make_generator([
            CompletionResult(success=False, error="upstream 503", retryable=True),
            SCRIPT_30S,
        ])
        await generator.generate(self.enriched, self.rules)
        self.assertEqual(self.completion.call_count, 2)

    async def test_gives_up_after_max_retries(self):
        generator = self.make_generator([rate_limited() for _ in range(5)])

        with self.assertRaises(CompletionRateLimitError):
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(self.completion.call_count, self.rules.constraints.max_retries)

    async def test_single_attempt_when_retries_disabled(self):
        self.rules.constraints.max_retries = 1
        generator = self.make_generator([rate_limited(), SCRIPT_30S])

        with self.assertRaises(RetryableGenerationError):
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(self.completion.call_count, 1)

    async def test_non_retryable_failures_are_not_retried(self):
        generator = self.make_generator([hard_failure(), SCRIPT_30S])
        with self.assertRaises(GenerationError):
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(self.completion.call_count, 1)

        generator = self.make_generator([CompletionResult(success=False, error="bad request"), SCRIPT_30S])
        with self.assertRaises(NonRetryableGenerationError) as ctx:
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(ctx.exception.message, "bad request")
        self.assertEqual(self.completion.call_count, 1)

    async def test_unexpected_completion_errors_are_wrapped(self):
        generator = self.make_generator([RuntimeError("socket closed"), SCRIPT_30S])
        with self.assertRaises(NonRetryableGenerationError) as ctx:
            await generator.generate(self.enriched, self.rules)

        self.assertIn("socket closed", ctx.exception.message)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(self.completion.call_count, 1)

    async def test_template_echo_is_rejected(self):
        echoed = build_instruction(self.enriched, self.rules)
        generator = self.make_generator([echoed, SCRIPT_30S])

        with self.assertRaises(TemplateEchoError) as ctx:
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(ctx.exception.error_code, "TEMPLATE_ECHO")
        self.assertEqual(self.completion.call_count, 1)

    async def test_unparseable_output(self):
        generator = self.make_generator(["Sleep is good."])
        with self.assertRaises(ParseFailureError):
            await generator.generate(self.enriched, self.rules)

    async def test_missing_nugget_is_a_parse_failure(self):
        generator = self.make_generator([{"hook": "h", "bridge": "b", "wta": "w"}])
        with self.assertRaises(ParseFailureError):
            await generator.generate(self.enriched, self.rules)

    async def test_timeout_is_retryable(self):
        self.rules.constraints.max_retries = 2
        generator = self.make_generator(delay=0.5, timeout=0.01)

        with self.assertRaises(CompletionTimeoutError):
            await generator.generate(self.enriched, self.rules)
        self.assertEqual(self.completion.call_count, 2)

    async def test_text_output_is_parsed(self):
        text = "Stop scrolling. (Hook) Here's why. (Bridge) Read less, recall more. (Golden Nugget) Follow for more. (CTA)"
        script = await self.make_generator([text]).generate(self.enriched, self.rules)
        self.assertEqual(script.golden_nugget, "Read less, recall more.")


class TestCompletionRequest(unittest.TestCase):

    def test_request_uses_prompt_variant(self):
        enriched, rules = make_inputs(script_type="viral", tone="energetic", keywords=["hustle"])
        request = ScriptGenerator(FakeCompletionService()).build_request(enriched, rules, rng=random.Random(1))

        self.assertEqual(request.temperature, 0.9)
        self.assertIn("viral content strategist", request.system_instruction)
        self.assertEqual(request.response_schema, SCRIPT_RESPONSE_SCHEMA)
        self.assertIn("TOPIC: How to remember everything you read", request.instruction_text)
        self.assertIn('- "hustle"', request.instruction_text)
        self.assertIn(BANNED_OPENERS_RULE, request.instruction_text)

    def test_speed_uses_standard_variant(self):
        enriched, rules = make_inputs(script_type="speed")
        request = ScriptGenerator(FakeCompletionService()).build_request(enriched, rules)
        self.assertEqual(request.temperature, 0.8)

    def test_template_echo_detection(self):
        self.assertTrue(is_template_echo("HOOK GUIDELINES: BRIDGE GUIDELINES: GOLDEN NUGGET GUIDELINES:"))
        self.assertTrue(is_template_echo({"hook": "HOOK GUIDELINES BRIDGE GUIDELINES GOLDEN NUGGET GUIDELINES"}))
        self.assertFalse(is_template_echo("HOOK GUIDELINES and BRIDGE GUIDELINES only"))
        self.assertFalse(is_template_echo(SCRIPT_30S))
        self.assertFalse(is_template_echo(None))


class FakeChatCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def chat_response(content, tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))] if content is not None else [],
        usage=SimpleNamespace(total_tokens=tokens),
    )


def fake_client(completions: FakeChatCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestOpenAICompletionService(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        enriched, rules = make_inputs()
        self.request = ScriptGenerator(FakeCompletionService()).build_request(enriched, rules)

    async def test_returns_decoded_json(self):
        completions = FakeChatCompletions(chat_response('```json\n{"hook": "h", "bridge": "b"}\n```'))
        service = OpenAICompletionService(api_key="test-key", model="test-model", client=fake_client(completions))

        result = await service.complete(self.request)

        self.assertTrue(result.success)
        self.assertEqual(result.content, {"hook": "h", "bridge": "b"})
        self.assertEqual(result.tokens_used, 42)

        call = completions.calls[0]
        self.assertEqual(call["model"], "test-model")
        self.assertEqual(call["messages"][0]["role"], "system")
        self.assertEqual(call["response_format"]["type"], "json_schema")

    async def test_empty_content_is_unsuccessful(self):
        for response in (chat_response("   "), chat_response(None)):
            service = OpenAICompletionService(api_key="k", client=fake_client(FakeChatCompletions(response)))
            result = await service.complete(self.request)
            self.assertFalse(result.success)
            self.assertFalse(result.retryable)

    async def test_sdk_errors_are_classified(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.APITimeoutError(request=request)
        service = OpenAICompletionService(api_key="k", client=fake_client(FakeChatCompletions(error=error)))

        with self.assertRaises(CompletionTimeoutError):
            await service.complete(self.request)

    async def test_missing_api_key(self):
        service = OpenAICompletionService(api_key="")
        with self.assertRaises(ConfigurationError):
            await service.complete(self.request)


class TestCompletionHelpers(unittest.TestCase):

    def test_decode_content(self):
        self.assertEqual(decode_content('{"hook": "h"}'), {"hook": "h"})
        self.assertEqual(decode_content('```\n[{"hook": "h"}]\n```'), [{"hook": "h"}])
        self.assertEqual(decode_content("plain text"), "plain text")
        self.assertEqual(decode_content("{not json"), "{not json")
        self.assertIsNone(decode_content(None))

    def test_classify_openai_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

        def status_error(cls, status):
            return cls("failed", response=httpx.Response(status, request=request), body=None)

        self.assertIsInstance(
            classify_openai_error(status_error(openai.RateLimitError, 429)), CompletionRateLimitError
        )
        self.assertIsInstance(
            classify_openai_error(status_error(openai.InternalServerError, 500)), RetryableGenerationError
        )
        self.assertIsInstance(
            classify_openai_error(openai.APIConnectionError(request=request)), RetryableGenerationError
        )
        self.assertIsInstance(
            classify_openai_error(status_error(openai.AuthenticationError, 401)), NonRetryableGenerationError
        )
        self.assertIsInstance(
            classify_openai_error(status_error(openai.BadRequestError, 400)), NonRetryableGenerationError
        )

        generic = classify_openai_error(openai.OpenAIError("unknown"))
        self.assertNotIsInstance(generic, RetryableGenerationError)
        self.assertNotIsInstance(generic, NonRetryableGenerationError)


if __name__ == "__main__":
    unittest.main()
