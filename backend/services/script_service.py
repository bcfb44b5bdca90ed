"""
Unified script service - orchestrates the generation pipeline:

    validate -> load context -> enrich -> apply rules -> generate -> parse -> check length

Each generate_script call runs these stages strictly in order. The context
cache inside the provider is the only state shared between calls.
"""
import random
import time
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from core.config import settings
from core.exceptions import GenerationError, ScriptEngineException, ValidationError
from core.logger import error_logger, generation_logger, logger
from core.parallel import execute_in_windows, execute_parallel_tasks
from core.performance_monitor import (
    GenerationMetrics,
    PerformanceMonitor,
    calculate_word_count_accuracy,
    performance_monitor,
)
from services.completion import OpenAICompletionService, TextCompletionService
from services.context_enricher import ContextEnricher
from services.context_provider import ScriptContextProvider
from services.context_store import ContextStore, InMemoryContextStore
from services.duration_budget import DURATION_METRICS, get_duration_metrics
from services.generator import ScriptGenerator
from services.input_validator import InputValidator, RawRequest, ValidationResult
from services.models import EnrichedInput, GeneratedScript, GenerationRules, ScriptContext, ScriptRequest
from services.output_validator import OutputValidator, WordCountReport
from services.rule_engine import RuleEngine


@dataclass
class GenerationSteps:
    """Every intermediate artifact of one pipeline run, for diagnostics."""
    validation: ValidationResult
    context: ScriptContext
    enriched: EnrichedInput
    rules: GenerationRules
    script: GeneratedScript
    word_count_report: WordCountReport


@dataclass
class ScriptOptions:
    option_a: Optional[GeneratedScript] = None
    option_b: Optional[GeneratedScript] = None


@dataclass
class BatchItemResult:
    success: bool
    script: Optional[GeneratedScript] = None
    error: Optional[str] = None


class UnifiedScriptService:
    """Entry point for script generation used by the API routes."""

    def __init__(
        self,
        context_provider: ScriptContextProvider,
        generator: ScriptGenerator,
        monitor: Optional[PerformanceMonitor] = None,
        rng: Optional[random.Random] = None,
    ):
        self.context_provider = context_provider
        self.generator = generator
        self.monitor = monitor or performance_monitor
        self.rng = rng

    async def generate_script(self, request: RawRequest, user_id: str) -> GeneratedScript:
        steps = await self.generate_script_with_steps(request, user_id)
        return steps.script

    async def generate_script_with_steps(self, request: RawRequest, user_id: str) -> GenerationSteps:
        """Run the full pipeline and return the script along with every intermediate result."""
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()

        validation = InputValidator.validate(request)
        if validation.warnings:
            logger.warning(f"Script request {request_id} warnings: {'; '.join(validation.warnings)}")
        if not validation.is_valid:
            generation_logger.log_pipeline_stage(request_id, "validation", "rejected")
            raise ValidationError(validation.errors, validation.warnings)
        sanitized = validation.sanitized_input
        generation_logger.log_pipeline_stage(request_id, "validation", "ok")

        try:
            context = await self.context_provider.load_context(user_id)
            generation_logger.log_pipeline_stage(request_id, "context", f"user {user_id}")

            enriched = ContextEnricher.enrich(sanitized, context)
            rules = RuleEngine.apply_rules(enriched)
            generation_logger.log_pipeline_stage(
                request_id, "rules", ", ".join(f"{k}={v}" for k, v in rules.component_strategies.items())
            )

            script = await self.generator.generate(enriched, rules, rng=self.rng)
            generation_logger.log_pipeline_stage(request_id, "generation", f"{script.metadata.word_count} words")

            report = OutputValidator.validate(script, sanitized.duration)
            generation_logger.log_word_count(
                request_id, sanitized.duration, report.actual, report.target, report.within_tolerance
            )
        except ScriptEngineException as e:
            self._record_failure(request_id, user_id, sanitized, start_time, e)
            raise
        except Exception as e:
            error = GenerationError(f"Script generation failed: {type(e).__name__}: {str(e)}")
            self._record_failure(request_id, user_id, sanitized, start_time, error)
            raise error from e

        self.monitor.record_generation(GenerationMetrics(
            user_id=user_id,
            duration=sanitized.duration,
            script_type=sanitized.script_type,
            response_time=time.time() - start_time,
            word_count=report.actual,
            target_word_count=report.target,
            word_count_accuracy=calculate_word_count_accuracy(report.actual, report.target),
            has_all_components=not script.sections.missing_sections(),
            component_strategies=rules.component_strategies,
        ))

        return GenerationSteps(
            validation=validation,
            context=context,
            enriched=enriched,
            rules=rules,
            script=script,
            word_count_report=report,
        )

    async def generate_variations(
        self,
        request: RawRequest,
        user_id: str,
        count: Optional[int] = None,
    ) -> List[GeneratedScript]:
        """
        Run `count` independent pipelines concurrently.

        All or nothing: if any variation fails, the first failure is raised and no
        variations are returned.
        """
        count = settings.default_variation_count if count is None else count
        if not 1 <= count <= settings.max_variation_count:
            raise ValidationError([f"Variation count must be between 1 and {settings.max_variation_count}"])

        sanitized = self._validated(request)
        logger.info(f"Generating {count} script variations for user {user_id}")

        results = await execute_parallel_tasks(
            [lambda: self.generate_script(sanitized, user_id) for _ in range(count)],
            task_prefix="variation",
        )
        for result in results:
            if not result.success:
                raise result.error
        return [result.result for result in results]

    async def generate_options(self, request: RawRequest, user_id: str) -> ScriptOptions:
        """
        A/B options generated concurrently: A is a speed script, B is educational for
        educational requests and viral otherwise. A failed option comes back as None.
        """
        sanitized = self._validated(request)
        option_b_type = "educational" if sanitized.script_type == "educational" else "viral"

        results = await execute_parallel_tasks([
            lambda: self.generate_script(replace(sanitized, script_type="speed"), user_id),
            lambda: self.generate_script(replace(sanitized, script_type=option_b_type), user_id),
        ], task_prefix="option")

        options = []
        for label, result in zip(("A", "B"), results):
            if not result.success:
                logger.warning(f"Option {label} failed for user {user_id}: {str(result.error)}")
            options.append(result.result if result.success else None)

        return ScriptOptions(option_a=options[0], option_b=options[1])

    async def generate_batch(
        self,
        requests: List[RawRequest],
        user_id: str,
        concurrency: Optional[int] = None,
        fail_fast: bool = False,
    ) -> List[BatchItemResult]:
        """Generate many scripts, `concurrency` at a time. Results follow request order."""
        concurrency = concurrency or settings.batch_concurrency
        logger.info(f"Batch generating {len(requests)} scripts for user {user_id} (concurrency {concurrency})")

        tasks = [self._bind(request, user_id) for request in requests]
        results = await execute_in_windows(tasks, concurrency, fail_fast=fail_fast, task_prefix="batch")

        return [
            BatchItemResult(success=True, script=result.result) if result.success
            else BatchItemResult(success=False, error=str(result.error))
            for result in results
        ]

    def _bind(self, request: RawRequest, user_id: str):
        return lambda: self.generate_script(request, user_id)

    @staticmethod
    def _validated(request: RawRequest) -> ScriptRequest:
        validation = InputValidator.validate(request)
        if not validation.is_valid:
            raise ValidationError(validation.errors, validation.warnings)
        return validation.sanitized_input

    @staticmethod
    def get_duration_options() -> List[Dict[str, Any]]:
        """Supported durations with their word budgets, for display."""
        options = []
        for duration in DURATION_METRICS:
            metrics = get_duration_metrics(duration)
            options.append({
                "value": duration,
                "label": f"{duration} seconds",
                "words": metrics.total_words,
                "structure": metrics.structure_name,
                "pacing": metrics.pacing,
                "description": ", ".join(metrics.characteristics),
            })
        return options

    def invalidate_user_cache(self, user_id: str):
        self.context_provider.invalidate_user_cache(user_id)

    def get_performance_analysis(self, last_n: int = 100) -> Dict[str, Any]:
        return self.monitor.get_analysis(last_n)

    def _record_failure(self, request_id: str, user_id: str, request: ScriptRequest, start_time: float, error: Exception):
        metrics = get_duration_metrics(request.duration)
        self.monitor.record_generation(GenerationMetrics(
            user_id=user_id,
            duration=request.duration,
            script_type=request.script_type,
            response_time=time.time() - start_time,
            word_count=0,
            target_word_count=metrics.total_words,
            word_count_accuracy=0.0,
            has_all_components=False,
            success=False,
            error=str(error),
        ))
        if isinstance(error, GenerationError):
            error_logger.log_error_with_context(error, {
                "request_id": request_id,
                "user_id": user_id,
                "duration": request.duration,
                "type": request.script_type,
                "error_code": error.error_code,
            })


def create_script_service(
    store: Optional[ContextStore] = None,
    completion_service: Optional[TextCompletionService] = None,
) -> UnifiedScriptService:
    """
    Wire the default collaborators.

    A production ContextStore is passed in here. Without one, the in-memory
    store is seeded from settings.context_store_file, or left empty, in which
    case every user is unknown and generation answers 404.
    """
    if store is None:
        store = _default_context_store()
    provider = ScriptContextProvider(store)
    generator = ScriptGenerator(completion_service or OpenAICompletionService())
    return UnifiedScriptService(provider, generator)


def _default_context_store() -> ContextStore:
    if settings.context_store_file:
        logger.info(f"Loading context store from {settings.context_store_file}")
        return InMemoryContextStore.from_json_file(settings.context_store_file)
    logger.warning("No context store configured; every user will be reported as not found")
    return InMemoryContextStore()
