"""
Output validator: compares a generated script's length against its duration budget.
Drift is logged, never raised.
"""
from dataclasses import dataclass
from typing import Optional

from core.config import settings
from core.logger import logger
from services.duration_budget import get_duration_metrics
from services.models import GeneratedScript


@dataclass(frozen=True)
class WordCountReport:
    actual: int
    target: int
    min_words: int
    max_words: int

    @property
    def within_tolerance(self) -> bool:
        return self.min_words <= self.actual <= self.max_words


class OutputValidator:

    @staticmethod
    def validate(script: GeneratedScript, duration: str, tolerance: Optional[float] = None) -> WordCountReport:
        tolerance = settings.word_count_tolerance if tolerance is None else tolerance
        metrics = get_duration_metrics(duration)
        min_words, max_words = metrics.word_range(tolerance)

        report = WordCountReport(
            actual=script.sections.word_count,
            target=metrics.total_words,
            min_words=min_words,
            max_words=max_words,
        )

        if not report.within_tolerance:
            logger.warning(
                f"Script word count {report.actual} outside expected range "
                f"{min_words}-{max_words} for {duration}s (target {report.target})"
            )

        missing = script.sections.missing_sections()
        if missing:
            logger.warning(f"Generated script has empty sections: {', '.join(missing)}")

        return report
