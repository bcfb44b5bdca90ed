"""
Performance Monitoring System
Tracks script generation speed and word-count accuracy for tuning prompts and rules.
"""

import time
from typing import Dict, List, Optional
from dataclasses import dataclass, field, asdict
from core.logger import logger

SLOW_GENERATION_SECONDS = 10.0
LOW_ACCURACY_PERCENT = 70.0

@dataclass
class GenerationMetrics:
    """Metrics for a single script generation."""
    user_id: str
    duration: str
    script_type: str
    response_time: float
    word_count: int
    target_word_count: int
    word_count_accuracy: float
    has_all_components: bool
    component_strategies: Dict[str, str] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

def calculate_word_count_accuracy(actual: int, target: int) -> float:
    """Percentage closeness of `actual` to `target`, clamped to 0..100."""
    if target == 0:
        return 100.0
    accuracy = 100.0 - (abs(actual - target) / target) * 100.0
    return max(0.0, min(100.0, accuracy))

class PerformanceMonitor:
    """Keeps a rolling window of generation metrics."""

    def __init__(self, max_history: int = 1000):
        self.completed_generations: List[GenerationMetrics] = []
        self.max_history = max_history

    def record_generation(self, metrics: GenerationMetrics):
        """Record a generation and trim history."""
        self.completed_generations.append(metrics)
        if len(self.completed_generations) > self.max_history:
            self.completed_generations = self.completed_generations[-self.max_history:]
        self._check_performance_issues(metrics)

    def _check_performance_issues(self, metrics: GenerationMetrics):
        if metrics.response_time > SLOW_GENERATION_SECONDS:
            logger.warning(
                f"Slow script generation for user {metrics.user_id}: {metrics.response_time:.2f}s"
            )
        if metrics.success and metrics.word_count_accuracy < LOW_ACCURACY_PERCENT:
            logger.warning(
                f"Low word count accuracy ({metrics.word_count_accuracy:.1f}%) for "
                f"{metrics.duration}s {metrics.script_type} script: "
                f"{metrics.word_count}/{metrics.target_word_count} words"
            )

    def get_analysis(self, last_n: int = 100) -> Dict:
        """Summarize the last `last_n` generations."""
        recent = self.completed_generations[-last_n:]
        if not recent:
            return {
                "total_generations": 0,
                "success_rate": 0.0,
                "average_response_time": 0.0,
                "average_word_count_accuracy": 0.0,
                "strategy_usage": {},
            }

        successful = [m for m in recent if m.success]
        strategy_usage: Dict[str, int] = {}
        for metrics in successful:
            for component, strategy in metrics.component_strategies.items():
                key = f"{component}:{strategy}"
                strategy_usage[key] = strategy_usage.get(key, 0) + 1

        return {
            "total_generations": len(recent),
            "success_rate": len(successful) / len(recent),
            "average_response_time": sum(m.response_time for m in recent) / len(recent),
            "average_word_count_accuracy": (
                sum(m.word_count_accuracy for m in successful) / len(successful) if successful else 0.0
            ),
            "strategy_usage": strategy_usage,
        }

    def export_metrics(self) -> List[Dict]:
        return [asdict(m) for m in self.completed_generations]

    def reset(self):
        self.completed_generations.clear()

# Global performance monitor instance
performance_monitor = PerformanceMonitor()
