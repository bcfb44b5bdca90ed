import asyncio
import logging
from typing import List, Any, Callable, Optional, Awaitable
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

@dataclass
class TaskResult:
    """Result of a parallel task execution."""
    task_id: str
    success: bool
    result: Any = None
    error: Optional[Exception] = None
    execution_time: float = 0.0

async def _execute_single_task(task_id: str, func: Callable[[], Awaitable[Any]]) -> TaskResult:
    """Execute a single task with error capture and timing."""
    start_time = time.time()
    try:
        result = await func()
        return TaskResult(
            task_id=task_id,
            success=True,
            result=result,
            execution_time=time.time() - start_time
        )
    except Exception as e:
        execution_time = time.time() - start_time
        logger.error(f"Task {task_id} failed after {execution_time:.2f}s: {str(e)}")
        return TaskResult(
            task_id=task_id,
            success=False,
            error=e,
            execution_time=execution_time
        )

async def execute_parallel_tasks(
    tasks: List[Callable[[], Awaitable[Any]]],
    task_prefix: str = "task"
) -> List[TaskResult]:
    """Run every task concurrently; failures are captured per task, results keep input order."""
    if not tasks:
        return []

    logger.info(f"Starting parallel execution of {len(tasks)} tasks")
    start_time = time.time()

    results = await asyncio.gather(*[
        _execute_single_task(f"{task_prefix}_{i}", func) for i, func in enumerate(tasks)
    ])

    success_count = sum(1 for r in results if r.success)
    logger.info(
        f"Parallel execution completed: {success_count}/{len(tasks)} successful "
        f"in {time.time() - start_time:.2f}s"
    )
    return list(results)

async def execute_in_windows(
    tasks: List[Callable[[], Awaitable[Any]]],
    concurrency: int,
    fail_fast: bool = False,
    task_prefix: str = "task"
) -> List[TaskResult]:
    """Run tasks `concurrency` at a time. With `fail_fast`, stop after the first window holding a failure."""
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    results: List[TaskResult] = []
    for window_start in range(0, len(tasks), concurrency):
        window = tasks[window_start:window_start + concurrency]
        window_results = await asyncio.gather(*[
            _execute_single_task(f"{task_prefix}_{window_start + i}", func)
            for i, func in enumerate(window)
        ])
        results.extend(window_results)

        if fail_fast and any(not r.success for r in window_results):
            logger.warning(
                f"Batch stopped after {len(results)}/{len(tasks)} tasks due to failure (fail_fast enabled)"
            )
            break

    return results
