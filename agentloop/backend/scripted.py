"""
Scripted Execution Backend - deterministic in-process backend.

Used for offline CLI runs and tests. Every answer comes from plain tables:
- initial_tasks: task values returned for any goal
- follow_ups: task value -> follow-up values (each consumed once)
- results: task value -> execution result
- analyses: task value -> Analysis

Calls are recorded in ``calls`` so tests can assert on the exact sequence.
"""

import asyncio
from typing import TYPE_CHECKING, Any

from agentloop.backend.base import Analysis, ExecutionBackend, TaskContext

if TYPE_CHECKING:
    from agentloop.config import AgentSettings


class ScriptedBackend(ExecutionBackend):
    """Backend whose answers are fixed up front."""

    def __init__(
        self,
        initial_tasks: list[str] | None = None,
        follow_ups: dict[str, list[str]] | None = None,
        results: dict[str, str] | None = None,
        analyses: dict[str, Analysis] | None = None,
        fail_on: dict[str, BaseException] | None = None,
        latency_seconds: float = 0.0,
    ):
        """
        Args:
            initial_tasks: Decomposition returned by get_initial_tasks
            follow_ups: Follow-up values keyed by the completed task value
            results: Execution results keyed by task value
            analyses: Analyses keyed by task value
            fail_on: Exceptions to raise, keyed by "<method>" or "<method>:<task value>"
            latency_seconds: Artificial delay added to every call
        """
        self.initial_tasks = list(initial_tasks or [])
        self.follow_ups = {k: list(v) for k, v in (follow_ups or {}).items()}
        self.results = dict(results or {})
        self.analyses = dict(analyses or {})
        self.fail_on = dict(fail_on or {})
        self.latency_seconds = latency_seconds
        self.calls: list[tuple[str, Any]] = []

    async def _call(self, method: str, key: str | None, payload: Any) -> None:
        self.calls.append((method, payload))
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        error = self.fail_on.get(f"{method}:{key}") if key is not None else None
        error = error or self.fail_on.get(method)
        if error is not None:
            raise error

    async def get_initial_tasks(self, goal: str, settings: "AgentSettings") -> list[str]:
        await self._call("get_initial_tasks", goal, goal)
        return list(self.initial_tasks)

    async def analyze_task(self, task_value: str) -> Analysis:
        await self._call("analyze_task", task_value, task_value)
        return self.analyses.get(task_value, Analysis.default())

    async def execute_task(self, task_value: str, analysis: Analysis) -> str:
        await self._call("execute_task", task_value, (task_value, analysis.action))
        return self.results.get(task_value, f"Completed: {task_value}")

    async def get_additional_tasks(self, context: TaskContext, prior_result: str) -> list[str]:
        await self._call("get_additional_tasks", context.current, context)
        return self.follow_ups.pop(context.current, [])


def demo_backend(goal: str) -> ScriptedBackend:
    """Small canned plan used by ``agentloop run --offline``."""
    return ScriptedBackend(
        initial_tasks=[
            f"Research what is needed to {goal.lower()}",
            f"Draft a plan to {goal.lower()}",
        ],
        follow_ups={
            f"Draft a plan to {goal.lower()}": [f"Review the plan to {goal.lower()}"],
        },
        latency_seconds=0.2,
    )
