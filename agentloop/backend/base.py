"""Execution backend abstraction for pluggable task execution services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentloop.config import AgentSettings


class AnalysisAction(StrEnum):
    """Strategy chosen for executing a task."""

    REASON = "reason"
    SEARCH = "search"
    WIKIPEDIA = "wikipedia"
    IMAGE = "image"
    CODE = "code"


@dataclass
class Analysis:
    """How the backend intends to execute a task."""

    reasoning: str
    action: str
    arg: str = ""

    @classmethod
    def default(cls) -> "Analysis":
        """Plain reasoning, used when web search augmentation is off."""
        return cls(reasoning="I'll just think about it...", action=AnalysisAction.REASON, arg="")

    def to_dict(self) -> dict[str, str]:
        return {"reasoning": self.reasoning, "action": str(self.action), "arg": self.arg}


@dataclass
class TaskContext:
    """Task list snapshot handed to follow-up generation."""

    current: str
    remaining: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)


class ExecutionBackend(ABC):
    """
    Abstract execution backend - plug in any decomposition/execution service.

    Every method is a coroutine and may take arbitrary wall-clock time.
    get_initial_tasks and get_additional_tasks raise BackendError on failure.
    analyze_task and execute_task should return a best-effort value instead
    of raising; the loop still tolerates a BackendError from them.
    """

    @abstractmethod
    async def get_initial_tasks(self, goal: str, settings: "AgentSettings") -> list[str]:
        """Decompose the goal into initial task values."""
        pass

    @abstractmethod
    async def analyze_task(self, task_value: str) -> Analysis:
        """Pick a strategy for executing the task."""
        pass

    @abstractmethod
    async def execute_task(self, task_value: str, analysis: Analysis) -> str:
        """Execute the task and return its result."""
        pass

    @abstractmethod
    async def get_additional_tasks(self, context: TaskContext, prior_result: str) -> list[str]:
        """Derive follow-up task values from the last result."""
        pass

    async def aclose(self) -> None:
        """Release transport resources. Default is a no-op."""
        return None
