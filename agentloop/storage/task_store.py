"""
Task Store - Ordered task storage shared between agents and the UI.

The execution loop only relies on three operations:
- append(task): add a task at the end, preserving creation order
- list_by_status(status): read tasks in insertion order
- mutate(task_id, fn): apply an in-place change to one task

Implementations must give read-your-writes consistency and must be safe
for concurrent append/read when several agents share a store. The loop
itself does no locking.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable

from agentloop.errors import TaskNotFoundError
from agentloop.schemas.task import Task, TaskStatus

logger = logging.getLogger(__name__)

TaskMutation = Callable[[Task], None]


class TaskStore(ABC):
    """Abstract task store."""

    @abstractmethod
    async def append(self, task: Task) -> Task:
        """Append a task. Raises ValueError if the id is already present."""
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: TaskStatus | None = None,
        agent_id: str | None = None,
    ) -> list[Task]:
        """
        Return tasks in insertion order.

        Args:
            status: Only tasks with this status (None = all)
            agent_id: Only tasks created by this agent (None = all agents)
        """
        pass

    @abstractmethod
    async def mutate(self, task_id: str, fn: TaskMutation) -> Task:
        """
        Apply ``fn`` to the stored task and return the updated task.

        Raises:
            TaskNotFoundError: If no task has this id
        """
        pass

    async def get(self, task_id: str) -> Task | None:
        for task in await self.list_by_status():
            if task.id == task_id:
                return task
        return None


class InMemoryTaskStore(TaskStore):
    """
    Process-local task store.

    Tasks are kept in an OrderedDict keyed by id. Reads return copies so
    callers can only change state through mutate().

    Example:
        store = InMemoryTaskStore()
        await store.append(Task(value="Book flight"))
        pending = await store.list_by_status(TaskStatus.STARTED)
    """

    def __init__(self):
        self._tasks: OrderedDict[str, Task] = OrderedDict()
        self._lock = asyncio.Lock()

    async def append(self, task: Task) -> Task:
        async with self._lock:
            if task.id in self._tasks:
                raise ValueError(f"Task already exists: {task.id}")
            self._tasks[task.id] = task.model_copy(deep=True)
            logger.debug(f"Task {task.id} appended ({len(self._tasks)} total)")
            return task.model_copy(deep=True)

    async def list_by_status(
        self,
        status: TaskStatus | None = None,
        agent_id: str | None = None,
    ) -> list[Task]:
        async with self._lock:
            return [
                task.model_copy(deep=True)
                for task in self._tasks.values()
                if (status is None or task.status == status)
                and (agent_id is None or task.agent_id == agent_id)
            ]

    async def mutate(self, task_id: str, fn: TaskMutation) -> Task:
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            # Apply to a copy so a failing mutation leaves the stored task untouched
            updated = task.model_copy(deep=True)
            fn(updated)
            self._tasks[task_id] = updated
            return updated.model_copy(deep=True)

    async def get(self, task_id: str) -> Task | None:
        async with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy(deep=True) if task else None

    async def clear(self) -> None:
        async with self._lock:
            self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)
