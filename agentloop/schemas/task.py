"""
Task Schema - One decomposed unit of work toward a goal.

Tasks are created by the execution loop whenever the backend returns a
decomposition or a follow-up list, appended to the task store in creation
order and mutated in place as the loop progresses. They are never deleted;
finished tasks stay in the store as history.
"""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from agentloop.errors import InvalidTaskTransitionError


class TaskStatus(StrEnum):
    """Status of a task. Transitions only move forward."""

    STARTED = "started"  # Created, waiting to be picked up
    EXECUTING = "executing"  # Selected for the current iteration
    COMPLETED = "completed"  # Result attached
    FINAL = "final"  # Completed and no follow-ups were derived from it

    def is_pending(self) -> bool:
        return self == TaskStatus.STARTED

    def is_terminal(self) -> bool:
        """Check if the task has finished executing (completed or final)."""
        return self in (TaskStatus.COMPLETED, TaskStatus.FINAL)


# Allowed next status for every status; anything else is a regression or a skip.
_NEXT_STATUS: dict[TaskStatus, TaskStatus | None] = {
    TaskStatus.STARTED: TaskStatus.EXECUTING,
    TaskStatus.EXECUTING: TaskStatus.COMPLETED,
    TaskStatus.COMPLETED: TaskStatus.FINAL,
    TaskStatus.FINAL: None,
}


def new_task_id() -> str:
    """Time-ordered unique task id."""
    return uuid.uuid1().hex


class Task(BaseModel):
    """A single unit of work."""

    id: str = Field(default_factory=new_task_id)
    value: str = ""
    status: TaskStatus = TaskStatus.STARTED
    result: str | None = None

    # Owning agent, so several agents can share one store
    agent_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"extra": "allow"}

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)

    def can_transition_to(self, status: TaskStatus) -> bool:
        return _NEXT_STATUS[self.status] == status

    def transition_to(self, status: TaskStatus, result: str | None = None) -> "Task":
        """
        Move the task one step forward.

        Args:
            status: The requested next status
            result: Output to attach (only meaningful when completing)

        Raises:
            InvalidTaskTransitionError: If the move is not the single allowed next step
        """
        if not self.can_transition_to(status):
            raise InvalidTaskTransitionError(self.id, self.status.value, status.value)
        self.status = status
        if status == TaskStatus.COMPLETED:
            self.result = result
        return self
