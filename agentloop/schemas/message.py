"""Messages emitted by the agent to its observer."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from agentloop.schemas.task import Task, TaskStatus


class MessageType(StrEnum):
    """Kind of message sent to the event sink."""

    GOAL = "goal"
    THINKING = "thinking"
    TASK = "task"
    SYSTEM = "system"


class Message(BaseModel):
    """
    A tagged lifecycle message.

    Task messages carry the task id, value and status, plus ``info`` once
    a result is attached. The other types only use ``value``.
    """

    type: MessageType
    value: str = ""
    task_id: str | None = None
    status: TaskStatus | None = None
    info: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"extra": "allow"}

    @classmethod
    def goal(cls, value: str) -> "Message":
        return cls(type=MessageType.GOAL, value=value)

    @classmethod
    def thinking(cls) -> "Message":
        return cls(type=MessageType.THINKING)

    @classmethod
    def system(cls, value: str) -> "Message":
        return cls(type=MessageType.SYSTEM, value=value)

    @classmethod
    def for_task(cls, task: Task) -> "Message":
        """Snapshot of a task's current state."""
        return cls(
            type=MessageType.TASK,
            value=task.value,
            task_id=task.id,
            status=task.status,
            info=task.result,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {"type": self.type.value, "value": self.value}
        if self.type == MessageType.TASK:
            data["task_id"] = self.task_id
            data["status"] = self.status.value if self.status else None
            if self.info is not None:
                data["info"] = self.info
        return data
