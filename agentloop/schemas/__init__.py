"""Data schemas: tasks, messages and run state."""

from agentloop.schemas.message import Message, MessageType
from agentloop.schemas.run import AgentRunState, LoopState
from agentloop.schemas.task import Task, TaskStatus, new_task_id

__all__ = [
    "AgentRunState",
    "LoopState",
    "Message",
    "MessageType",
    "Task",
    "TaskStatus",
    "new_task_id",
]
