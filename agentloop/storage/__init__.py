"""Task storage."""

from agentloop.storage.task_store import InMemoryTaskStore, TaskMutation, TaskStore

__all__ = ["InMemoryTaskStore", "TaskMutation", "TaskStore"]
