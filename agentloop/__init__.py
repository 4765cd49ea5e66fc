"""
agentloop - autonomous goal-driven task agent.

An AutonomousAgent decomposes a goal into tasks through an execution
backend, runs them one at a time, derives follow-up tasks from every
result and stops when nothing is pending, the loop budget is spent, or it
is told to stop.
"""

from agentloop.backend import (
    Analysis,
    ExecutionBackend,
    HttpExecutionBackend,
    ScriptedBackend,
    TaskContext,
)
from agentloop.config import AgentMode, AgentSettings, ModelSettings, PlaybackControl
from agentloop.errors import AgentLoopError, BackendError, ErrorKind
from agentloop.runtime import (
    AgentObserver,
    AutonomousAgent,
    PlaybackController,
    RecordingObserver,
)
from agentloop.schemas import AgentRunState, LoopState, Message, MessageType, Task, TaskStatus
from agentloop.storage import InMemoryTaskStore, TaskStore

__version__ = "0.1.0"

__all__ = [
    "AgentLoopError",
    "AgentMode",
    "AgentObserver",
    "AgentRunState",
    "AgentSettings",
    "Analysis",
    "AutonomousAgent",
    "BackendError",
    "ErrorKind",
    "ExecutionBackend",
    "HttpExecutionBackend",
    "InMemoryTaskStore",
    "LoopState",
    "Message",
    "MessageType",
    "ModelSettings",
    "PlaybackControl",
    "PlaybackController",
    "RecordingObserver",
    "ScriptedBackend",
    "Task",
    "TaskContext",
    "TaskStatus",
    "TaskStore",
]
