"""
Run Schema - Mutable per-run state owned by the execution loop.

One AgentRunState exists per agent instance. Nothing outside the loop
writes to it; observers and tests read it.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from agentloop.errors import ErrorClassification


class LoopState(StrEnum):
    """State of the execution loop."""

    IDLE = "idle"  # Constructed, never run
    RUNNING = "running"
    PAUSED = "paused"  # Stepwise mode waiting for a step
    COMPLETED = "completed"  # Pending task set ran empty
    STOPPED = "stopped"  # Manual shutdown
    LOOP_LIMIT_REACHED = "loop_limit_reached"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """Terminal states trigger the shutdown hook exactly once."""
        return self in (
            LoopState.COMPLETED,
            LoopState.STOPPED,
            LoopState.LOOP_LIMIT_REACHED,
            LoopState.FAILED,
        )


class AgentRunState(BaseModel):
    """Counters and flags for a single run."""

    state: LoopState = LoopState.IDLE
    running: bool = False
    loop_count: int = 0
    completed_task_values: list[str] = Field(default_factory=list)
    current_task_id: str | None = None

    # Populated when the run ends in FAILED
    error: ErrorClassification | None = None

    started_at: datetime | None = None
    ended_at: datetime | None = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal()

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "running": self.running,
            "loop_count": self.loop_count,
            "completed_task_values": list(self.completed_task_values),
            "current_task_id": self.current_task_id,
            "error": self.error.to_dict() if self.error else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
