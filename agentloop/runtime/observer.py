"""
Agent observer - the event sink the execution loop reports to.

The loop calls these methods synchronously and never awaits them. An
observer that needs to do async work must schedule it itself.
"""

import logging
from typing import Protocol, runtime_checkable

from agentloop.config import PlaybackControl
from agentloop.schemas.message import Message, MessageType

logger = logging.getLogger(__name__)


@runtime_checkable
class AgentObserver(Protocol):
    """Capabilities the loop requires from its owner."""

    def on_message(self, message: Message) -> None:
        """Receive a lifecycle message for presentation."""
        ...

    def on_shutdown(self) -> None:
        """Called exactly once when the run reaches a terminal state."""
        ...

    def on_pause(self, control: PlaybackControl) -> None:
        """Called when a stepwise run pauses waiting for a step."""
        ...


class RecordingObserver:
    """Observer that keeps everything it receives. Handy for tests and replay."""

    def __init__(self):
        self.messages: list[Message] = []
        self.shutdown_count = 0
        self.pauses: list[PlaybackControl] = []

    def on_message(self, message: Message) -> None:
        self.messages.append(message)

    def on_shutdown(self) -> None:
        self.shutdown_count += 1

    def on_pause(self, control: PlaybackControl) -> None:
        self.pauses.append(control)

    def of_type(self, message_type: MessageType) -> list[Message]:
        return [m for m in self.messages if m.type == message_type]

    @property
    def system_texts(self) -> list[str]:
        return [m.value for m in self.of_type(MessageType.SYSTEM)]

    def task_history(self, task_id: str) -> list[str]:
        """Statuses emitted for one task, in order."""
        return [
            m.status.value
            for m in self.of_type(MessageType.TASK)
            if m.task_id == task_id and m.status is not None
        ]
