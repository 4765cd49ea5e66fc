"""Execution runtime: the agent loop, playback control and observers."""

from agentloop.runtime.agent import AutonomousAgent
from agentloop.runtime.observer import AgentObserver, RecordingObserver
from agentloop.runtime.playback import PlaybackController

__all__ = [
    "AgentObserver",
    "AutonomousAgent",
    "PlaybackController",
    "RecordingObserver",
]
