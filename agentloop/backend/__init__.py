"""Execution backend implementations."""

from agentloop.backend.base import Analysis, AnalysisAction, ExecutionBackend, TaskContext
from agentloop.backend.http import HttpExecutionBackend
from agentloop.backend.scripted import ScriptedBackend, demo_backend

__all__ = [
    "Analysis",
    "AnalysisAction",
    "ExecutionBackend",
    "HttpExecutionBackend",
    "ScriptedBackend",
    "TaskContext",
    "demo_backend",
]
