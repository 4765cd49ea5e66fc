"""Shared fixtures for agentloop tests."""

import pytest

from agentloop.backend import ScriptedBackend
from agentloop.config import AgentSettings
from agentloop.observability import clear_trace_context
from agentloop.runtime import AutonomousAgent, RecordingObserver
from agentloop.storage import InMemoryTaskStore


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point configuration at an empty temp file and reset trace context."""
    monkeypatch.setenv("AGENTLOOP_CONFIG", str(tmp_path / "configuration.json"))
    monkeypatch.delenv("AGENTLOOP_API_KEY", raising=False)
    monkeypatch.delenv("AGENTLOOP_API_BASE", raising=False)
    clear_trace_context()
    yield
    clear_trace_context()


@pytest.fixture
def store():
    return InMemoryTaskStore()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_agent(store, observer):
    """Build an agent with no pacing delays."""

    def _make(
        backend: ScriptedBackend,
        goal: str = "Plan a trip",
        **settings_kwargs,
    ) -> AutonomousAgent:
        settings_kwargs.setdefault("iteration_delay_seconds", 0)
        settings_kwargs.setdefault("task_delay_seconds", 0)
        return AutonomousAgent(
            goal=goal,
            backend=backend,
            store=store,
            observer=observer,
            settings=AgentSettings(**settings_kwargs),
        )

    return _make
