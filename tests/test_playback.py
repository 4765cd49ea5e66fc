"""Tests for PlaybackController step semantics."""

from agentloop.config import AgentMode, PlaybackControl
from agentloop.runtime.playback import PlaybackController


class TestPlaybackController:
    def test_defaults_per_mode(self):
        assert PlaybackController(AgentMode.AUTOMATIC).control == PlaybackControl.PLAY
        assert PlaybackController(AgentMode.STEPWISE).control == PlaybackControl.PAUSE

    def test_explicit_initial_control(self):
        controller = PlaybackController(AgentMode.STEPWISE, PlaybackControl.PLAY)

        assert controller.step_pending

    def test_automatic_always_authorises(self):
        controller = PlaybackController(AgentMode.AUTOMATIC)

        assert all(controller.consume() for _ in range(5))

    def test_stepwise_pauses_without_step(self):
        controller = PlaybackController(AgentMode.STEPWISE)

        assert controller.consume() is False
        assert controller.control == PlaybackControl.PAUSE

    def test_step_authorises_exactly_one_iteration(self):
        controller = PlaybackController(AgentMode.STEPWISE)

        controller.request_step()

        assert controller.consume() is True
        assert controller.control == PlaybackControl.PAUSE
        assert controller.consume() is False

    def test_double_step_request_is_idempotent(self):
        once = PlaybackController(AgentMode.STEPWISE)
        twice = PlaybackController(AgentMode.STEPWISE)

        once.request_step()
        twice.request_step()
        twice.request_step()

        assert once.control == twice.control
        assert [once.consume(), once.consume()] == [twice.consume(), twice.consume()]

    def test_update_and_pause(self):
        controller = PlaybackController(AgentMode.STEPWISE)

        controller.update(PlaybackControl.PLAY)
        assert controller.step_pending
        controller.pause()
        assert not controller.step_pending
