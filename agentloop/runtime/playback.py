"""
Playback Controller - run/pause intent and single-step semantics.

In AUTOMATIC mode every iteration is authorised. In STEPWISE mode an
iteration only proceeds when control is PLAY, and consuming it resets
control to PAUSE, so each step authorises exactly one iteration. Step
requests do not queue: a second request before the first is consumed
has no effect.
"""

import logging

from agentloop.config import AgentMode, PlaybackControl

logger = logging.getLogger(__name__)


class PlaybackController:
    """Tracks the orchestration mode and the current playback control."""

    def __init__(
        self,
        mode: AgentMode = AgentMode.AUTOMATIC,
        control: PlaybackControl | None = None,
    ):
        self.mode = AgentMode(mode)
        if control is None:
            control = PlaybackControl.PAUSE if self.is_stepwise else PlaybackControl.PLAY
        self.control = PlaybackControl(control)

    @property
    def is_stepwise(self) -> bool:
        return self.mode == AgentMode.STEPWISE

    @property
    def step_pending(self) -> bool:
        return self.is_stepwise and self.control == PlaybackControl.PLAY

    def request_step(self) -> None:
        """Authorise the next iteration. Idempotent while a step is pending."""
        if self.control == PlaybackControl.PLAY:
            logger.debug("Step already pending; ignoring duplicate request")
            return
        self.control = PlaybackControl.PLAY

    def pause(self) -> None:
        self.control = PlaybackControl.PAUSE

    def update(self, control: PlaybackControl) -> None:
        self.control = PlaybackControl(control)

    def consume(self) -> bool:
        """
        Decide whether the upcoming iteration may run.

        Returns:
            True if the iteration is authorised. In STEPWISE mode a PLAY
            control is reset to PAUSE so the following iteration pauses.
        """
        if not self.is_stepwise:
            return True
        if self.control == PlaybackControl.PAUSE:
            return False
        self.control = PlaybackControl.PAUSE
        return True
