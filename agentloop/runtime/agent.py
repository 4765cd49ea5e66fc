"""
Autonomous Agent - the execution loop state machine.

Given a goal, the agent asks the backend for an initial decomposition and
then repeats plan → act → replan until no pending task is left, the loop
budget is spent, or it is stopped:

    IDLE → RUNNING → {PAUSED, COMPLETED, STOPPED, LOOP_LIMIT_REACHED, FAILED}

Each iteration consumes the oldest pending task:
1. Pause check (stepwise mode consumes one step authorisation)
2. Completion check (no pending tasks → COMPLETED)
3. Budget check (loop_count > max_loops → LOOP_LIMIT_REACHED)
4. Mark the task executing, optionally analyze it, execute it
5. Mark it completed, ask for follow-ups, append them as new tasks
6. Mark it final when nothing was derived from it

The only suspension points are backend calls and presentation delays.
Stopping is cooperative: in-flight backend calls are never interrupted,
their results are dropped once the agent is stopped. A pause lets the
current iteration finish and takes effect at the next loop head, so at
most one task is ever executing.
"""

import asyncio
import logging
import uuid
from datetime import datetime

from agentloop import strings
from agentloop.backend.base import Analysis, AnalysisAction, ExecutionBackend, TaskContext
from agentloop.config import AgentSettings, PlaybackControl
from agentloop.errors import (
    BackendError,
    ErrorClassification,
    ErrorKind,
    classify_backend_error,
)
from agentloop.observability import set_trace_context
from agentloop.runtime.observer import AgentObserver
from agentloop.runtime.playback import PlaybackController
from agentloop.schemas.message import Message
from agentloop.schemas.run import AgentRunState, LoopState
from agentloop.schemas.task import Task, TaskStatus
from agentloop.storage.task_store import TaskStore

logger = logging.getLogger(__name__)

_ANALYSIS_MESSAGE_KEYS: dict[str, str] = {
    AnalysisAction.SEARCH: "ANALYSIS_SEARCH",
    AnalysisAction.WIKIPEDIA: "ANALYSIS_WIKIPEDIA",
    AnalysisAction.IMAGE: "ANALYSIS_IMAGE",
    AnalysisAction.CODE: "ANALYSIS_CODE",
}


class AutonomousAgent:
    """
    Drives one goal to completion.

    Example:
        agent = AutonomousAgent(
            goal="Plan a trip",
            backend=HttpExecutionBackend(),
            store=InMemoryTaskStore(),
            observer=RecordingObserver(),
            settings=AgentSettings(max_loops=5),
        )
        state = await agent.run()
    """

    def __init__(
        self,
        goal: str,
        backend: ExecutionBackend,
        store: TaskStore,
        observer: AgentObserver,
        settings: AgentSettings | None = None,
        name: str = "AgentLoop",
        agent_id: str | None = None,
    ):
        """
        Initialize the agent.

        Args:
            goal: Top-level objective, immutable for the agent's lifetime
            backend: Decomposition / analysis / execution service
            store: Task store, possibly shared with other agents
            observer: Receives messages, pause and shutdown callbacks
            settings: Loop budget, web search toggle, mode and pacing
            name: Display name
            agent_id: Stable id (generated when omitted)
        """
        self.goal = goal
        self.name = name
        self.id = agent_id or uuid.uuid4().hex
        self.backend = backend
        self.store = store
        self.observer = observer
        self.settings = settings or AgentSettings()
        self.playback = PlaybackController(self.settings.mode, self.settings.playback_control)
        self.run_state = AgentRunState()
        self._trace_id = uuid.uuid4().hex
        self._driving = False
        self._closed = False

    # === PUBLIC STATE ===

    @property
    def state(self) -> LoopState:
        return self.run_state.state

    @property
    def is_running(self) -> bool:
        return self.run_state.running

    @property
    def loop_count(self) -> int:
        return self.run_state.loop_count

    @property
    def max_loops(self) -> int:
        return self.settings.effective_max_loops()

    @property
    def completed_tasks(self) -> list[str]:
        return list(self.run_state.completed_task_values)

    async def pending_tasks(self) -> list[Task]:
        """Tasks of this agent still waiting to run, oldest first."""
        return await self.store.list_by_status(TaskStatus.STARTED, agent_id=self.id)

    # === CONTROL SURFACE ===

    async def run(self) -> LoopState:
        """
        Drive the loop until it pauses or reaches a terminal state.

        The first call bootstraps the goal. Later calls continue a paused
        run. Calling run() on a finished agent is a no-op.

        Returns:
            The state the loop stopped in
        """
        if self.run_state.is_terminal:
            logger.warning(f"Agent {self.id} already finished ({self.state}); ignoring run()")
            return self.state
        if self._driving:
            logger.warning(f"Agent {self.id} is already running; ignoring concurrent run()")
            return self.state

        set_trace_context(trace_id=self._trace_id, agent_id=self.id, goal=self.goal)
        self._driving = True
        try:
            if self.state == LoopState.IDLE:
                self.run_state.running = True
                self.run_state.state = LoopState.RUNNING
                self.run_state.started_at = datetime.now()
                logger.info(f"Starting agent '{self.name}' for goal: {self.goal}")
                if not await self._start_goal():
                    return self.state
            else:
                self.run_state.state = LoopState.RUNNING

            await self._loop()
        except Exception as e:
            logger.exception(f"Agent {self.id} failed with an unexpected error")
            self.run_state.error = ErrorClassification(
                kind=ErrorKind.UNCLASSIFIED,
                status=None,
                message_key="ERROR_UNEXPECTED",
                detail=str(e),
            )
            self._send_system(strings.get("ERROR_UNEXPECTED"))
            self._shutdown(LoopState.FAILED)
        finally:
            self._driving = False

        return self.state

    def stop(self) -> None:
        """Manual shutdown. Takes effect at the loop's next checkpoint."""
        if self.run_state.is_terminal:
            return
        self._send_system(strings.get("AGENT_MANUALLY_SHUT_DOWN"))
        self.run_state.running = False
        self._shutdown(LoopState.STOPPED)

    def set_running(self, running: bool) -> None:
        """Hard stop/resume flag, independent of stepwise control."""
        if self.run_state.is_terminal:
            return
        self.run_state.running = running

    def request_step(self) -> None:
        """Authorise exactly one more iteration in stepwise mode."""
        self.playback.request_step()

    def update_playback_control(self, control: PlaybackControl) -> None:
        self.playback.update(control)

    async def step(self) -> LoopState:
        """Authorise one iteration and drive the loop until it pauses again."""
        self.request_step()
        self.set_running(True)
        return await self.run()

    async def resume(self) -> LoopState:
        """Continue a paused run (one iteration at a time in stepwise mode)."""
        if self.playback.is_stepwise:
            return await self.step()
        self.set_running(True)
        return await self.run()

    def report_backend_error(self, error: BackendError) -> None:
        """
        Surface a backend failure reported outside the awaited call path.

        Quota errors are shown even when the agent is already shutting down,
        as long as close() has not been called.
        """
        if self._closed:
            return
        logger.warning(f"Backend error reported: {error!r}", extra={"event": "backend_error"})
        if error.kind == ErrorKind.QUOTA_EXCEEDED:
            self._notify(Message.system(strings.get("RATE_LIMIT_EXCEEDED")))

    def close(self) -> None:
        """Tear down: no callback reaches the observer after this."""
        self._closed = True

    # === BOOTSTRAP ===

    async def _start_goal(self) -> bool:
        """Emit the goal and materialise the initial tasks. False on failure or stop."""
        self._send(Message.goal(self.goal))
        self._send(Message.thinking())

        try:
            values = await self.backend.get_initial_tasks(self.goal, self.settings)
        except Exception as e:
            if self.run_state.is_terminal:
                return False
            classification = classify_backend_error(e)
            logger.warning(
                f"Initial task decomposition failed: {e!r}",
                extra={"event": "initial_tasks_failed"},
            )
            self.run_state.error = classification
            self._send_system(classification.user_message)
            self._shutdown(LoopState.FAILED)
            return False

        if self.run_state.is_terminal:
            return False
        # A pause during decomposition keeps the tasks; the loop head pauses
        await self._create_tasks(values)
        return True

    # === LOOP ===

    async def _loop(self) -> None:
        while True:
            if self.run_state.is_terminal:
                return

            if not self.run_state.running:
                self.run_state.state = LoopState.PAUSED
                logger.info("Paused", extra={"event": "paused"})
                return

            # Stepwise: each step authorises one iteration
            if self.playback.is_stepwise and not self.playback.consume():
                self.run_state.running = False
                self.run_state.state = LoopState.PAUSED
                logger.info("Paused, waiting for a step", extra={"event": "paused"})
                self._notify_pause()
                return

            if not await self.pending_tasks():
                self._send_system(strings.get("ALL_TASKS_COMPLETED"))
                self._shutdown(LoopState.COMPLETED)
                return

            self.run_state.loop_count += 1
            if self.run_state.loop_count > self.max_loops:
                self._send_system(strings.get("LOOPS_REACHED"))
                self._shutdown(LoopState.LOOP_LIMIT_REACHED)
                return

            logger.info(
                f"Iteration {self.run_state.loop_count}/{self.max_loops}",
                extra={"event": "iteration", "loop_count": self.run_state.loop_count},
            )
            await self._iterate()

    async def _iterate(self) -> None:
        """
        Run one iteration on the oldest pending task.

        A pause requested mid-iteration lets the iteration finish and takes
        effect at the next loop head. Only a stop discards in-flight results.
        """
        await self._pause_for(self.settings.iteration_delay_seconds)
        if self.run_state.is_terminal:
            return

        pending = await self.pending_tasks()
        if not pending:
            return
        task = await self._update_task(pending[0].id, TaskStatus.EXECUTING)
        self.run_state.current_task_id = task.id
        self._send(Message.thinking())

        analysis = await self._analyze(task)
        if self.run_state.is_terminal:
            return

        try:
            result = await self.backend.execute_task(task.value, analysis)
        except BackendError as e:
            if not self.run_state.is_terminal:
                await self._fail_task(task, e)
            return
        if self.run_state.is_terminal:
            return

        await self._update_task(task.id, TaskStatus.COMPLETED, result=result)
        self.run_state.completed_task_values.append(task.value or "")

        await self._pause_for(self.settings.iteration_delay_seconds)
        if self.run_state.is_terminal:
            return
        self._send(Message.thinking())

        remaining = [t.value for t in await self.pending_tasks()]
        context = TaskContext(
            current=task.value,
            remaining=remaining,
            completed=list(self.run_state.completed_task_values),
        )
        try:
            new_values = await self.backend.get_additional_tasks(context, result)
        except BackendError as e:
            if self.run_state.is_terminal:
                return
            logger.warning(
                f"Follow-up generation failed for task {task.id}: {e!r}",
                extra={"event": "follow_up_failed", "task_id": task.id},
            )
            self._send_system(strings.get("ERROR_ADDING_ADDITIONAL_TASKS"))
            await self._update_task(task.id, TaskStatus.FINAL)
            self.run_state.current_task_id = None
            return
        if self.run_state.is_terminal:
            return

        created = await self._create_tasks(new_values)
        if not created and not self.run_state.is_terminal:
            await self._update_task(task.id, TaskStatus.FINAL)
        self.run_state.current_task_id = None

    async def _analyze(self, task: Task) -> Analysis:
        if not self.settings.web_search_enabled:
            return Analysis.default()
        try:
            analysis = await self.backend.analyze_task(task.value)
        except BackendError as e:
            logger.warning(
                f"Task analysis failed for task {task.id}: {e!r}",
                extra={"event": "analysis_failed", "task_id": task.id},
            )
            self._send_system(strings.get("ERROR_ANALYZING_TASK"))
            return Analysis.default()
        self._send_analysis(analysis)
        return analysis

    async def _fail_task(self, task: Task, error: BackendError) -> None:
        """Execution failed: keep the error as the result and derive nothing from it."""
        logger.warning(
            f"Execution failed for task {task.id}: {error!r}",
            extra={"event": "execution_failed", "task_id": task.id},
        )
        self._send_system(strings.get("ERROR_EXECUTING_TASK"))
        await self._update_task(task.id, TaskStatus.COMPLETED, result=str(error))
        self.run_state.completed_task_values.append(task.value or "")
        await self._update_task(task.id, TaskStatus.FINAL)
        self.run_state.current_task_id = None

    # === TASK STORE PROTOCOL ===

    async def _create_tasks(self, values: list[str]) -> list[Task]:
        created: list[Task] = []
        for value in values:
            await self._pause_for(self.settings.task_delay_seconds)
            if self.run_state.is_terminal:
                break
            task = await self.store.append(Task(value=value, agent_id=self.id))
            self._send(Message.for_task(task))
            created.append(task)
        return created

    async def _update_task(
        self,
        task_id: str,
        status: TaskStatus,
        result: str | None = None,
    ) -> Task:
        updated = await self.store.mutate(task_id, lambda t: t.transition_to(status, result))
        logger.debug(
            f"Task {task_id} -> {status}",
            extra={"event": "task_status", "task_id": task_id},
        )
        self._send(Message.for_task(updated))
        return updated

    # === MESSAGE EMISSION ===

    def _send(self, message: Message) -> None:
        """Deliver a message unless the run has already ended."""
        if not self.run_state.is_terminal:
            self._notify(message)

    def _send_system(self, text: str) -> None:
        self._send(Message.system(text))

    def _send_analysis(self, analysis: Analysis) -> None:
        key = _ANALYSIS_MESSAGE_KEYS.get(analysis.action, "ANALYSIS_REASON")
        self._send_system(strings.get(key, arg=analysis.arg))

    def _notify(self, message: Message) -> None:
        if self._closed:
            return
        try:
            self.observer.on_message(message)
        except Exception as e:
            logger.error(f"Observer error for {message.type} message: {e}")

    def _notify_pause(self) -> None:
        if self._closed:
            return
        try:
            self.observer.on_pause(self.playback.control)
        except Exception as e:
            logger.error(f"Observer error on pause: {e}")

    def _shutdown(self, state: LoopState) -> None:
        """Enter a terminal state and call the shutdown hook exactly once."""
        if self.run_state.is_terminal:
            return
        self.run_state.state = state
        self.run_state.running = False
        self.run_state.ended_at = datetime.now()
        logger.info(
            f"Agent shut down: {state} after {self.run_state.loop_count} loop(s)",
            extra={"event": "shutdown", "state": state.value},
        )
        if self._closed:
            return
        try:
            self.observer.on_shutdown()
        except Exception as e:
            logger.error(f"Observer error on shutdown: {e}")

    @staticmethod
    async def _pause_for(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
