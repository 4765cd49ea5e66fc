"""
HTTP Execution Backend - talks to the agent platform REST API.

Endpoints (all POST, JSON in and out):
- {api_base}/agent/start    -> {"newTasks": [...]}
- {api_base}/agent/analyze  -> {"reasoning": ..., "action": ..., "arg": ...}
- {api_base}/agent/execute  -> {"response": "..."}
- {api_base}/agent/create   -> {"newTasks": [...]}

Non-2xx responses and transport failures are raised as BackendError. An
optional on_error hook sees every failure first, so the owner can surface
quota errors even when the failing call is no longer awaited.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from agentloop.backend.base import Analysis, ExecutionBackend, TaskContext
from agentloop.config import ModelSettings, get_api_base, get_api_key
from agentloop.errors import BackendError, ErrorKind

if TYPE_CHECKING:
    from agentloop.config import AgentSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

BackendErrorHook = Callable[[BackendError], None]


class HttpExecutionBackend(ExecutionBackend):
    """
    Execution backend backed by the agent platform HTTP API.

    Example:
        backend = HttpExecutionBackend(api_base="http://localhost:8000/api")
        tasks = await backend.get_initial_tasks("Plan a trip", settings)
        await backend.aclose()
    """

    def __init__(
        self,
        api_base: str | None = None,
        api_key: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        on_error: BackendErrorHook | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the backend.

        Args:
            api_base: Platform base URL (defaults to configuration)
            api_key: Bearer token (defaults to configuration / environment)
            timeout: Per-request timeout in seconds, None disables it
            on_error: Hook called with every BackendError before it is raised
            client: Pre-built AsyncClient, mainly for tests (MockTransport)
        """
        self.api_base = (api_base or get_api_base()).rstrip("/")
        self.api_key = api_key if api_key is not None else get_api_key()
        self.on_error = on_error
        self._goal = ""
        self._model_settings = ModelSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _base_payload(self) -> dict[str, Any]:
        return {"goal": self._goal, "model_settings": self._model_settings.to_dict()}

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.api_base}{path}"
        try:
            response = await self._client.post(url, json=payload, headers=self._headers)
        except httpx.TimeoutException as e:
            error = BackendError(
                f"Request to {path} timed out", kind=ErrorKind.TRANSIENT_BACKEND_FAILURE
            )
            raise self._fail(error) from e
        except httpx.HTTPError as e:
            error = BackendError(
                f"Request to {path} failed: {e}", kind=ErrorKind.TRANSIENT_BACKEND_FAILURE
            )
            raise self._fail(error) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except Exception:
                detail = response.text
            error = BackendError(
                f"{path} returned HTTP {response.status_code}: {detail}",
                status=response.status_code,
            )
            raise self._fail(error)

        try:
            data = response.json()
        except ValueError as e:
            error = BackendError(
                f"{path} returned invalid JSON", kind=ErrorKind.TRANSIENT_BACKEND_FAILURE
            )
            raise self._fail(error) from e
        if not isinstance(data, dict):
            error = BackendError(
                f"{path} returned unexpected payload", kind=ErrorKind.TRANSIENT_BACKEND_FAILURE
            )
            raise self._fail(error)
        return data

    def _fail(self, error: BackendError) -> BackendError:
        logger.warning(f"Backend call failed: {error!r}")
        if self.on_error is not None:
            self.on_error(error)
        return error

    def _task_values(self, data: dict[str, Any]) -> list[str]:
        values = data.get("newTasks", [])
        if not isinstance(values, list):
            error = BackendError(
                "newTasks must be a list", kind=ErrorKind.TRANSIENT_BACKEND_FAILURE
            )
            raise self._fail(error)
        return ["" if v is None else str(v) for v in values]

    async def get_initial_tasks(self, goal: str, settings: "AgentSettings") -> list[str]:
        self._goal = goal
        self._model_settings = settings.model_settings
        data = await self._post("/agent/start", self._base_payload())
        return self._task_values(data)

    async def analyze_task(self, task_value: str) -> Analysis:
        data = await self._post("/agent/analyze", {**self._base_payload(), "task": task_value})
        return Analysis(
            reasoning=str(data.get("reasoning", "")),
            action=str(data.get("action", "reason")),
            arg=str(data.get("arg", "")),
        )

    async def execute_task(self, task_value: str, analysis: Analysis) -> str:
        data = await self._post(
            "/agent/execute",
            {**self._base_payload(), "task": task_value, "analysis": analysis.to_dict()},
        )
        return str(data.get("response", ""))

    async def get_additional_tasks(self, context: TaskContext, prior_result: str) -> list[str]:
        data = await self._post(
            "/agent/create",
            {
                **self._base_payload(),
                "last_task": context.current,
                "tasks": context.remaining,
                "completed_tasks": context.completed,
                "result": prior_result,
            },
        )
        return self._task_values(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
