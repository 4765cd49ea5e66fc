"""
Command-line interface for agentloop.

Usage:
    agentloop run "Plan a trip to Japan" --max-loops 10
    agentloop run "Plan a trip to Japan" --stepwise --offline
    agentloop init --api-key sk-... --api-base http://localhost:8000/api
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from agentloop.backend import ExecutionBackend, HttpExecutionBackend, demo_backend
from agentloop.config import (
    AgentMode,
    AgentSettings,
    PlaybackControl,
    get_agentloop_config,
    get_api_base,
    is_valid_api_key,
    save_agentloop_config,
)
from agentloop.errors import ConfigurationError
from agentloop.observability import configure_logging
from agentloop.runtime.agent import AutonomousAgent
from agentloop.schemas.message import Message, MessageType
from agentloop.schemas.run import LoopState
from agentloop.schemas.task import TaskStatus
from agentloop.storage import InMemoryTaskStore

logger = logging.getLogger(__name__)

_TASK_STYLES: dict[TaskStatus, tuple[str, str]] = {
    TaskStatus.STARTED: ("📝", "Added task"),
    TaskStatus.EXECUTING: ("⚡", "Executing"),
    TaskStatus.COMPLETED: ("✅", "Completed"),
    TaskStatus.FINAL: ("🏁", "Finished"),
}


class ConsoleObserver:
    """Renders agent messages to the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def on_message(self, message: Message) -> None:
        if message.type == MessageType.GOAL:
            self.console.print(f"[bold magenta]🎯 Goal:[/] {escape(message.value)}")
        elif message.type == MessageType.THINKING:
            self.console.print("[dim]🤔 Thinking...[/]")
        elif message.type == MessageType.SYSTEM:
            self.console.print(f"[yellow]{escape(message.value)}[/]")
        elif message.type == MessageType.TASK and message.status is not None:
            icon, label = _TASK_STYLES[message.status]
            self.console.print(f"{icon} [bold]{label}:[/] {escape(message.value)}")
            if message.status == TaskStatus.COMPLETED and message.info:
                self.console.print(Panel(escape(message.info), border_style="green"))

    def on_shutdown(self) -> None:
        self.console.print("[bold red]Agent shut down.[/]")

    def on_pause(self, control: PlaybackControl) -> None:
        self.console.print(f"[cyan]⏸  Paused ({control}).[/]")


def print_title(console: Console) -> None:
    console.print(Panel.fit("[bold red]agentloop[/]", border_style="red"))
    console.print("Welcome to the agentloop CLI! This will set up your configuration file.\n")


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


async def _run_agent(args: argparse.Namespace, console: Console) -> LoopState:
    settings = AgentSettings.from_config(
        max_loops=args.max_loops,
        web_search_enabled=True if args.web_search else None,
        mode=AgentMode.STEPWISE if args.stepwise else None,
        playback_control=PlaybackControl.PAUSE if args.stepwise else None,
    )

    backend: ExecutionBackend
    if args.offline:
        backend = demo_backend(args.goal)
    else:
        backend = HttpExecutionBackend(api_base=args.api_base)

    agent = AutonomousAgent(
        goal=args.goal,
        backend=backend,
        store=InMemoryTaskStore(),
        observer=ConsoleObserver(console),
        settings=settings,
    )
    if isinstance(backend, HttpExecutionBackend):
        backend.on_error = agent.report_backend_error

    try:
        state = await agent.run()
        while state == LoopState.PAUSED and settings.mode == AgentMode.STEPWISE:
            answer = await asyncio.to_thread(
                console.input, "[cyan]Enter[/] to run the next step, [cyan]q[/] to stop: "
            )
            if answer.strip().lower() in ("q", "quit", "stop"):
                agent.stop()
                break
            state = await agent.step()
        return agent.state
    finally:
        agent.close()
        await backend.aclose()


def cmd_run(args: argparse.Namespace) -> int:
    configure_logging(level=args.log_level, format=args.log_format)
    console = Console()
    try:
        state = asyncio.run(_run_agent(args, console))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {escape(str(e))}")
        return 2
    except KeyboardInterrupt:
        console.print("[red]Interrupted.[/]")
        return 130

    console.print(f"Final state: [bold]{state}[/]")
    return 1 if state == LoopState.FAILED else 0


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


def cmd_init(args: argparse.Namespace) -> int:
    console = Console()
    print_title(console)

    api_key = args.api_key
    while not api_key or not is_valid_api_key(api_key):
        if api_key:
            console.print("[red]Invalid API key format. Expected 'sk-' followed by 48 characters.[/]")
        if not sys.stdin.isatty():
            console.print(
                "[red]No valid API key given and stdin is not interactive. "
                "Pass one with --api-key.[/]"
            )
            return 2
        api_key = console.input("API key: ", password=True).strip()

    config = get_agentloop_config()
    config["api_key"] = api_key
    config["api_base"] = args.api_base or config.get("api_base") or get_api_base()
    if args.max_loops:
        config["max_loops"] = args.max_loops

    path = save_agentloop_config(config)
    console.print(f"[green]Configuration written to {escape(str(path))}[/]")
    return 0


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentloop",
        description="agentloop - autonomous goal-driven task agent",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run an agent for a goal")
    run_parser.add_argument("goal", help="Top-level goal for the agent")
    run_parser.add_argument("--max-loops", type=int, default=None, help="Loop budget override")
    run_parser.add_argument(
        "--web-search", action="store_true", help="Analyze each task before executing it"
    )
    run_parser.add_argument(
        "--stepwise", action="store_true", help="Pause before every iteration"
    )
    run_parser.add_argument(
        "--offline", action="store_true", help="Use the built-in scripted backend"
    )
    run_parser.add_argument("--api-base", default=None, help="Agent platform base URL")
    run_parser.add_argument("--log-level", default="WARNING", help="Log level")
    run_parser.add_argument(
        "--log-format", default="auto", choices=["auto", "json", "human"], help="Log format"
    )
    run_parser.set_defaults(func=cmd_run)

    init_parser = subparsers.add_parser("init", help="Write the configuration file")
    init_parser.add_argument("--api-key", default=None, help="API key (sk-...)")
    init_parser.add_argument("--api-base", default=None, help="Agent platform base URL")
    init_parser.add_argument("--max-loops", type=int, default=None, help="Default loop budget")
    init_parser.set_defaults(func=cmd_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
