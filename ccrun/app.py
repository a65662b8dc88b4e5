from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ccrun import __version__
from ccrun.core.builder import CommandBuilder
from ccrun.core.catalog import BUILD_METHODS, RUN_METHODS, MethodCatalog
from ccrun.core.config import Config
from ccrun.core.dispatcher import Dispatcher, ExecutionOutcome, Mode
from ccrun.core.environment import ShellEnvironment
from ccrun.core.errors import CcRunError, NoActiveFile
from ccrun.core.handoff import AppClipboardHandoff, ConsoleHandoff
from ccrun.core.orchestrator import Orchestrator
from ccrun.core.params import BuildParameters, resolve_parameters
from ccrun.views.log_view import LogView
from ccrun.views.main_menu import MainMenu
from ccrun.views.prompts import MethodPicker, ModePrompt, ProcessCountPrompt


logger = logging.getLogger(__name__)


class CcRunApp(App[Any]):
    CSS_PATH = "assets/theme.css"
    TITLE = "ccrun"
    BINDINGS = [
        ("ctrl+c", "quit", "Quit"),
    ]

    def __init__(self, file_path: Optional[Path], config: Config) -> None:
        super().__init__()
        self.file_path = file_path
        self.config = config
        self.dispatcher = Dispatcher(
            handoff=AppClipboardHandoff(self),
            environment=ShellEnvironment.from_config(config),
        )
        self.orchestrator = Orchestrator(self.dispatcher)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Vertical(id="root")
        yield Footer()

    def on_mount(self) -> None:
        self.push_screen(MainMenu())

    def active_file_label(self) -> str:
        if self.file_path is None:
            return "[red]no active file[/]"
        return f"active file: [b]{escape(str(self.file_path))}[/b]"

    # Entry points used by the main menu. Prompting needs a worker.

    def start_build(self) -> None:
        self.run_worker(self._build_flow(), exclusive=True)

    def start_run(self) -> None:
        self.run_worker(self._run_flow(), exclusive=True)

    def start_compile_and_run(self) -> None:
        self.run_worker(self._compile_and_run_flow(), exclusive=True)

    def show_log(self) -> None:
        if not isinstance(self.screen, LogView):
            self.push_screen(LogView(self.dispatcher))

    def _params(self) -> Optional[BuildParameters]:
        try:
            return resolve_parameters(self.file_path)
        except NoActiveFile as e:
            self.notify(escape(str(e)), severity="error")
            return None

    async def _pick(self, title: str, catalog: MethodCatalog) -> Optional[str]:
        return await self.push_screen_wait(MethodPicker(title, catalog))

    async def _process_count(self, builder: CommandBuilder, method: str, label: str) -> Optional[int]:
        if not builder.requires_process_count(method):
            return None
        return await self.push_screen_wait(
            ProcessCountPrompt(label, self.config.default_process_count)
        )

    async def _mode(self) -> Optional[Mode]:
        return await self.push_screen_wait(ModePrompt(Mode(self.config.default_mode)))

    async def _build_flow(self) -> None:
        await self._single_flow("Build method", self.orchestrator.build_builder)

    async def _run_flow(self) -> None:
        await self._single_flow("Run method", self.orchestrator.run_builder)

    async def _single_flow(self, title: str, builder: CommandBuilder) -> None:
        params = self._params()
        if params is None:
            return
        method = await self._pick(title, builder.catalog)
        if method is None:
            return
        if builder.requires_process_count(method):
            count = await self._process_count(builder, method, "Number of processes")
            if count is None:
                return
            params = params.with_process_count(count)
        mode = await self._mode()
        if mode is None:
            return
        try:
            command = builder.build(method, params)
        except CcRunError as e:
            self.notify(escape(str(e)), severity="error")
            return
        await self._dispatch(command.text, mode, params)

    async def _compile_and_run_flow(self) -> None:
        params = self._params()
        if params is None:
            return
        orch = self.orchestrator
        build_method = await self._pick("Build method", BUILD_METHODS)
        if build_method is None:
            return
        if orch.build_builder.requires_process_count(build_method):
            count = await self._process_count(
                orch.build_builder, build_method, "Processes to build for"
            )
            if count is None:
                return
            params = params.with_process_count(count)
        run_method = await self._pick("Run method", RUN_METHODS)
        if run_method is None:
            return
        run_count = await self._process_count(
            orch.run_builder, run_method, "Processes to run with"
        )
        if orch.run_builder.requires_process_count(run_method) and run_count is None:
            return
        mode = await self._mode()
        if mode is None:
            return
        try:
            command = orch.compile_and_run_command(
                build_method, run_method, params, run_count
            )
        except CcRunError as e:
            self.notify(escape(str(e)), severity="error")
            return
        await self._dispatch(command, mode, params)

    async def _dispatch(self, command: str, mode: Mode, params: BuildParameters) -> None:
        if mode is Mode.MONITORED:
            self.show_log()
        outcome = await self.dispatcher.dispatch(command, mode, cwd=params.directory)
        self._report(outcome)

    def _report(self, outcome: ExecutionOutcome) -> None:
        if outcome.recovery_command is not None:
            self.notify(escape(outcome.message), severity="warning", timeout=10)
        elif outcome.mode is Mode.HANDOFF:
            self.notify(f"copied: {escape(outcome.command)}")
        elif outcome.succeeded:
            self.notify(escape(outcome.message))
        else:
            self.notify(escape(outcome.message), severity="error")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ccrun",
        description="Build and run C/MPI programs from a catalog of methods",
    )
    parser.add_argument("file", nargs="?", type=Path, help="Active source file")
    parser.add_argument("--build", metavar="METHOD", help="Build method name")
    parser.add_argument("--run", metavar="METHOD", help="Run method name")
    parser.add_argument(
        "-n", "--np", type=int, default=None, help="Process count for MPI methods"
    )
    parser.add_argument(
        "--run-np",
        type=int,
        default=None,
        help="Process count for the run stage (defaults to --np)",
    )
    parser.add_argument(
        "--handoff",
        action="store_true",
        help="Print the command instead of running it",
    )
    parser.add_argument(
        "--inherit-env",
        action="store_true",
        help="Run with the current environment instead of a login shell",
    )
    parser.add_argument("--list", action="store_true", help="List methods and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"ccrun {__version__}")
    return parser.parse_args(argv)


def print_methods(console: Console) -> None:
    for catalog in (BUILD_METHODS, RUN_METHODS):
        console.print(f"[bold]{catalog.title} methods[/bold]")
        for entry in catalog:
            np = " [yellow](MPI)[/yellow]" if entry.is_multi_process else ""
            console.print(f"  {escape(entry.name)}{np}  [dim]{escape(entry.template)}[/dim]")


async def run_non_interactive(args: argparse.Namespace, config: Config) -> int:
    """Build and/or run once from command line arguments."""
    console = Console(stderr=True)
    environment = ShellEnvironment.from_config(config)
    if args.inherit_env:
        environment = ShellEnvironment(shell=environment.shell, strategy="inherit")

    dispatcher = Dispatcher(handoff=ConsoleHandoff(), environment=environment)
    dispatcher.log.listeners.append(
        lambda line: print(line.text, file=sys.stderr if line.is_stderr else sys.stdout)
    )
    orch = Orchestrator(dispatcher)
    mode = Mode.HANDOFF if args.handoff else Mode(config.default_mode)

    try:
        params = resolve_parameters(args.file, args.np)
        if args.build and args.run:
            command = orch.compile_and_run_command(args.build, args.run, params, args.run_np)
        elif args.build:
            command = orch.build_builder.build(args.build, params).text
        else:
            run_params = (
                params.with_process_count(args.run_np)
                if args.run_np is not None
                else params
            )
            command = orch.run_builder.build(args.run, run_params).text
    except CcRunError as e:
        console.print(f"[red]error:[/red] {escape(str(e))}")
        return 1

    if mode is Mode.MONITORED:
        console.print(f"[dim]$ {escape(command)}[/dim]")
    outcome = await dispatcher.dispatch(command, mode, cwd=params.directory)

    if outcome.recovery_command is not None:
        console.print(f"[yellow]{escape(outcome.message)}[/yellow]")
        return outcome.exit_code or 1
    if outcome.mode is Mode.HANDOFF:
        return 0
    if outcome.exit_code is None:
        console.print(f"[magenta]✖ {outcome.message}[/magenta]")
        return 1
    if outcome.exit_code == 0:
        console.print(
            f"[green]✓ {outcome.message}[/green] "
            f"({dispatcher.log.warnings} warning(s))"
        )
    else:
        console.print(f"[red]✗ {outcome.message}[/red]")
        for diag in dispatcher.log.diagnostics:
            if diag.is_error:
                console.print(f"  {diag.location}: {escape(diag.message)}")
    return outcome.exit_code


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    config = Config.load()

    if args.list:
        print_methods(Console())
        sys.exit(0)

    if args.build or args.run:
        try:
            exit_code = asyncio.run(run_non_interactive(args, config))
        except KeyboardInterrupt:
            print("\n✗ Interrupted", file=sys.stderr)
            exit_code = 130
        sys.exit(exit_code)

    # No method given - launch interactive TUI
    CcRunApp(args.file, config).run()


if __name__ == "__main__":
    main()
