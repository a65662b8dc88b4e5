"""Compile-and-run: one build command and one run command as a single unit."""

import logging
from typing import Optional, Union

from ccrun.core.builder import CommandBuilder
from ccrun.core.catalog import BUILD_METHODS, RUN_METHODS
from ccrun.core.dispatcher import Dispatcher, ExecutionOutcome, Mode
from ccrun.core.params import BuildParameters


logger = logging.getLogger(__name__)

AND_THEN = " && "


class Orchestrator:
    def __init__(
        self,
        dispatcher: Dispatcher,
        build_builder: Optional[CommandBuilder] = None,
        run_builder: Optional[CommandBuilder] = None,
    ):
        self.dispatcher = dispatcher
        self.build_builder = build_builder or CommandBuilder(BUILD_METHODS)
        self.run_builder = run_builder or CommandBuilder(RUN_METHODS)

    def compile_and_run_command(
        self,
        build_method: str,
        run_method: str,
        params: BuildParameters,
        run_process_count: Optional[int] = None,
    ) -> str:
        """Join the build and run commands so the run only follows a clean build.

        Each stage resolves its own process count; they are not required to
        match.
        """
        build = self.build_builder.build(build_method, params)
        run_params = params
        if run_process_count is not None:
            run_params = params.with_process_count(run_process_count)
        run = self.run_builder.build(run_method, run_params)

        if build.is_multi_process and run.is_multi_process:
            if params.process_count != run_params.process_count:
                logger.warning(
                    "build uses %s processes but run uses %s",
                    params.process_count,
                    run_params.process_count,
                )
        return build.text + AND_THEN + run.text

    async def compile_and_run(
        self,
        build_method: str,
        run_method: str,
        params: BuildParameters,
        mode: Union[Mode, str] = Mode.MONITORED,
        *,
        run_process_count: Optional[int] = None,
    ) -> ExecutionOutcome:
        command = self.compile_and_run_command(
            build_method, run_method, params, run_process_count
        )
        return await self.dispatcher.dispatch(command, mode, cwd=params.directory)

    async def build(
        self,
        method: str,
        params: BuildParameters,
        mode: Union[Mode, str] = Mode.MONITORED,
    ) -> ExecutionOutcome:
        command = self.build_builder.build(method, params)
        return await self.dispatcher.dispatch(command.text, mode, cwd=params.directory)

    async def run(
        self,
        method: str,
        params: BuildParameters,
        mode: Union[Mode, str] = Mode.MONITORED,
    ) -> ExecutionOutcome:
        command = self.run_builder.build(method, params)
        return await self.dispatcher.dispatch(command.text, mode, cwd=params.directory)
