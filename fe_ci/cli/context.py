from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import typer

from fe_ci.core.errors import ErrorCode
from fe_ci.core.result import Err
from fe_ci.core.workspace import Workspace, detect_workspace, read_npm_scope
from fe_ci.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    console: ConsoleProtocol
    env: Mapping[str, str]

    def scope(self) -> str:
        """npm scope of the workspace; exits when package.json has none."""
        result = read_npm_scope(self.workspace)
        if isinstance(result, Err):
            self.console.error(result.error.message)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        return result.value


def build_context() -> CLIContext:
    env = dict(os.environ)
    workspace_result = detect_workspace(env=env)
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        workspace=workspace_result.value,
        console=RichConsole(),
        env=env,
    )
