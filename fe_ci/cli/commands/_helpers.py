"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from fe_ci.core.errors import ErrorCode
from fe_ci.core.result import Err, Result
from fe_ci.output.console import Style
from fe_ci.services.artifacts.errors import ArtifactsError

T = TypeVar("T")

if TYPE_CHECKING:
    from fe_ci.cli.context import CLIContext


_CODES: dict[str, ErrorCode] = {
    "config_invalid": ErrorCode.CONFIG_ERROR,
    "registry_failed": ErrorCode.REGISTRY_ERROR,
    "io_failed": ErrorCode.IO_ERROR,
}


def error_code_for(error: ArtifactsError) -> ErrorCode:
    """Exit code for an artifacts error; command failures are build errors."""
    return _CODES.get(error.kind, ErrorCode.BUILD_ERROR)


def exit_on_error(result: Result[T, ArtifactsError], ctx: CLIContext) -> None:
    """Print the error and its hint, then exit with the matching code.

    Does nothing for Ok results.
    """
    if isinstance(result, Err):
        error = result.error
        ctx.console.error(error.message)
        if error.hint:
            ctx.console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(error_code_for(error)))
