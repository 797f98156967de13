from __future__ import annotations

from pathlib import Path

import pytest
import typer

from fe_ci.cli.commands._helpers import error_code_for, exit_on_error
from fe_ci.cli.context import CLIContext
from fe_ci.core.errors import ErrorCode
from fe_ci.core.result import Err, Ok
from fe_ci.core.workspace import Workspace
from fe_ci.output.console import MockConsole
from fe_ci.services.artifacts.errors import ArtifactsError


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("config_invalid", ErrorCode.CONFIG_ERROR),
        ("registry_failed", ErrorCode.REGISTRY_ERROR),
        ("io_failed", ErrorCode.IO_ERROR),
        ("build_failed", ErrorCode.BUILD_ERROR),
        ("publish_failed", ErrorCode.BUILD_ERROR),
        ("tag_failed", ErrorCode.BUILD_ERROR),
    ],
)
def test_error_code_for(kind: str, code: ErrorCode) -> None:
    assert error_code_for(ArtifactsError(kind=kind, message="x")) is code  # type: ignore[arg-type]


def test_exit_on_error_prints_hint(tmp_path: Path) -> None:
    console = MockConsole()
    ctx = CLIContext(workspace=Workspace(root=tmp_path), console=console, env={})
    error = ArtifactsError(kind="unpublish_failed", message="npm unpublish failed", hint="E403")

    with pytest.raises(typer.Exit) as exc:
        exit_on_error(Err(error), ctx)

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)
    assert console.messages == ["error: npm unpublish failed", "hint: E403"]


def test_exit_on_error_ignores_ok(tmp_path: Path) -> None:
    console = MockConsole()
    ctx = CLIContext(workspace=Workspace(root=tmp_path), console=console, env={})

    exit_on_error(Ok(1), ctx)

    assert console.outputs == []
