"""Artifacts command - version, build and publish the workspace's npm packages."""

from __future__ import annotations

from datetime import datetime

from fe_ci.cli.commands._helpers import exit_on_error
from fe_ci.cli.context import build_context
from fe_ci.git.remote import GitCli
from fe_ci.services.artifacts.comments import PrCommentFile
from fe_ci.services.artifacts.handler import ArtifactsHandler
from fe_ci.services.artifacts.nx import NxCli
from fe_ci.services.artifacts.registry import NpmCli
from fe_ci.services.artifacts.state import RunConfig, resolve_run_state


def artifacts() -> None:
    """Publish snapshots or releases of the affected projects.

    Driven by TAG, BASE, PR_NUMBER, SNAPSHOT, ONLY_BUMP_VERSION,
    ONLY_DELETE_ARTIFACTS and the JFROG_* variables.
    """
    ctx = build_context()
    scope = ctx.scope()

    config_result = RunConfig.from_env(ctx.env)
    exit_on_error(config_result, ctx)
    config = config_result.unwrap()

    root = ctx.workspace.root
    state = resolve_run_state(config, scope, datetime.now().astimezone())
    handler = ArtifactsHandler(
        state,
        nx=NxCli(ctx.workspace),
        registry=NpmCli(root),
        git=GitCli(root),
        comments=PrCommentFile(root),
        console=ctx.console,
    )
    handler.log_configuration()
    exit_on_error(handler.handle(), ctx)
    ctx.console.success("artifacts: done")
