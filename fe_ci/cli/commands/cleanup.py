"""Cleanup command - unpublish old snapshot versions."""

from __future__ import annotations

from datetime import datetime

import typer

from fe_ci.cli.commands._helpers import exit_on_error
from fe_ci.cli.context import build_context
from fe_ci.services.artifacts.cleanup import CleanupSnapshots
from fe_ci.services.artifacts.config import SNAPSHOT_RETENTION_MONTHS
from fe_ci.services.artifacts.credentials import JfrogCredentials
from fe_ci.services.artifacts.registry import NpmCli


def cleanup_snapshots(
    months: int = typer.Option(
        SNAPSHOT_RETENTION_MONTHS,
        "--months",
        min=1,
        help="Delete snapshots published at least this many months ago",
    ),
) -> None:
    """Delete snapshot versions older than the retention window from the registry."""
    ctx = build_context()
    scope = ctx.scope()
    root = ctx.workspace.root

    sweeper = CleanupSnapshots(
        root=root,
        scope=scope,
        registry=NpmCli(root),
        credentials=JfrogCredentials.from_env(ctx.env),
        console=ctx.console,
        now=datetime.now(),
        retention_months=months,
    )
    exit_on_error(sweeper.delete_superfluous_artifacts(), ctx)
