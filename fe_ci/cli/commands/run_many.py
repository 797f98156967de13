"""Run-many command - run an nx target for one CI job's share of the projects."""

from __future__ import annotations

import typer

from fe_ci.cli.commands._helpers import exit_on_error
from fe_ci.cli.context import build_context
from fe_ci.git.remote import GitCli
from fe_ci.services.artifacts.nx import NxCli
from fe_ci.services.run_many import execute_run_many, plan_run_many


def run_many(
    target: str = typer.Argument(..., help="nx target, e.g. test, lint, e2e"),
    job_index: int = typer.Argument(..., help="Zero-based index of this job"),
    job_count: int = typer.Argument(..., help="Number of parallel jobs"),
    base: str = typer.Argument(..., help="Base branch or commit for affected detection"),
    ref: str = typer.Argument("", help="Git ref of the run; empty runs e2e on all projects"),
) -> None:
    """Run TARGET on the affected projects assigned to JOB_INDEX of JOB_COUNT."""
    ctx = build_context()
    nx = NxCli(ctx.workspace)

    ctx.console.print(
        f"Inputs: target={target} job_index={job_index} job_count={job_count} "
        f"base={base} ref={ref}"
    )
    planned = plan_run_many(
        nx,
        GitCli(ctx.workspace.root),
        target=target,
        job_index=job_index,
        job_count=job_count,
        base=base,
        ref=ref,
    )
    exit_on_error(planned, ctx)
    plan = planned.unwrap()

    ctx.console.print(f"Affected projects for this job: {', '.join(plan.projects) or '-'}")
    exit_on_error(execute_run_many(nx, plan, ctx.console), ctx)
