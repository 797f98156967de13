"""Split an nx target over parallel CI jobs.

Each job of a matrix calls `fe-ci run-many <target> <index> <count> <base>`
and runs its share of the affected projects with `nx run-many`.
"""

from __future__ import annotations

from dataclasses import dataclass

from fe_ci.core.result import Err, Ok, Result
from fe_ci.git.remote import GitRemote
from fe_ci.output.console import ConsoleProtocol, Style
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.nx import NxWorkspace
from fe_ci.services.artifacts.state import normalize_base

E2E_TARGET = "e2e"
_NULL_SHA_MARKER = "0000000000000000"


@dataclass(frozen=True, slots=True)
class RunManyPlan:
    target: str
    base: str
    projects: list[str]
    extra_args: list[str]

    @property
    def is_empty(self) -> bool:
        return not self.projects

    def command_line(self) -> str:
        return " ".join(
            [
                "nx",
                "run-many",
                f"--targets={self.target}",
                f"--projects={','.join(self.projects)}",
                *self.extra_args,
            ]
        )


def distribute_projects_evenly(projects: list[str], job_count: int) -> list[list[str]]:
    """Round-robin: project i goes to job i % job_count."""
    buckets: list[list[str]] = [[] for _ in range(job_count)]
    for i, project in enumerate(projects):
        buckets[i % job_count].append(project)
    return buckets


def run_many_args(target: str, base: str) -> list[str]:
    args = ["--parallel", "--prod"]
    if E2E_TARGET in target:
        args += ["-c", "ci", f"--base={base}", "--verbose"]
    return args


def resolve_base(base: str, git: GitRemote) -> Result[str, ArtifactsError]:
    """Normalize `base`; a null SHA (first push of a branch) means the remote default branch."""
    normalized = normalize_base(base)
    if _NULL_SHA_MARKER not in normalized:
        return Ok(normalized)

    head = git.default_remote_head()
    if isinstance(head, Err):
        return Err(
            ArtifactsError(
                kind="nx_failed",
                message=f"cannot resolve remote default branch: {head.error.message}",
            )
        )
    return Ok(head.value)


def affected_for_job(
    nx: NxWorkspace,
    *,
    target: str,
    job_index: int,
    job_count: int,
    base: str,
    ref: str,
) -> Result[list[str], ArtifactsError]:
    if job_count < 1 or not 0 <= job_index < job_count:
        return Err(
            ArtifactsError(
                kind="config_invalid",
                message=f"job index {job_index} is out of range for {job_count} job(s)",
            )
        )

    if target == E2E_TARGET and not ref:
        listed = nx.list_projects(affected=False, target=target)
    else:
        listed = nx.list_projects(affected=True, base=base, target=target)
    if isinstance(listed, Err):
        return listed

    return Ok(distribute_projects_evenly(listed.value, job_count)[job_index])


def plan_run_many(
    nx: NxWorkspace,
    git: GitRemote,
    *,
    target: str,
    job_index: int,
    job_count: int,
    base: str,
    ref: str,
) -> Result[RunManyPlan, ArtifactsError]:
    resolved = resolve_base(base, git)
    if isinstance(resolved, Err):
        return resolved

    projects = affected_for_job(
        nx,
        target=target,
        job_index=job_index,
        job_count=job_count,
        base=resolved.value,
        ref=ref,
    )
    if isinstance(projects, Err):
        return projects

    return Ok(
        RunManyPlan(
            target=target,
            base=resolved.value,
            projects=projects.value,
            extra_args=run_many_args(target, resolved.value),
        )
    )


def execute_run_many(
    nx: NxWorkspace, plan: RunManyPlan, console: ConsoleProtocol
) -> Result[None, ArtifactsError]:
    console.print(f"Running > {plan.command_line()}", Style.DIM)
    if plan.is_empty:
        console.info(f"no projects for target {plan.target} in this job")
        return Ok(None)
    return nx.run_many(target=plan.target, projects=plan.projects, extra_args=plan.extra_args)
