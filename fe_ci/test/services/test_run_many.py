from __future__ import annotations

from pathlib import Path

from fe_ci.core.result import Err, Ok
from fe_ci.core.workspace import Workspace
from fe_ci.output.console import MockConsole
from fe_ci.services.run_many import (
    RunManyPlan,
    affected_for_job,
    distribute_projects_evenly,
    execute_run_many,
    plan_run_many,
    resolve_base,
    run_many_args,
)
from fe_ci.test.services.artifacts._fakes import FakeGit, FakeNx, make_workspace

PROJECTS = ["a", "b", "c", "d", "e"]


def _nx(tmp_path: Path, **kwargs: object) -> FakeNx:
    return FakeNx(workspace=Workspace(root=make_workspace(tmp_path)), **kwargs)  # type: ignore[arg-type]


def test_distribute_round_robin() -> None:
    assert distribute_projects_evenly(PROJECTS, 2) == [["a", "c", "e"], ["b", "d"]]
    assert distribute_projects_evenly(PROJECTS, 3) == [["a", "d"], ["b", "e"], ["c"]]
    assert distribute_projects_evenly(["a"], 3) == [["a"], [], []]


def test_run_many_args() -> None:
    assert run_many_args("test", "origin/main") == ["--parallel", "--prod"]
    assert run_many_args("e2e", "origin/main") == [
        "--parallel",
        "--prod",
        "-c",
        "ci",
        "--base=origin/main",
        "--verbose",
    ]


def test_resolve_base_normalizes_branches() -> None:
    assert resolve_base("main", FakeGit()) == Ok("origin/main")
    assert resolve_base("a1b2c3d4", FakeGit()) == Ok("a1b2c3d4")


def test_resolve_base_replaces_null_sha_with_remote_head() -> None:
    assert resolve_base("0" * 40, FakeGit(head="origin/develop")) == Ok("origin/develop")


def test_affected_for_job(tmp_path: Path) -> None:
    nx = _nx(tmp_path, affected=PROJECTS)

    result = affected_for_job(nx, target="test", job_index=1, job_count=2, base="origin/main", ref="x")

    assert result == Ok(["b", "d"])
    assert nx.queries == [{"affected": True, "base": "origin/main", "target": "test"}]


def test_e2e_without_ref_runs_everything(tmp_path: Path) -> None:
    nx = _nx(tmp_path, everything=PROJECTS, affected=["a"])

    result = affected_for_job(nx, target="e2e", job_index=0, job_count=1, base="origin/main", ref="")

    assert result == Ok(PROJECTS)
    assert nx.queries == [{"affected": False, "base": None, "target": "e2e"}]


def test_job_index_out_of_range(tmp_path: Path) -> None:
    nx = _nx(tmp_path, affected=PROJECTS)

    result = affected_for_job(nx, target="test", job_index=2, job_count=2, base="origin/main", ref="x")

    assert isinstance(result, Err)
    assert result.error.kind == "config_invalid"
    assert nx.queries == []


def test_plan_and_execute(tmp_path: Path) -> None:
    nx = _nx(tmp_path, affected=PROJECTS)
    console = MockConsole()

    planned = plan_run_many(
        nx, FakeGit(), target="lint", job_index=0, job_count=2, base="main", ref="refs/pull/1"
    )
    assert isinstance(planned, Ok)
    assert planned.value.command_line() == (
        "nx run-many --targets=lint --projects=a,c,e --parallel --prod"
    )

    assert execute_run_many(nx, planned.value, console) == Ok(None)
    assert nx.run_many_calls == [("lint", ["a", "c", "e"], ["--parallel", "--prod"])]


def test_empty_bucket_does_not_call_nx(tmp_path: Path) -> None:
    nx = _nx(tmp_path)
    plan = RunManyPlan(target="test", base="origin/main", projects=[], extra_args=[])
    console = MockConsole()

    assert execute_run_many(nx, plan, console) == Ok(None)
    assert nx.run_many_calls == []
    assert console.find("no projects")
