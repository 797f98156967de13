from __future__ import annotations

from pathlib import Path
from typing import Protocol

from fe_ci.core.result import Err, Ok, Result
from fe_ci.core.workspace import Workspace
from fe_ci.platform.process import run as run_process
from fe_ci.platform.process import run_silent
from fe_ci.services.artifacts.errors import ArtifactsError, from_process


class NxWorkspace(Protocol):
    """Build-tool queries and invocations the artifacts flow relies on."""

    @property
    def root(self) -> Path: ...

    def list_projects(
        self,
        *,
        affected: bool,
        base: str | None = None,
        target: str | None = None,
    ) -> Result[list[str], ArtifactsError]: ...

    def build(self, name: str, *, source_map: bool) -> Result[str, ArtifactsError]: ...

    def run_many(
        self, *, target: str, projects: list[str], extra_args: list[str]
    ) -> Result[None, ArtifactsError]: ...

    def project_files(self) -> list[str]: ...

    def app_names(self) -> frozenset[str]: ...

    def lib_names(self) -> frozenset[str]: ...


def parse_project_list(output: str | None) -> list[str]:
    """`nx show projects` prints one project per line; blank output means none."""
    if not output:
        return []
    return output.split()


class NxCli:
    """NxWorkspace backed by `npx nx` in the workspace root."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    @property
    def root(self) -> Path:
        return self.workspace.root

    def list_projects(
        self,
        *,
        affected: bool,
        base: str | None = None,
        target: str | None = None,
    ) -> Result[list[str], ArtifactsError]:
        cmd = ["npx", "nx", "show", "projects", f"--affected={str(affected).lower()}"]
        if base:
            cmd.append(f"--base={base}")
        if target:
            cmd.append(f"--withTarget={target}")

        result = run_process(cmd, cwd=self.root)
        match result:
            case Err(e):
                return Err(from_process("nx_failed", "listing nx projects failed", e))
            case Ok(stdout):
                return Ok(parse_project_list(stdout))

    def build(self, name: str, *, source_map: bool) -> Result[str, ArtifactsError]:
        cmd = ["npx", "nx", "build", name, "--prod"]
        if source_map:
            cmd.append("--sourceMap=true")
        return run_process(cmd, cwd=self.root).map_err(
            lambda e: from_process("build_failed", f"build of {name} failed", e)
        )

    def run_many(
        self, *, target: str, projects: list[str], extra_args: list[str]
    ) -> Result[None, ArtifactsError]:
        cmd = [
            "npx",
            "nx",
            "run-many",
            f"--targets={target}",
            f"--projects={','.join(projects)}",
            *extra_args,
        ]
        return run_silent(cmd, cwd=self.root).map_err(
            lambda e: from_process("nx_failed", f"nx run-many --targets={target} failed", e)
        )

    def project_files(self) -> list[str]:
        return self.workspace.project_files()

    def app_names(self) -> frozenset[str]:
        return self.workspace.list_dir_names(self.workspace.apps_dir)

    def lib_names(self) -> frozenset[str]:
        return self.workspace.list_dir_names(self.workspace.libs_dir)
