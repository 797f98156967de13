from __future__ import annotations

from fe_ci.core.result import Err, Ok, Result
from fe_ci.output.console import ConsoleProtocol, Style
from fe_ci.services.artifacts.config import E2E_SUFFIX, INTERNAL_API_PREFIX
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.model import ProjectKind, Task
from fe_ci.services.artifacts.nx import NxWorkspace
from fe_ci.services.artifacts.project import NxProject, load_project
from fe_ci.services.artifacts.version import Version


def is_candidate(name: str) -> bool:
    """e2e suites and internal `api-*` projects are never published."""
    return not name.endswith(E2E_SUFFIX) and not name.startswith(INTERNAL_API_PREFIX)


def select_candidates(names: list[str], known: frozenset[str]) -> list[str]:
    """Names that exist under the kind's directory, filtered and sorted."""
    return sorted({n for n in names if n in known and is_candidate(n)})


def _names_for(nx: NxWorkspace, kind: ProjectKind) -> frozenset[str]:
    if kind is ProjectKind.APPLICATION:
        return nx.app_names()
    return nx.lib_names()


def affected_projects(
    nx: NxWorkspace,
    base: str,
    kind: ProjectKind,
    *,
    task: Task = Task.MAIN_SNAPSHOT,
    version: Version | None = None,
    scope: str = "",
    console: ConsoleProtocol | None = None,
) -> Result[list[NxProject], ArtifactsError]:
    """Projects of `kind` affected relative to `base`, sorted by name.

    The kind is decided by the apps/libs directory listing, not by the
    project name.
    """
    listed = nx.list_projects(affected=True, base=base)
    if isinstance(listed, Err):
        return listed

    names = select_candidates(listed.value, _names_for(nx, kind))
    if console is not None:
        console.print(f"Affected {kind.category}: {', '.join(names) or '-'}", Style.DIM)

    project_files = nx.project_files()
    return Ok(
        [
            load_project(
                name,
                kind,
                root=nx.root,
                project_files=project_files,
                task=task,
                version=version,
                scope=scope,
            )
            for name in names
        ]
    )


def all_projects(
    nx: NxWorkspace,
    *,
    task: Task = Task.MAIN_SNAPSHOT,
    version: Version | None = None,
    scope: str = "",
    console: ConsoleProtocol | None = None,
) -> Result[list[NxProject], ArtifactsError]:
    """Every publishable candidate: libraries first, then applications."""
    listed = nx.list_projects(affected=False)
    if isinstance(listed, Err):
        return listed

    libs = select_candidates(listed.value, nx.lib_names())
    apps = [n for n in select_candidates(listed.value, nx.app_names()) if n not in libs]
    if console is not None:
        console.print(f"All projects: {', '.join([*libs, *apps]) or '-'}", Style.DIM)

    project_files = nx.project_files()
    projects = [
        load_project(
            name,
            kind,
            root=nx.root,
            project_files=project_files,
            task=task,
            version=version,
            scope=scope,
        )
        for kind, names in ((ProjectKind.LIBRARY, libs), (ProjectKind.APPLICATION, apps))
        for name in names
    ]
    return Ok(projects)
