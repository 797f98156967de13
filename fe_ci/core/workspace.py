"""Nx workspace detection and well-known paths.

The workspace is the root of the frontend monorepo. It is identified by an
`nx.json` file next to the root `package.json`; the root `package.json` name
carries the npm scope every published package is released under.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result
from .structured import as_str_dict, get_str, loads_json

__all__ = [
    "Workspace",
    "WorkspaceError",
    "WORKSPACE_ENV_VAR",
    "detect_workspace",
    "find_workspace_upward",
    "is_workspace_root",
    "read_npm_scope",
]

WORKSPACE_ENV_VAR = "FE_CI_WORKSPACE_ROOT"

_SCOPE_RE = re.compile(r"@\S+?/")
_SKIPPED_DIRS = frozenset({"node_modules", "dist", ".git", ".nx", ".angular", "tmp"})


@dataclass(frozen=True)
class WorkspaceError:
    """Error when the workspace or its root manifest cannot be used."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A detected Nx workspace.

    The workspace root contains:
    - nx.json and the root package.json (required)
    - apps/ and libs/ with one directory per Nx project
    - dist/ with build outputs mirroring apps/ and libs/
    """

    root: Path

    @property
    def apps_dir(self) -> Path:
        return self.root / "apps"

    @property
    def libs_dir(self) -> Path:
        return self.root / "libs"

    @property
    def package_json_path(self) -> Path:
        return self.root / "package.json"

    def project_files(self) -> list[str]:
        """Return all project.json paths, relative to the root, in sorted order.

        Build outputs, dependencies and VCS metadata are not descended into.
        """
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in _SKIPPED_DIRS)
            if "project.json" in filenames:
                rel = Path(dirpath, "project.json").relative_to(self.root)
                found.append(rel.as_posix())
        return sorted(found)

    def list_dir_names(self, directory: Path) -> frozenset[str]:
        """Names of the direct subdirectories of `directory` (empty if missing)."""
        if not directory.is_dir():
            return frozenset()
        return frozenset(p.name for p in directory.iterdir() if p.is_dir())

    def __str__(self) -> str:
        return str(self.root)


def is_workspace_root(path: Path) -> bool:
    return (path / "nx.json").is_file() and (path / "package.json").is_file()


def find_workspace_upward(start: Path) -> Path | None:
    for parent in (start, *start.parents):
        if is_workspace_root(parent):
            return parent
    return None


def detect_workspace(
    *,
    env: Mapping[str, str] | None = None,
    start_dir: Path | None = None,
) -> Result[Workspace, WorkspaceError]:
    """Detect the workspace root directory.

    Detection order:
    1. FE_CI_WORKSPACE_ROOT environment variable (if set and valid)
    2. Search upward from start_dir (or cwd) for nx.json + package.json
    """
    environ = os.environ if env is None else env
    env_value = environ.get(WORKSPACE_ENV_VAR)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_workspace_root(env_path):
            return Ok(Workspace(root=env_path))
        return Err(
            WorkspaceError(
                message=f"${WORKSPACE_ENV_VAR} is set to '{env_value}' but it is not an Nx workspace",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_workspace_upward(search_start)
    if found is None:
        return Err(
            WorkspaceError(
                message="Could not find Nx workspace (nx.json not found)",
                searched_from=search_start,
            )
        )
    return Ok(Workspace(root=found))


def read_npm_scope(workspace: Workspace) -> Result[str, WorkspaceError]:
    """Parse the npm scope (e.g. `@cplace-next`) from the root package.json name."""
    path = workspace.package_json_path
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(WorkspaceError(message=f"cannot read {path}: {e}", searched_from=path))

    data = as_str_dict(loads_json(text))
    name = get_str(data, "name") if data is not None else None
    match = _SCOPE_RE.match(name) if name else None
    if match is None:
        return Err(
            WorkspaceError(
                message=(
                    "No scope could be found, please provide a scope in root package.json "
                    "(e.g. @YourScope/yourAppOrLib)"
                ),
                searched_from=path,
            )
        )
    return Ok(match.group(0).rstrip("/"))
