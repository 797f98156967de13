from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fe_ci.core.result import Err, Ok, Result
from fe_ci.core.structured import as_obj_list, as_str_dict, as_str_list, get_str, loads_json
from fe_ci.platform.process import run as run_process
from fe_ci.services.artifacts.errors import ArtifactsError, from_process

# Registry reads go over the network; writes are left unbounded like builds.
_NPM_READ_TIMEOUT_SECONDS = 120.0
# npm returns 20 search results unless told otherwise.
_SEARCH_LIMIT = 10000


@dataclass(frozen=True, slots=True)
class Found:
    versions: tuple[str, ...]

    def has(self, version: str) -> bool:
        return version in self.versions


@dataclass(frozen=True, slots=True)
class NotFound:
    reason: str


PackageLookup = Found | NotFound


class NpmRegistry(Protocol):
    def publish(self, dist_dir: Path) -> Result[str, ArtifactsError]: ...

    def unpublish(self, spec: str, dist_dir: Path) -> Result[str, ArtifactsError]: ...

    def lookup_versions(self, package: str, cwd: Path) -> PackageLookup: ...

    def search(self, scope: str) -> Result[list[str], ArtifactsError]: ...


def parse_search_names(payload: object, scope: str) -> list[str] | None:
    """Package names under `scope` from `npm search --json`.

    npm prints an array of entries; some registries answer with an object
    keyed by package name instead.
    """
    entries = as_obj_list(payload)
    if entries is None:
        table = as_str_dict(payload)
        if table is None:
            return None
        entries = list(table.values())

    names: list[str] = []
    for entry in entries:
        data = as_str_dict(entry)
        name = get_str(data, "name") if data is not None else None
        if name and name.startswith(f"{scope}/") and name not in names:
            names.append(name)
    return names


class NpmCli:
    """NpmRegistry backed by the npm executable.

    Commands that touch a single package run inside its dist directory so
    npm picks up the `.npmrc` written there.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def publish(self, dist_dir: Path) -> Result[str, ArtifactsError]:
        return run_process(["npm", "publish"], cwd=dist_dir).map_err(
            lambda e: from_process("publish_failed", f"npm publish in {dist_dir} failed", e)
        )

    def unpublish(self, spec: str, dist_dir: Path) -> Result[str, ArtifactsError]:
        return run_process(["npm", "unpublish", spec, "--force"], cwd=dist_dir).map_err(
            lambda e: from_process("unpublish_failed", f"npm unpublish {spec} failed", e)
        )

    def lookup_versions(self, package: str, cwd: Path) -> PackageLookup:
        result = run_process(
            ["npm", "view", package, "versions", "--json"],
            cwd=cwd if cwd.is_dir() else self.root,
            timeout=_NPM_READ_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            lines = result.error.stderr.strip().splitlines()
            return NotFound(reason=lines[0] if lines else str(result.error))

        versions = as_str_list(loads_json(result.value))
        if versions is None:
            return NotFound(reason=f"unexpected npm view output for {package}")
        return Found(versions=tuple(versions))

    def search(self, scope: str) -> Result[list[str], ArtifactsError]:
        result = run_process(
            ["npm", "search", scope, "--json", f"--searchlimit={_SEARCH_LIMIT}"],
            cwd=self.root,
            timeout=_NPM_READ_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(from_process("registry_failed", f"npm search {scope} failed", result.error))

        names = parse_search_names(loads_json(result.value), scope)
        if names is None:
            return Err(
                ArtifactsError(
                    kind="registry_failed",
                    message=f"npm search {scope} returned unexpected JSON",
                    hint=result.value[:500],
                )
            )
        return Ok(names)
