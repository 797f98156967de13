"""One Nx project (app or lib) as a publishable npm package.

A project is loaded once per run: its source location is resolved from the
workspace's project.json files and its publishability is decided from the
source manifest. The build/publish phase then writes `.npmrc` and
`package.json` into the project's dist directory and drives nx and npm.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from fe_ci.core.result import Err, Ok, Result
from fe_ci.core.structured import StrDict, as_str_dict, dumps_pretty, get_bool, loads_json
from fe_ci.output.console import ConsoleProtocol, Style
from fe_ci.platform.files import atomic_write_text
from fe_ci.services.artifacts.comments import PrCommentFile
from fe_ci.services.artifacts.config import (
    DIST_DIR,
    E2E_SUFFIX,
    FOSS_LIST_FILENAME,
    MANIFEST_ACCESS,
    MANIFEST_AUTHOR,
    NPMRC,
    PACKAGE_JSON,
    PR_SNAPSHOT_DIST_TAG,
    PROJECT_FILE_NAME,
    PUBLIC_API_FILE_NAME,
    SNAPSHOT_DIST_TAG,
    SNAPSHOT_VERSION,
)
from fe_ci.services.artifacts.credentials import JfrogCredentials
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.model import ProjectKind, Task
from fe_ci.services.artifacts.nx import NxWorkspace
from fe_ci.services.artifacts.registry import Found, NotFound, NpmRegistry
from fe_ci.services.artifacts.version import Version


def is_e2e(name: str) -> bool:
    return name.endswith(E2E_SUFFIX)


def resolve_project_path(name: str, kind: ProjectKind, project_files: list[str]) -> str | None:
    """Directory (relative to the root) of the project.json belonging to `name`.

    `libs/cf-core-lib/project.json` normalizes to `-libs-cf-core-lib-project`
    and must end with `-{category}-{name}-project`, so `core-lib` never
    matches `cf-core-lib`. A nested project (`apps/my/cf-platform`) matches
    when its own directory is named `name`. e2e and non-e2e projects never
    match each other.
    """
    category = kind.category
    wants_e2e = is_e2e(name)
    exact = f"-{category}-{name}-project"
    nested: str | None = None

    for entry in project_files:
        path = PurePosixPath(entry)
        if path.name != PROJECT_FILE_NAME:
            continue
        dir_parts = path.parent.parts
        if not dir_parts or category not in dir_parts:
            continue
        if is_e2e(dir_parts[-1]) != wants_e2e:
            continue

        normalized = "-" + "-".join(dir_parts) + "-project"
        if normalized.endswith(exact):
            return path.parent.as_posix()
        if nested is None and dir_parts[-1] == name:
            nested = path.parent.as_posix()

    return nested


def dist_dir_for(root: Path, path_to_project: str, kind: ProjectKind) -> Path:
    """`apps/my/cf-platform` -> `<root>/dist/apps/my/cf-platform`"""
    category = kind.category
    parts = PurePosixPath(path_to_project).parts
    if category not in parts:
        return root / DIST_DIR / category / PurePosixPath(path_to_project).name
    idx = parts.index(category)
    return root.joinpath(*parts[:idx], DIST_DIR, category, *parts[idx + 1 :])


def determine_publishability(
    name: str,
    kind: ProjectKind,
    source_manifest: StrDict | None,
    *,
    has_public_api: bool,
) -> bool:
    """Libraries opt in with `"publishable": true`; apps are published unless
    they are e2e apps without a public API entry point."""
    if kind is ProjectKind.LIBRARY:
        return source_manifest is not None and get_bool(source_manifest, "publishable")
    if is_e2e(name):
        return has_public_api
    return True


def distribution_tag(task: Task, version: Version) -> str:
    match task:
        case Task.PR_SNAPSHOT:
            return PR_SNAPSHOT_DIST_TAG
        case Task.RELEASE:
            return version.npm_release_tag()
        case _:
            return SNAPSHOT_DIST_TAG


def _read_json_object(path: Path) -> StrDict | None:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return None
    return as_str_dict(loads_json(text))


def _default_version() -> Version:
    return Version.parse(SNAPSHOT_VERSION)


def _empty_manifest() -> StrDict:
    return {}


@dataclass(slots=True)
class NxProject:
    name: str
    kind: ProjectKind
    root: Path
    path_to_project: str
    task: Task = Task.MAIN_SNAPSHOT
    version: Version = field(default_factory=_default_version)
    scope: str = ""
    is_publishable: bool = False
    has_manifest: bool = False
    manifest: StrDict = field(default_factory=_empty_manifest)
    npmrc: str = ""

    # Paths

    @property
    def source_dir(self) -> Path:
        return self.root / self.path_to_project

    @property
    def dist_dir(self) -> Path:
        return dist_dir_for(self.root, self.path_to_project, self.kind)

    @property
    def package_json_in_source(self) -> Path:
        return self.source_dir / PACKAGE_JSON

    @property
    def package_json_in_dist(self) -> Path:
        return self.dist_dir / PACKAGE_JSON

    @property
    def npmrc_in_dist(self) -> Path:
        return self.dist_dir / NPMRC

    # Naming

    @property
    def package_name(self) -> str:
        return f"{self.scope}/{self.name}"

    def install_spec(self, version: Version | None = None) -> str:
        return f"{self.package_name}@{version or self.version}"

    def distribution_tag(self) -> str:
        return distribution_tag(self.task, self.version)

    def markdown_link(self, credentials: JfrogCredentials) -> str:
        url = credentials.artifact_browse_url(self.scope, self.name, str(self.version))
        return f"[{self.install_spec()}]({url})"

    def pretty_manifest(self) -> str:
        return dumps_pretty(self.manifest)

    # Build and publish steps

    def build(self, nx: NxWorkspace, console: ConsoleProtocol) -> Result[None, ArtifactsError]:
        source_map = self.kind is ProjectKind.APPLICATION and self.task is not Task.RELEASE
        console.print(f"nx build {self.name} --prod{' --sourceMap=true' if source_map else ''}")
        result = nx.build(self.name, source_map=source_map)
        if isinstance(result, Err):
            return result
        console.block(f"built {self.name}", result.value)
        return Ok(None)

    def write_npmrc(
        self, credentials: JfrogCredentials, console: ConsoleProtocol
    ) -> Result[None, ArtifactsError]:
        self.npmrc = credentials.render_npmrc(self.scope)
        try:
            atomic_write_text(self.npmrc_in_dist, self.npmrc)
        except OSError as e:
            return Err(ArtifactsError(kind="io_failed", message=f"cannot write {self.npmrc_in_dist}: {e}"))

        shown = self.npmrc
        if credentials.base64_token:
            shown = shown.replace(credentials.base64_token, "***")
        console.block(f"wrote .npmrc to: {self.npmrc_in_dist}", shown)
        return Ok(None)

    def copy_foss_list(self, console: ConsoleProtocol) -> Result[None, ArtifactsError]:
        src = self.root / FOSS_LIST_FILENAME
        if not src.is_file():
            console.warning(f"{src} not found! Please generate the {FOSS_LIST_FILENAME}!")
            return Ok(None)

        dest = self.dist_dir / FOSS_LIST_FILENAME
        console.print(f"Copying {src} to {dest}", Style.DIM)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)
        except OSError as e:
            return Err(ArtifactsError(kind="io_failed", message=f"cannot copy {src}: {e}"))
        return Ok(None)

    def set_version_or_generate_manifest(
        self, version: Version, registry_url: str, console: ConsoleProtocol
    ) -> Result[None, ArtifactsError]:
        """Stamp the dist package.json with version and publishConfig.

        Projects without a source manifest (apps) get a minimal one
        generated. Running this twice yields the same file.
        """
        publish_config: StrDict = {
            "registry": registry_url,
            "access": MANIFEST_ACCESS,
            "tag": self.distribution_tag(),
        }

        if self.has_manifest:
            built = _read_json_object(self.package_json_in_dist)
            if built is None:
                console.warning(
                    f"cannot read {self.package_json_in_dist}, falling back to the source manifest"
                )
                built = dict(self.manifest)
            content: StrDict = {
                **built,
                "author": MANIFEST_AUTHOR,
                "version": str(version),
                "publishConfig": publish_config,
            }
        else:
            content = {
                "author": MANIFEST_AUTHOR,
                "name": self.package_name,
                "version": str(version),
                "publishConfig": publish_config,
            }

        self.manifest = content
        try:
            atomic_write_text(self.package_json_in_dist, self.pretty_manifest())
        except OSError as e:
            return Err(
                ArtifactsError(kind="io_failed", message=f"cannot write {self.package_json_in_dist}: {e}")
            )

        console.block(f"wrote package.json to: {self.package_json_in_dist}", self.pretty_manifest())
        return Ok(None)

    def publish(
        self,
        registry: NpmRegistry,
        credentials: JfrogCredentials,
        comments: PrCommentFile,
        console: ConsoleProtocol,
    ) -> Result[None, ArtifactsError]:
        if not self.is_publishable:
            return Ok(None)

        result = registry.publish(self.dist_dir)
        if isinstance(result, Err):
            return result

        console.block(f"published {self.install_spec()}", result.value)
        comments.append(self.markdown_link(credentials))
        return Ok(None)

    def delete_artifact(
        self,
        version: Version,
        registry: NpmRegistry,
        credentials: JfrogCredentials,
        console: ConsoleProtocol,
    ) -> Result[bool, ArtifactsError]:
        """Unpublish `version` if the registry has it.

        Returns Ok(False) when there was nothing to delete.
        """
        spec = self.install_spec(version)
        console.print("Checking if package exists in registry", Style.DIM)

        lookup = registry.lookup_versions(self.package_name, self.dist_dir)
        match lookup:
            case NotFound(reason=reason):
                console.info(
                    f"Package {spec} does not exist in the registry ({reason}). Skipping deletion."
                )
                return Ok(False)
            case Found() if not lookup.has(str(version)):
                console.info(f"Package {spec} does not exist in the registry. Skipping deletion.")
                return Ok(False)
            case Found():
                console.print(f"Package {spec} exists in registry")

        if not self.dist_dir.exists():
            # Nothing was built in this run; npm still needs the registry auth.
            console.print(f"Path to project in dist does not exist, creating it: {self.dist_dir}")
            prepared = self.write_npmrc(credentials, console)
            if isinstance(prepared, Err):
                return prepared
            prepared = self.set_version_or_generate_manifest(version, credentials.url, console)
            if isinstance(prepared, Err):
                return prepared

        console.print(f"About to delete artifact from JFrog: {spec}")
        result = registry.unpublish(spec, self.dist_dir)
        if isinstance(result, Err):
            return result

        console.success(f"Deleted artifact from JFrog: {spec}")
        return Ok(True)

    def to_log_dict(self) -> StrDict:
        return {
            "name": self.name,
            "kind": str(self.kind),
            "task": str(self.task),
            "version": str(self.version),
            "scope": self.scope,
            "pathToProject": self.path_to_project,
            "isPublishable": self.is_publishable,
            "hasPackageJson": self.has_manifest,
        }

    def __str__(self) -> str:
        return json.dumps(self.to_log_dict())


def load_project(
    name: str,
    kind: ProjectKind,
    *,
    root: Path,
    project_files: list[str],
    task: Task = Task.MAIN_SNAPSHOT,
    version: Version | None = None,
    scope: str = "",
) -> NxProject:
    """Resolve a project's location once and read what decides publishability."""
    path_to_project = resolve_project_path(name, kind, project_files) or f"{kind.category}/{name}"
    project = NxProject(
        name=name,
        kind=kind,
        root=root,
        path_to_project=path_to_project,
        task=task,
        version=version or _default_version(),
        scope=scope,
    )

    source_manifest: StrDict | None = None
    if kind is ProjectKind.LIBRARY and project.package_json_in_source.is_file():
        source_manifest = _read_json_object(project.package_json_in_source)
        project.has_manifest = True
        project.manifest = dict(source_manifest or {})

    has_public_api = (project.source_dir / "src" / PUBLIC_API_FILE_NAME).is_file()
    project.is_publishable = determine_publishability(
        name, kind, source_manifest, has_public_api=has_public_api
    )
    return project
