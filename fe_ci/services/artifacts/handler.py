"""Artifacts orchestration: release-branch bump, build-and-publish, delete-only.

The run state is fixed before the handler is built; the handler only picks
the flow and walks the projects one by one. Every project step stops the
run at the first error.
"""

from __future__ import annotations

import json

from fe_ci.core.result import Err, Ok, Result
from fe_ci.git.remote import GitRemote
from fe_ci.output.console import ConsoleProtocol, Style
from fe_ci.services.artifacts.affected import affected_projects, all_projects
from fe_ci.services.artifacts.comments import PrCommentFile
from fe_ci.services.artifacts.credentials import JfrogCredentials
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.model import ProjectKind, Task
from fe_ci.services.artifacts.nx import NxWorkspace
from fe_ci.services.artifacts.project import NxProject
from fe_ci.services.artifacts.registry import NpmRegistry
from fe_ci.services.artifacts.state import RunState
from fe_ci.services.artifacts.version import (
    Version,
    from_release_branch,
    next_release_version,
    release_versions,
)


class ArtifactsHandler:
    def __init__(
        self,
        state: RunState,
        *,
        nx: NxWorkspace,
        registry: NpmRegistry,
        git: GitRemote,
        comments: PrCommentFile,
        console: ConsoleProtocol,
    ) -> None:
        self.state = state
        self.nx = nx
        self.registry = registry
        self.git = git
        self.comments = comments
        self.console = console
        self.projects: list[NxProject] = []
        self.calculated_new_version: Version | None = None

    @property
    def credentials(self) -> JfrogCredentials:
        return self.state.config.credentials

    def log_configuration(self) -> None:
        self.console.block("Configuration", json.dumps(self.state.to_log_dict(), indent=2))
        self.console.print(f"registry: {self.credentials!r}", Style.DIM)

    def handle(self) -> Result[None, ArtifactsError]:
        self.comments.init()
        if self.state.only_bump_version and self.state.config.is_release_branch:
            self.console.header("About to bump version for release branch")
            return self.bump_version_for_release_branch()

        self.console.header("About to build and release projects")
        loaded = self.init_projects()
        if isinstance(loaded, Err):
            return loaded
        return self.build_and_publish_projects()

    def init_projects(self) -> Result[None, ArtifactsError]:
        if self.state.only_affected:
            return self.init_affected_projects()

        result = all_projects(
            self.nx,
            task=self.state.task,
            version=self.state.current_version,
            scope=self.state.scope,
            console=self.console,
        )
        if isinstance(result, Err):
            return result
        self.projects = result.value
        return Ok(None)

    def init_affected_projects(self) -> Result[None, ArtifactsError]:
        projects: list[NxProject] = []
        for kind in (ProjectKind.APPLICATION, ProjectKind.LIBRARY):
            result = affected_projects(
                self.nx,
                self.state.base,
                kind,
                task=self.state.task,
                version=self.state.current_version,
                scope=self.state.scope,
                console=self.console,
            )
            if isinstance(result, Err):
                return result
            projects.extend(result.value)
        self.projects = projects
        return Ok(None)

    def build_and_publish_projects(self) -> Result[None, ArtifactsError]:
        self.console.print(f"Number of projects being processed: {len(self.projects)}")
        for project in self.projects:
            self.console.print(f"Currently processing: {project}", Style.DIM)
            if not project.is_publishable:
                continue

            if self.state.only_delete_artifacts:
                deleted = project.delete_artifact(
                    self.state.current_version, self.registry, self.credentials, self.console
                )
                if isinstance(deleted, Err):
                    return deleted
                continue

            published = self._build_and_publish(project)
            if isinstance(published, Err):
                return published

        return Ok(None)

    def _build_and_publish(self, project: NxProject) -> Result[None, ArtifactsError]:
        built = project.build(self.nx, self.console)
        if isinstance(built, Err):
            return built

        written = project.write_npmrc(self.credentials, self.console)
        if isinstance(written, Err):
            return written

        copied = project.copy_foss_list(self.console)
        if isinstance(copied, Err):
            return copied

        stamped = project.set_version_or_generate_manifest(
            self.state.current_version, self.credentials.url, self.console
        )
        if isinstance(stamped, Err):
            return stamped

        if self.state.task is Task.PR_SNAPSHOT:
            # Every push to a PR republishes the same version.
            deleted = project.delete_artifact(
                self.state.current_version, self.registry, self.credentials, self.console
            )
            if isinstance(deleted, Err):
                return deleted

        return project.publish(self.registry, self.credentials, self.comments, self.console)

    def bump_version_for_release_branch(self) -> Result[None, ArtifactsError]:
        loaded = self.init_affected_projects()
        if isinstance(loaded, Err):
            return loaded

        tags = self.git.list_remote_tags()
        if isinstance(tags, Err):
            return Err(
                ArtifactsError(
                    kind="tag_failed",
                    message=f"cannot list remote tags: {tags.error.message}",
                )
            )

        branch = self.state.current_branch
        if not from_release_branch(branch).is_valid:
            return Err(
                ArtifactsError(
                    kind="config_invalid",
                    message=(
                        f"{branch} does not name a release line "
                        "(expected release/<major>.<minor>)"
                    ),
                )
            )

        new_version = next_release_version(branch, release_versions(tags.value))
        self.calculated_new_version = new_version
        self.console.info(f"The calculated new tag/version for branch {branch} is {new_version}")

        if not self.projects and new_version.patch != 1:
            self.console.print(
                "No projects are affected and no new minor release branch was added, "
                "therefore no new version is needed",
                Style.DIM,
            )
            return Ok(None)

        tag = new_version.git_tag()
        pushed = self.git.create_and_push_tag(tag)
        if isinstance(pushed, Err):
            return Err(
                ArtifactsError(
                    kind="tag_failed",
                    message=f"cannot create and push {tag}: {pushed.error.message}",
                    hint=f"git {pushed.error.command} exited with {pushed.error.returncode}",
                )
            )

        self.console.success(f"pushed {tag}")
        return Ok(None)
