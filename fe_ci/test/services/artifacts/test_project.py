from __future__ import annotations

import json
from pathlib import Path

import pytest

from fe_ci.core.result import Err, Ok
from fe_ci.core.workspace import Workspace
from fe_ci.output.console import MockConsole
from fe_ci.services.artifacts.comments import PrCommentFile
from fe_ci.services.artifacts.model import ProjectKind, Task
from fe_ci.services.artifacts.project import (
    determine_publishability,
    dist_dir_for,
    distribution_tag,
    load_project,
    resolve_project_path,
)
from fe_ci.services.artifacts.version import Version
from fe_ci.test.services.artifacts._fakes import (
    APP_1,
    APP_E2E,
    CREDENTIALS,
    LIB_1,
    LIB_2,
    SCOPE,
    FakeNx,
    FakeRegistry,
    make_workspace,
)

PROJECT_FILES = [
    "apps/cf-platform/project.json",
    "apps/cf-platform-e2e/project.json",
    "apps/my/cf-project-planning/project.json",
    "libs/cf-core-lib/project.json",
    "libs/core-lib/project.json",
    "libs/shared/util/project.json",
]


class TestResolvePath:
    def test_exact_match(self) -> None:
        assert resolve_project_path("cf-core-lib", ProjectKind.LIBRARY, PROJECT_FILES) == (
            "libs/cf-core-lib"
        )

    def test_name_that_is_a_suffix_of_another(self) -> None:
        assert resolve_project_path("core-lib", ProjectKind.LIBRARY, PROJECT_FILES) == "libs/core-lib"

    def test_e2e_and_non_e2e_never_cross_match(self) -> None:
        assert resolve_project_path("cf-platform", ProjectKind.APPLICATION, PROJECT_FILES) == (
            "apps/cf-platform"
        )
        assert resolve_project_path("cf-platform-e2e", ProjectKind.APPLICATION, PROJECT_FILES) == (
            "apps/cf-platform-e2e"
        )

    def test_nested_project(self) -> None:
        assert resolve_project_path(
            "cf-project-planning", ProjectKind.APPLICATION, PROJECT_FILES
        ) == "apps/my/cf-project-planning"

    def test_wrong_category_does_not_match(self) -> None:
        assert resolve_project_path("cf-core-lib", ProjectKind.APPLICATION, PROJECT_FILES) is None

    def test_unknown_project(self) -> None:
        assert resolve_project_path("nope", ProjectKind.LIBRARY, PROJECT_FILES) is None


class TestPaths:
    def test_dist_dir(self, tmp_path: Path) -> None:
        assert dist_dir_for(tmp_path, "apps/my/cf-platform", ProjectKind.APPLICATION) == (
            tmp_path / "dist" / "apps" / "my" / "cf-platform"
        )
        assert dist_dir_for(tmp_path, "libs/cf-core-lib", ProjectKind.LIBRARY) == (
            tmp_path / "dist" / "libs" / "cf-core-lib"
        )

    def test_default_path_when_unresolved(self, tmp_path: Path) -> None:
        project = load_project("ghost", ProjectKind.APPLICATION, root=tmp_path, project_files=[])
        assert project.path_to_project == "apps/ghost"
        assert project.dist_dir == tmp_path / "dist" / "apps" / "ghost"


class TestPublishability:
    def test_library_requires_flag(self) -> None:
        assert determine_publishability("l", ProjectKind.LIBRARY, {"publishable": True}, has_public_api=False)
        assert not determine_publishability("l", ProjectKind.LIBRARY, {}, has_public_api=True)
        assert not determine_publishability("l", ProjectKind.LIBRARY, {"publishable": "true"}, has_public_api=False)
        assert not determine_publishability("l", ProjectKind.LIBRARY, None, has_public_api=False)

    def test_applications(self) -> None:
        assert determine_publishability("a", ProjectKind.APPLICATION, None, has_public_api=False)
        assert not determine_publishability("a-e2e", ProjectKind.APPLICATION, None, has_public_api=False)
        assert determine_publishability("a-e2e", ProjectKind.APPLICATION, None, has_public_api=True)

    def test_loaded_projects(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        files = Workspace(root=root).project_files()

        lib1 = load_project(LIB_1, ProjectKind.LIBRARY, root=root, project_files=files)
        lib2 = load_project(LIB_2, ProjectKind.LIBRARY, root=root, project_files=files)
        app = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=files)
        e2e = load_project(APP_E2E, ProjectKind.APPLICATION, root=root, project_files=files)

        assert lib1.has_manifest and not lib1.is_publishable
        assert lib2.has_manifest and lib2.is_publishable
        assert app.is_publishable and not app.has_manifest
        assert not e2e.is_publishable

        (root / "apps" / APP_E2E / "src").mkdir()
        (root / "apps" / APP_E2E / "src" / "public_api.ts").write_text("", encoding="utf-8")
        e2e = load_project(APP_E2E, ProjectKind.APPLICATION, root=root, project_files=files)
        assert e2e.is_publishable


class TestDistributionTag:
    @pytest.mark.parametrize(
        ("task", "expected"),
        [
            (Task.PR_SNAPSHOT, "latest-pr-snapshot"),
            (Task.RELEASE, "release-5.18"),
            (Task.MAIN_SNAPSHOT, "snapshot"),
        ],
    )
    def test_tag_per_task(self, task: Task, expected: str) -> None:
        assert distribution_tag(task, Version.parse("5.18.0")) == expected


class TestManifest:
    def test_generated_for_application(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        version = Version.parse("5.18.0")
        project = load_project(
            APP_1,
            ProjectKind.APPLICATION,
            root=root,
            project_files=Workspace(root=root).project_files(),
            task=Task.RELEASE,
            version=version,
            scope=SCOPE,
        )

        result = project.set_version_or_generate_manifest(version, CREDENTIALS.url, MockConsole())

        assert isinstance(result, Ok)
        written = json.loads(project.package_json_in_dist.read_text(encoding="utf-8"))
        assert written == {
            "author": "squad-fe",
            "name": f"{SCOPE}/{APP_1}",
            "version": "5.18.0",
            "publishConfig": {
                "registry": CREDENTIALS.url,
                "access": "restricted",
                "tag": "release-5.18",
            },
        }

    def test_built_library_manifest_is_stamped_and_idempotent(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        nx = FakeNx(workspace=Workspace(root=root))
        version = Version.parse("0.0.0", "-feat-x-1")
        project = load_project(
            LIB_2,
            ProjectKind.LIBRARY,
            root=root,
            project_files=nx.project_files(),
            task=Task.PR_SNAPSHOT,
            version=version,
            scope=SCOPE,
        )
        console = MockConsole()
        assert isinstance(project.build(nx, console), Ok)

        project.set_version_or_generate_manifest(version, CREDENTIALS.url, console)
        first = project.package_json_in_dist.read_text(encoding="utf-8")
        project.set_version_or_generate_manifest(version, CREDENTIALS.url, console)
        second = project.package_json_in_dist.read_text(encoding="utf-8")

        assert first == second
        data = json.loads(first)
        assert data["name"] == f"{SCOPE}/{LIB_2}"
        assert data["publishable"] is True
        assert data["version"] == "0.0.0-feat-x-1"
        assert data["publishConfig"]["tag"] == "latest-pr-snapshot"

    def test_missing_built_manifest_falls_back_to_source(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(
            LIB_2,
            ProjectKind.LIBRARY,
            root=root,
            project_files=Workspace(root=root).project_files(),
            scope=SCOPE,
        )
        console = MockConsole()

        result = project.set_version_or_generate_manifest(Version.parse("1.0.0"), "https://r/", console)

        assert isinstance(result, Ok)
        assert console.has_warning()
        assert json.loads(project.package_json_in_dist.read_text(encoding="utf-8"))["version"] == "1.0.0"


class TestNpmrcAndFossList:
    def test_npmrc_is_written_and_token_redacted_in_log(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[], scope=SCOPE)
        console = MockConsole()

        assert isinstance(project.write_npmrc(CREDENTIALS, console), Ok)

        assert project.npmrc_in_dist.read_text(encoding="utf-8") == (
            f"{SCOPE}:registry=https://cplace.jfrog.io/artifactory/api/npm/cplace-npm-local/\n"
            "//cplace.jfrog.io/artifactory/api/npm/cplace-npm-local/:_auth=c2VjcmV0LXRva2Vu\n"
            "//cplace.jfrog.io/artifactory/api/npm/cplace-npm-local/:always-auth=true\n"
            "//cplace.jfrog.io/artifactory/api/npm/cplace-npm-local/:email=ci@cplace.com"
        )
        assert CREDENTIALS.base64_token not in console.text
        assert "_auth=***" in console.text

    def test_missing_foss_list_only_warns(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[])
        console = MockConsole()

        assert isinstance(project.copy_foss_list(console), Ok)
        assert console.has_warning()
        assert not (project.dist_dir / "cplace-foss-list.json").exists()

    def test_foss_list_is_copied(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        (root / "cplace-foss-list.json").write_text("[]", encoding="utf-8")
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[])

        assert isinstance(project.copy_foss_list(MockConsole()), Ok)
        assert (project.dist_dir / "cplace-foss-list.json").read_text(encoding="utf-8") == "[]"


class TestBuild:
    def test_applications_get_source_maps_outside_releases(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        nx = FakeNx(workspace=Workspace(root=root))
        snapshot = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[])
        release = load_project(
            APP_1, ProjectKind.APPLICATION, root=root, project_files=[], task=Task.RELEASE
        )
        lib = load_project(LIB_2, ProjectKind.LIBRARY, root=root, project_files=[])

        for project in (snapshot, release, lib):
            project.build(nx, MockConsole())

        assert nx.builds == [(APP_1, True), (APP_1, False), (LIB_2, False)]

    def test_build_failure_is_returned(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        nx = FakeNx(workspace=Workspace(root=root), build_error="boom")
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[])

        result = project.build(nx, MockConsole())

        assert isinstance(result, Err)
        assert result.error.kind == "build_failed"


class TestPublish:
    def test_publish_appends_markdown_link(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        version = Version.parse("5.18.0")
        project = load_project(
            APP_1, ProjectKind.APPLICATION, root=root, project_files=[], version=version, scope=SCOPE
        )
        registry = FakeRegistry()
        comments = PrCommentFile(root)
        console = MockConsole()
        project.set_version_or_generate_manifest(version, CREDENTIALS.url, console)

        assert isinstance(project.publish(registry, CREDENTIALS, comments, console), Ok)

        assert registry.published == [f"{SCOPE}/{APP_1}@5.18.0"]
        assert comments.read() == (
            f"[{SCOPE}/{APP_1}@5.18.0](https://cplace.jfrog.io/ui/repos/tree/NpmInfo/"
            f"cplace-npm-local/{SCOPE}/{APP_1}/-/{SCOPE}/{APP_1}-5.18.0.tgz)\n"
        )

    def test_unpublishable_project_is_skipped(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(LIB_1, ProjectKind.LIBRARY, root=root, project_files=[])
        registry = FakeRegistry()

        assert isinstance(project.publish(registry, CREDENTIALS, PrCommentFile(root), MockConsole()), Ok)
        assert registry.published == []

    def test_publish_failure_is_returned(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[], scope=SCOPE)
        registry = FakeRegistry(publish_error="E403")
        comments = PrCommentFile(root)

        result = project.publish(registry, CREDENTIALS, comments, MockConsole())

        assert isinstance(result, Err)
        assert result.error.kind == "publish_failed"
        assert comments.read() == ""


class TestDeleteArtifact:
    def test_missing_package_is_a_noop(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[], scope=SCOPE)
        registry = FakeRegistry()
        console = MockConsole()

        result = project.delete_artifact(Version.parse("1.0.0"), registry, CREDENTIALS, console)

        assert result == Ok(False)
        assert registry.unpublished == []
        assert console.find("Skipping deletion")

    def test_missing_version_is_a_noop(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[], scope=SCOPE)
        registry = FakeRegistry(versions={f"{SCOPE}/{APP_1}": ["0.9.0"]})

        result = project.delete_artifact(Version.parse("1.0.0"), registry, CREDENTIALS, MockConsole())

        assert result == Ok(False)
        assert registry.unpublished == []

    def test_existing_version_is_unpublished_after_preparing_dist(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        version = Version.parse("1.0.0")
        project = load_project(
            APP_1, ProjectKind.APPLICATION, root=root, project_files=[], version=version, scope=SCOPE
        )
        registry = FakeRegistry(versions={f"{SCOPE}/{APP_1}": ["1.0.0"]})

        result = project.delete_artifact(version, registry, CREDENTIALS, MockConsole())

        assert result == Ok(True)
        assert registry.unpublished == [f"{SCOPE}/{APP_1}@1.0.0"]
        assert project.npmrc_in_dist.is_file()
        assert project.package_json_in_dist.is_file()

    def test_unpublish_failure_is_returned(self, tmp_path: Path) -> None:
        root = make_workspace(tmp_path)
        project = load_project(APP_1, ProjectKind.APPLICATION, root=root, project_files=[], scope=SCOPE)
        registry = FakeRegistry(
            versions={f"{SCOPE}/{APP_1}": ["1.0.0"]}, unpublish_error="E405 not allowed"
        )

        result = project.delete_artifact(Version.parse("1.0.0"), registry, CREDENTIALS, MockConsole())

        assert isinstance(result, Err)
        assert result.error.kind == "unpublish_failed"
