"""Run configuration and the task state machine.

`RunConfig` is read from the environment exactly once, at the CLI edge.
`resolve_run_state` turns it into the task, version and tag of the run.
Nothing below the CLI reads `os.environ`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from fe_ci.core.result import Err, Ok, Result
from fe_ci.core.structured import StrDict
from fe_ci.git.remote import current_branch_from_github_env
from fe_ci.services.artifacts.config import (
    DEFAULT_BASE,
    RELEASE_BRANCH_PREFIX,
    REMOTE_NAME,
    VERSION_TAG_PREFIX,
)
from fe_ci.services.artifacts.credentials import JfrogCredentials
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.model import Task
from fe_ci.services.artifacts.version import (
    Version,
    from_git_tag,
    from_release_branch,
    main_snapshot_version,
    pr_snapshot_version,
)

_COMMIT_HASH_RE = re.compile(r"[0-9a-f]{5,40}")


def _parse_flag(env: Mapping[str, str], name: str, default: bool) -> Result[bool, ArtifactsError]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return Ok(default)
    value = raw.strip().lower()
    if value == "true":
        return Ok(True)
    if value == "false":
        return Ok(False)
    return Err(
        ArtifactsError(
            kind="config_invalid",
            message=f"{name} must be 'true' or 'false', got {raw!r}",
        )
    )


@dataclass(frozen=True, slots=True)
class RunConfig:
    tag: str = ""
    base: str = DEFAULT_BASE
    pr_number: str = ""
    current_branch: str = ""
    only_delete_artifacts: bool = False
    only_bump_version: bool = False
    snapshot: bool = True
    credentials: JfrogCredentials = field(default_factory=JfrogCredentials)

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> Result[RunConfig, ArtifactsError]:
        flags: dict[str, bool] = {}
        for name, default in (
            ("ONLY_DELETE_ARTIFACTS", False),
            ("ONLY_BUMP_VERSION", False),
            ("SNAPSHOT", True),
        ):
            parsed = _parse_flag(env, name, default)
            if isinstance(parsed, Err):
                return parsed
            flags[name] = parsed.value

        return Ok(
            cls(
                tag=env.get("TAG", "").strip(),
                base=env.get("BASE", "").strip() or DEFAULT_BASE,
                pr_number=env.get("PR_NUMBER", "").strip(),
                current_branch=current_branch_from_github_env(env),
                only_delete_artifacts=flags["ONLY_DELETE_ARTIFACTS"],
                only_bump_version=flags["ONLY_BUMP_VERSION"],
                snapshot=flags["SNAPSHOT"],
                credentials=JfrogCredentials.from_env(env),
            )
        )

    @property
    def is_release_branch(self) -> bool:
        return self.current_branch.startswith(RELEASE_BRANCH_PREFIX)


@dataclass(frozen=True, slots=True)
class RunState:
    task: Task
    base: str
    tag: str
    current_version: Version
    only_affected: bool
    is_snapshot: bool
    scope: str
    config: RunConfig

    @property
    def only_delete_artifacts(self) -> bool:
        return self.config.only_delete_artifacts

    @property
    def only_bump_version(self) -> bool:
        return self.config.only_bump_version

    @property
    def pr_number(self) -> str:
        return self.config.pr_number

    @property
    def current_branch(self) -> str:
        return self.config.current_branch

    def to_log_dict(self) -> StrDict:
        return {
            "task": str(self.task),
            "base": self.base,
            "tag": self.tag,
            "currentVersion": str(self.current_version),
            "onlyAffected": self.only_affected,
            "isSnapshot": self.is_snapshot,
            "onlyDeleteArtifacts": self.only_delete_artifacts,
            "onlyBumpVersion": self.only_bump_version,
            "prNumber": self.pr_number,
            "currentBranch": self.current_branch,
            "scope": self.scope,
        }


def normalize_base(base: str) -> str:
    """`main` -> `origin/main`; commit hashes are left alone."""
    if _COMMIT_HASH_RE.fullmatch(base):
        return base
    return f"{REMOTE_NAME}/{base}"


def resolve_run_state(config: RunConfig, scope: str, now: datetime) -> RunState:
    """Derive task, version and tag from the run configuration.

    The checks run in a fixed order and each one overrides what the
    previous ones decided; a PR number therefore always wins.
    """
    task = Task.MAIN_SNAPSHOT
    only_affected = True
    is_snapshot = config.snapshot
    tag = config.tag
    current_version = Version()

    if tag.startswith(VERSION_TAG_PREFIX):
        task = Task.RELEASE
        only_affected = False
        is_snapshot = False
        current_version = from_git_tag(tag)
    elif config.is_release_branch:
        task = Task.RELEASE
        is_snapshot = False
        current_version = from_release_branch(config.current_branch)

    if is_snapshot:
        current_version = main_snapshot_version(now)
        tag = str(current_version)

    if config.pr_number:
        task = Task.PR_SNAPSHOT
        is_snapshot = True
        current_version = pr_snapshot_version(config.current_branch, config.pr_number)

    return RunState(
        task=task,
        base=normalize_base(config.base),
        tag=tag,
        current_version=current_version,
        only_affected=only_affected,
        is_snapshot=is_snapshot,
        scope=scope,
        config=config,
    )
