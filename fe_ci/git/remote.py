"""Git operations needed by the release flow.

Only three things are ever asked of git: which tags exist on the remote,
creating and pushing a new one, and resolving the remote default branch.
`GitRemote` is the protocol the services depend on; `GitCli` is the
implementation that shells out to `git`.

The branch being built is not read from git at all: on GitHub Actions the
checkout is detached, so it comes from the event environment instead
(`current_branch_from_github_env`).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from fe_ci.core.result import Err, Ok, Result
from fe_ci.platform.process import ProcessError
from fe_ci.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

_TAGS_REF_PREFIX = "refs/tags/"
_PEELED_SUFFIX = "^{}"

PULL_REQUEST_EVENT = "pull_request"

__all__ = [
    "GitCli",
    "GitError",
    "GitRemote",
    "PULL_REQUEST_EVENT",
    "current_branch_from_github_env",
    "parse_ls_remote_tags",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (stderr, or a summary)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class GitRemote(Protocol):
    def list_remote_tags(self) -> Result[list[str], GitError]: ...

    def create_and_push_tag(self, tag: str) -> Result[None, GitError]: ...

    def default_remote_head(self) -> Result[str, GitError]: ...


def current_branch_from_github_env(env: Mapping[str, str]) -> str:
    """Branch name of the current workflow run.

    On a pull_request event GITHUB_HEAD_REF holds the PR source branch
    (e.g. `feature/PFM-ISSUE-1234-add-awesome-feature`); on a push
    GITHUB_REF_NAME holds the pushed branch or tag (e.g. `main`).
    """
    event = env.get("GITHUB_EVENT_NAME", "")
    if event.lower() == PULL_REQUEST_EVENT:
        return env.get("GITHUB_HEAD_REF", "")
    return env.get("GITHUB_REF_NAME", "")


def parse_ls_remote_tags(output: str) -> list[str]:
    """Tag names from `git ls-remote --tags` output, in listing order.

    `<sha>\\trefs/tags/version/1.2.3` -> `version/1.2.3`. Peeled entries of
    annotated tags (`...^{}`) duplicate their tag and are dropped.
    """
    tags: list[str] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 2:
            continue
        ref = parts[1]
        if not ref.startswith(_TAGS_REF_PREFIX) or ref.endswith(_PEELED_SUFFIX):
            continue
        tags.append(ref.removeprefix(_TAGS_REF_PREFIX))
    return tags


class GitCli:
    """GitRemote backed by the git executable, run at the repository root."""

    def __init__(self, root: Path, remote: str = "origin") -> None:
        self.root = root
        self.remote = remote

    def list_remote_tags(self) -> Result[list[str], GitError]:
        result = self._run(
            ["ls-remote", "--tags", self.remote], timeout=_GIT_NETWORK_TIMEOUT_SECONDS
        )
        match result:
            case Err(e):
                return Err(self._error("ls-remote", e))
            case Ok(stdout):
                return Ok(parse_ls_remote_tags(stdout))

    def create_and_push_tag(self, tag: str) -> Result[None, GitError]:
        created = self._run(["tag", "-a", tag, "-m", tag], timeout=_GIT_TIMEOUT_SECONDS)
        if isinstance(created, Err):
            return Err(self._error("tag", created.error))

        pushed = self._run(["push", self.remote, tag], timeout=_GIT_NETWORK_TIMEOUT_SECONDS)
        if isinstance(pushed, Err):
            return Err(self._error("push", pushed.error))
        return Ok(None)

    def default_remote_head(self) -> Result[str, GitError]:
        result = self._run(
            ["rev-parse", "--abbrev-ref", f"{self.remote}/HEAD"], timeout=_GIT_TIMEOUT_SECONDS
        )
        match result:
            case Err(e):
                return Err(self._error("rev-parse", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(self, args: list[str], *, timeout: float) -> Result[str, ProcessError]:
        return run_process(["git", *args], cwd=self.root, timeout=timeout)

    @staticmethod
    def _error(command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or f"git {command} failed",
            returncode=e.returncode,
        )
