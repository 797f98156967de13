from __future__ import annotations

import re
import string
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

from fe_ci.services.artifacts.config import (
    PR_BRANCH_MAX_CHARS,
    RELEASE_BRANCH_PREFIX,
    SNAPSHOT_LABEL,
    SNAPSHOT_VERSION,
    VERSION_TAG_PREFIX,
)

VersionBump = Literal["minor", "patch"]

# https://gist.github.com/jhorsman/62eeea161a13b80e39f5249281e17c39
_SEMVER_RE = re.compile(
    r"([0-9]+)\.([0-9]+)\.([0-9]+)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
)
_PR_BRANCH_UNSAFE_RE = re.compile(r"[^0-9A-Za-z\-.@]")
_BASE36_DIGITS = string.digits + string.ascii_lowercase


@dataclass(frozen=True, slots=True)
class Version:
    """A semver-like version as published to the npm registry.

    major/minor/patch are -1 when the source string was not a version.
    Ordering only looks at (major, minor, patch); the suffixes ride along
    into the rendered string.
    """

    major: int = -1
    minor: int = -1
    patch: int = -1
    custom_suffix: str = ""
    unique_identifier: str = ""

    @classmethod
    def parse(cls, text: str, custom_suffix: str = "", unique_identifier: str = "") -> Version:
        m = _SEMVER_RE.fullmatch(text.strip())
        if m is None:
            return cls(custom_suffix=custom_suffix, unique_identifier=unique_identifier)
        return cls(
            int(m.group(1)),
            int(m.group(2)),
            int(m.group(3)),
            custom_suffix,
            unique_identifier,
        )

    @property
    def is_valid(self) -> bool:
        return self.major != -1 and self.minor != -1 and self.patch != -1

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def compare_to(self, other: Version) -> int:
        """Negative, zero or positive like a comparator; suffixes are ignored."""
        if self.major != other.major:
            return self.major - other.major
        if self.minor != other.minor:
            return self.minor - other.minor
        return self.patch - other.patch

    def bump(self, kind: VersionBump) -> Version:
        match kind:
            case "minor":
                return replace(self, minor=self.minor + 1)
            case "patch":
                return replace(self, patch=self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def with_patch(self, patch: int) -> Version:
        return replace(self, patch=patch)

    def git_tag(self) -> str:
        return f"{VERSION_TAG_PREFIX}{self}"

    def npm_release_tag(self) -> str:
        return f"release-{self.major}.{self.minor}"

    def __str__(self) -> str:
        return (
            f"{self.major}.{self.minor}.{self.patch}{self.custom_suffix}{self.unique_identifier}"
        )


def from_git_tag(tag: str) -> Version:
    """`version/22.3.1` -> 22.3.1"""
    return Version.parse(tag.removeprefix(VERSION_TAG_PREFIX))


def from_release_branch(branch: str) -> Version:
    """`release/22.4` -> 22.4.0"""
    return Version.parse(branch.strip().replace(RELEASE_BRANCH_PREFIX, "", 1) + ".0")


def from_snapshot_string(snapshot: str) -> Version:
    """Split a published snapshot (`0.0.0-SNAPSHOT-l3a5ltgi-20220517`) into base and suffix."""
    head, sep, tail = snapshot.partition("-")
    return Version.parse(head, f"{sep}{tail}")


def to_base36(value: int) -> str:
    if value < 0:
        return "-" + to_base36(-value)
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def hashed_timestamp(now: datetime) -> str:
    """Base36 epoch milliseconds plus the calendar date, e.g. `lccjqzk0-20230101`.

    The millisecond part keeps two snapshot runs on the same day apart; the
    date part is what the snapshot cleanup reads back.
    """
    millis = round(now.timestamp() * 1000)
    return f"{to_base36(millis)}-{now:%Y%m%d}"


def snapshot_identifier(now: datetime) -> str:
    return f"-{SNAPSHOT_LABEL}-{hashed_timestamp(now)}"


def pr_suffix(branch: str, pr_number: str) -> str:
    """`feat/ISSUE-1_x` + `222` -> `-feat-ISSUE-1-x-222`"""
    sanitized = _PR_BRANCH_UNSAFE_RE.sub("-", branch[:PR_BRANCH_MAX_CHARS])
    return f"-{sanitized}-{pr_number}"


def main_snapshot_version(now: datetime) -> Version:
    return Version.parse(SNAPSHOT_VERSION, snapshot_identifier(now))


def pr_snapshot_version(branch: str, pr_number: str) -> Version:
    return Version.parse(SNAPSHOT_VERSION, pr_suffix(branch, pr_number))


def release_versions(tags: list[str]) -> list[Version]:
    """Versions of all `version/*` tags, ascending; other tags are ignored."""
    versions = [
        from_git_tag(tag) for tag in tags if tag.startswith(VERSION_TAG_PREFIX)
    ]
    return sorted((v for v in versions if v.is_valid), key=lambda v: v.sort_key)


def latest_for_release_line(tags: list[Version], line: Version) -> Version | None:
    """Highest tag sharing major.minor with `line`, if any."""
    matching = [v for v in tags if v.major == line.major and v.minor == line.minor]
    if not matching:
        return None
    return max(matching, key=lambda v: v.sort_key)


def next_release_version(branch: str, tags: list[Version]) -> Version:
    """Next patch tag for a release branch.

    The first tag of a new release line is `{major}.{minor}.1`.
    """
    line = from_release_branch(branch)
    latest = latest_for_release_line(tags, line)
    if latest is None:
        return line.with_patch(1)
    return latest.bump("patch")
