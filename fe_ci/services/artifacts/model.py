from __future__ import annotations

from enum import StrEnum


class Task(StrEnum):
    """What a run of the artifacts handler publishes."""

    MAIN_SNAPSHOT = "MAIN_SNAPSHOT"
    PR_SNAPSHOT = "PR_SNAPSHOT"
    RELEASE = "RELEASE"


class ProjectKind(StrEnum):
    APPLICATION = "application"
    LIBRARY = "library"

    @property
    def category(self) -> str:
        """Top-level workspace directory holding projects of this kind."""
        return "apps" if self is ProjectKind.APPLICATION else "libs"
