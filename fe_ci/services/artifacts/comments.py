"""The PR comment file.

The GitHub workflow posts the content of this file as a comment on the pull
request once the artifacts step is done. It is created with a placeholder
before anything is published, and every successful publish appends a line.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fe_ci.services.artifacts.config import GITHUB_COMMENTS_FILE

EMPTY_GITHUB_COMMENTS = (
    "No snapshots of projects have been published (probably no project is affected)"
)
PUBLISHED_HEADER = ":tada: Snapshots of the following projects have been published:"


class PrCommentFile:
    def __init__(self, root: Path) -> None:
        self.path = root / GITHUB_COMMENTS_FILE

    def init(self) -> None:
        if not self.path.exists():
            self.path.write_text(EMPTY_GITHUB_COMMENTS, encoding="utf-8")

    def append(self, message: str, *, now: datetime | None = None) -> None:
        if not self.path.exists():
            self.path.write_text(f"{message}\n", encoding="utf-8")
            return

        if EMPTY_GITHUB_COMMENTS in self.path.read_text(encoding="utf-8"):
            stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
            self.path.write_text(
                f"{PUBLISHED_HEADER}\nLast updated: {stamp}\n", encoding="utf-8"
            )

        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"{message}\n")

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8") if self.path.exists() else ""
