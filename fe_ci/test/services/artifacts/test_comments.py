from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fe_ci.services.artifacts.comments import (
    EMPTY_GITHUB_COMMENTS,
    PUBLISHED_HEADER,
    PrCommentFile,
)


def test_init_writes_sentinel_once(tmp_path: Path) -> None:
    comments = PrCommentFile(tmp_path)
    comments.init()
    assert comments.read() == EMPTY_GITHUB_COMMENTS

    comments.path.write_text("kept", encoding="utf-8")
    comments.init()
    assert comments.read() == "kept"


def test_first_append_replaces_sentinel_with_header(tmp_path: Path) -> None:
    comments = PrCommentFile(tmp_path)
    comments.init()

    comments.append("[a@1](u1)", now=datetime(2024, 3, 5, 14, 7, 9))
    comments.append("[b@1](u2)", now=datetime(2024, 3, 5, 14, 9, 0))

    assert comments.read() == (
        f"{PUBLISHED_HEADER}\n"
        "Last updated: 2024-03-05 14:07:09\n"
        "[a@1](u1)\n"
        "[b@1](u2)\n"
    )


def test_append_without_init_creates_file(tmp_path: Path) -> None:
    comments = PrCommentFile(tmp_path)
    comments.append("[a@1](u1)")
    assert comments.read() == "[a@1](u1)\n"


def test_file_lives_at_repository_root(tmp_path: Path) -> None:
    assert PrCommentFile(tmp_path).path == tmp_path / "githubCommentsForPR.txt"
