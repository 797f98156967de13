"""Git operations module.

Usage:
    from fe_ci.git import GitCli

    git = GitCli(workspace.root)
    match git.list_remote_tags():
        case Ok(tags):
            print(", ".join(tags))
        case Err(e):
            print(f"ls-remote failed: {e.message}")
"""

from fe_ci.git.remote import (
    PULL_REQUEST_EVENT,
    GitCli,
    GitError,
    GitRemote,
    current_branch_from_github_env,
    parse_ls_remote_tags,
)

__all__ = [
    "PULL_REQUEST_EVENT",
    "GitCli",
    "GitError",
    "GitRemote",
    "current_branch_from_github_env",
    "parse_ls_remote_tags",
]
