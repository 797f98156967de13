from __future__ import annotations

# Git refs
VERSION_TAG_PREFIX = "version/"
RELEASE_BRANCH_PREFIX = "release/"
DEFAULT_BASE = "main"
REMOTE_NAME = "origin"

# Snapshot versions
SNAPSHOT_VERSION = "0.0.0"
SNAPSHOT_LABEL = "SNAPSHOT"
PR_BRANCH_MAX_CHARS = 50

# Nx project naming conventions
E2E_SUFFIX = "-e2e"
INTERNAL_API_PREFIX = "api-"
PUBLIC_API_FILE_NAME = "public_api.ts"
PROJECT_FILE_NAME = "project.json"
PACKAGE_JSON = "package.json"
NPMRC = ".npmrc"
DIST_DIR = "dist"

# Files shared with the GitHub workflow
FOSS_LIST_FILENAME = "cplace-foss-list.json"
GITHUB_COMMENTS_FILE = "githubCommentsForPR.txt"

# Published manifest
MANIFEST_AUTHOR = "squad-fe"
MANIFEST_ACCESS = "restricted"

# npm dist-tags
PR_SNAPSHOT_DIST_TAG = "latest-pr-snapshot"
SNAPSHOT_DIST_TAG = "snapshot"

# Registry
DEFAULT_NPM_REGISTRY_REPO = "cplace-npm-local"

# Cleanup of old snapshots
SNAPSHOT_RETENTION_MONTHS = 4
