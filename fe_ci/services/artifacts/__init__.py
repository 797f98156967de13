"""Versioning, publishing and cleanup of the workspace's npm artifacts."""
