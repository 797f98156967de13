"""Removal of old snapshot versions from the npm registry.

Snapshot versions carry their publish date (`0.0.0-SNAPSHOT-l3a5ltgi-20220517`).
Everything older than the retention window is unpublished; versions without
a readable date are kept.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from fe_ci.core.result import Err, Ok, Result
from fe_ci.output.console import ConsoleProtocol, Style
from fe_ci.services.artifacts.config import SNAPSHOT_LABEL, SNAPSHOT_RETENTION_MONTHS
from fe_ci.services.artifacts.credentials import JfrogCredentials
from fe_ci.services.artifacts.errors import ArtifactsError
from fe_ci.services.artifacts.model import ProjectKind
from fe_ci.services.artifacts.project import load_project
from fe_ci.services.artifacts.registry import NotFound, NpmRegistry
from fe_ci.services.artifacts.version import from_snapshot_string

_DATE_TOKEN_RE = re.compile(r"(?<![0-9A-Za-z])(\d{4})(\d{2})(\d{2})(?![0-9A-Za-z])")


def is_snapshot(version: str) -> bool:
    return SNAPSHOT_LABEL.lower() in version.lower()


def snapshot_date(version: str) -> date | None:
    """The `YYYYMMDD` token of a snapshot version, if it has a valid one."""
    for m in _DATE_TOKEN_RE.finditer(version):
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            continue
    return None


def months_before(day: date, months: int) -> date:
    """Same day `months` calendar months earlier, clamped to the month's end."""
    total = day.year * 12 + (day.month - 1) - months
    year, month0 = divmod(total, 12)
    month = month0 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def is_expired(version: str, now: datetime, months: int = SNAPSHOT_RETENTION_MONTHS) -> bool:
    published = snapshot_date(version)
    if published is None:
        return False
    return published <= months_before(now.date(), months)


def expired_snapshots(
    versions: tuple[str, ...] | list[str],
    now: datetime,
    months: int = SNAPSHOT_RETENTION_MONTHS,
) -> list[str]:
    return [v for v in versions if is_snapshot(v) and is_expired(v, now, months)]


@dataclass(slots=True)
class CleanupSnapshots:
    root: Path
    scope: str
    registry: NpmRegistry
    credentials: JfrogCredentials
    console: ConsoleProtocol
    now: datetime = field(default_factory=datetime.now)
    retention_months: int = SNAPSHOT_RETENTION_MONTHS
    deleted: list[str] = field(default_factory=list)

    def delete_superfluous_artifacts(self) -> Result[list[str], ArtifactsError]:
        """Unpublish every expired snapshot of every package in the scope.

        Returns the `name@version` specs that were actually removed.
        """
        packages = self.registry.search(self.scope)
        if isinstance(packages, Err):
            return packages

        self.console.print(f"Packages in {self.scope}: {len(packages.value)}", Style.DIM)
        for package in packages.value:
            result = self._cleanup_package(package)
            if isinstance(result, Err):
                return result

        self.console.success(f"Deleted {len(self.deleted)} snapshot version(s)")
        return Ok(self.deleted)

    def _cleanup_package(self, package: str) -> Result[None, ArtifactsError]:
        lookup = self.registry.lookup_versions(package, self.root)
        if isinstance(lookup, NotFound):
            self.console.warning(f"skipping {package}: {lookup.reason}")
            return Ok(None)

        expired = expired_snapshots(lookup.versions, self.now, self.retention_months)
        if not expired:
            self.console.print(f"{package}: nothing to clean up", Style.DIM)
            return Ok(None)

        self.console.info(f"{package}: {len(expired)} snapshot(s) to delete")
        scope, _, name = package.partition("/")
        for raw in expired:
            version = from_snapshot_string(raw)
            project = load_project(
                name,
                ProjectKind.APPLICATION,
                root=self.root,
                project_files=[],
                version=version,
                scope=scope,
            )
            deleted = project.delete_artifact(version, self.registry, self.credentials, self.console)
            if isinstance(deleted, Err):
                return deleted
            if deleted.value:
                self.deleted.append(project.install_spec(version))
        return Ok(None)
