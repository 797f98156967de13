from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from fe_ci.platform.process import ProcessError

ArtifactsErrorKind = Literal[
    "config_invalid",
    "nx_failed",
    "build_failed",
    "publish_failed",
    "unpublish_failed",
    "tag_failed",
    "registry_failed",
    "io_failed",
]


@dataclass(frozen=True, slots=True)
class ArtifactsError:
    kind: ArtifactsErrorKind
    message: str
    # Captured command output or a remediation hint.
    hint: str | None = None


def from_process(kind: ArtifactsErrorKind, message: str, error: ProcessError) -> ArtifactsError:
    return ArtifactsError(kind=kind, message=f"{message}: {error}", hint=error.output or None)
