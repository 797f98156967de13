"""Application services for the fe-ci commands.

Services implement the release and CI logic, coordinating between the
domain layer (core/) and the external tools (git/, nx, npm).
"""

from fe_ci.services.artifacts.cleanup import CleanupSnapshots
from fe_ci.services.artifacts.handler import ArtifactsHandler
from fe_ci.services.run_many import RunManyPlan, execute_run_many, plan_run_many

__all__ = [
    # Artifacts
    "ArtifactsHandler",
    "CleanupSnapshots",
    # Run-many
    "RunManyPlan",
    "execute_run_many",
    "plan_run_many",
]
