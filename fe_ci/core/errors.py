"""Process exit codes for fe-ci commands.

CI pipelines only look at zero versus non-zero, but the distinct values make
it obvious from a job log which layer gave up.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: Configuration error (bad env flag, no npm scope in package.json)
    - 2: Environment error (not inside an Nx workspace)
    - 3: Build error (nx build, npm publish/unpublish or git tag failed)
    - 4: Registry error (npm search unreachable)
    - 5: I/O error (package.json or .npmrc could not be written)
    """

    OK = 0
    CONFIG_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    REGISTRY_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
