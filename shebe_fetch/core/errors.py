"""Exit codes for CLI commands.

Each acquisition failure kind maps onto one of these codes so that a host
runtime wrapping the CLI can branch on the process status alone:
- 0: Success
- 1: User error (bad version string, bad option)
- 2: Unsupported platform (no release asset exists for this host)
- 3: Release or asset not found
- 4: Network error or rate limiting (transient, retry later)
- 5: Archive error (truncated, corrupt or malformed download)
- 6: I/O error (cache directory not writable)
- 7: Conformance drift (naming convention changed upstream)
- 130: Cancelled
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are part of the CLI contract."""

    OK = 0
    USER_ERROR = 1
    UNSUPPORTED = 2
    NOT_FOUND = 3
    NETWORK_ERROR = 4
    ARCHIVE_ERROR = 5
    IO_ERROR = 6
    DRIFT = 7
    CANCELLED = 130

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_transient(self) -> bool:
        """True for failures a caller may retry after a delay."""
        return self == ErrorCode.NETWORK_ERROR
