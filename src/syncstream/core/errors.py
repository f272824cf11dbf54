"""syncstream error system.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints for operators

Sync requests never fail at the HTTP level; a command that cannot start is
reported through the run's final event, rendered from the same messages.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        5xxx - Configuration errors
        6xxx - Runtime errors
        7xxx - Network/IO errors
    """

    # 5xxx - Configuration Errors
    CONFIG_MISSING = 5001
    CONFIG_INVALID = 5002

    # 6xxx - Runtime Errors
    RUNTIME_PROCESS_START_FAILED = 6001

    # 7xxx - Network/IO Errors
    LISTENER_ACTIVATION_FAILED = 7001
    NETWORK_UNREACHABLE = 7002
    STREAM_INCOMPLETE = 7003


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CONFIG_MISSING: "Required configuration '{key}' not found.",
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.RUNTIME_PROCESS_START_FAILED: "Could not start '{command}': {detail}",
    ErrorCode.LISTENER_ACTIVATION_FAILED: "Socket activation failed: {detail}",
    ErrorCode.NETWORK_UNREACHABLE: "Cannot reach {url}: {detail}",
    ErrorCode.STREAM_INCOMPLETE: "Event stream from {url} ended without a completion event.",
}


RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.CONFIG_INVALID: [
        "Check .syncstream/config.yaml for typos",
        "Unset SYNCSTREAM_* environment overrides and retry",
    ],
    ErrorCode.LISTENER_ACTIVATION_FAILED: [
        "Check the systemd .socket unit that starts this service",
        "Run without socket activation using --no-activation",
    ],
    ErrorCode.NETWORK_UNREACHABLE: [
        "Check that 'syncstream serve' is running and the URL is correct",
    ],
}


class SyncStreamError(Exception):
    """Base error type for all syncstream errors.

    Example:
        >>> err = SyncStreamError(
        ...     code=ErrorCode.CONFIG_INVALID,
        ...     context={"key": "server.port", "detail": "not a number"},
        ... )
        >>> print(err)
        [SS-5002] Invalid configuration for 'server.port': not a number
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'SS-5002')."""
        return f"SS-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"SyncStreamError(code={self.code!r}, context={self.context!r})"


# Convenience factory functions

def config_error(
    code: ErrorCode,
    key: str = "",
    detail: str = "",
    cause: Exception | None = None,
) -> SyncStreamError:
    """Create a configuration error."""
    return SyncStreamError(
        code=code,
        context={"key": key, "detail": detail},
        cause=cause,
    )


def start_error(command: str, cause: Exception) -> SyncStreamError:
    """Create the error for a sync command that could not be started."""
    return SyncStreamError(
        code=ErrorCode.RUNTIME_PROCESS_START_FAILED,
        context={"command": command, "detail": str(cause) or type(cause).__name__},
        cause=cause,
    )


def client_error(
    code: ErrorCode,
    url: str,
    detail: str = "",
    cause: Exception | None = None,
) -> SyncStreamError:
    """Create an error raised by the watch client."""
    return SyncStreamError(
        code=code,
        context={"url": url, "detail": detail},
        cause=cause,
    )
