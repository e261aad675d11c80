"""Documented exit codes for the MelonTap CLI.

Exit codes follow UNIX conventions:
- 0: Success
- 1: General/unspecified error
- 2: Invalid command-line arguments or usage
- 3-7: Application-specific errors

Usage:
    from melontap.util.exit_codes import ExitCode
    sys.exit(ExitCode.PERMISSION_DENIED)
"""

from __future__ import annotations

from melontap.util.errors import (
    CaptureFailure,
    PermissionDenied,
    UnsupportedEnvironment,
    ValidationError,
)


class ExitCode:
    """Exit code constants for MelonTap processes.

    Attributes:
        SUCCESS: A measurement completed (or the requested listing was printed).
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Command-line argument validation failed.
        VALIDATION_ERROR: Session input rejected (mass must be positive).
        UNSUPPORTED_ENVIRONMENT: No usable audio capture on this host.
        PERMISSION_DENIED: Microphone access refused.
        CAPTURE_FAILURE: Audio hardware or driver failed.
        NO_THUMP: Listening was stopped before any thump was detected.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    VALIDATION_ERROR: int = 3
    UNSUPPORTED_ENVIRONMENT: int = 4
    PERMISSION_DENIED: int = 5
    CAPTURE_FAILURE: int = 6
    NO_THUMP: int = 7

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments",
            cls.VALIDATION_ERROR: "Invalid session input",
            cls.UNSUPPORTED_ENVIRONMENT: "Audio capture unsupported",
            cls.PERMISSION_DENIED: "Microphone permission denied",
            cls.CAPTURE_FAILURE: "Audio capture failed",
            cls.NO_THUMP: "No thump detected",
        }
        return messages.get(code, f"Unknown exit code {code}")

    @classmethod
    def for_error(cls, exc: BaseException) -> int:
        """Map a raised exception onto its documented exit code."""
        if isinstance(exc, ValidationError):
            return cls.VALIDATION_ERROR
        if isinstance(exc, UnsupportedEnvironment):
            return cls.UNSUPPORTED_ENVIRONMENT
        if isinstance(exc, PermissionDenied):
            return cls.PERMISSION_DENIED
        if isinstance(exc, CaptureFailure):
            return cls.CAPTURE_FAILURE
        return cls.GENERAL_ERROR
