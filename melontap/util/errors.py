"""Exception types raised by MelonTap sessions and capture services.

Every failure is terminal for the current attempt: nothing in the core
retries. Callers correct the input (or the environment) and start again.
"""

from __future__ import annotations


class MelonTapError(Exception):
    """Base class for all MelonTap errors."""

    error_type = "melontap"


class ValidationError(MelonTapError, ValueError):
    """Session input rejected (e.g. a non-positive mass)."""

    error_type = "validation"


class UnsupportedEnvironment(MelonTapError):
    """Audio capture is not available on this host."""

    error_type = "unsupported_environment"


class PermissionDenied(MelonTapError):
    """The user or the OS refused access to the microphone."""

    error_type = "permission_denied"


class CaptureFailure(MelonTapError):
    """Capture setup or streaming failed for a hardware/driver reason."""

    error_type = "capture_failure"
