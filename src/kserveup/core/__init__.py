"""Core modules for kserveup - centralized error definitions."""

from kserveup.core.errors import (
    ConfigurationError,
    ControlPlaneError,
    ExitCode,
    KserveupError,
    MalformedSpec,
    PermissionDenied,
    PollInProgressError,
    ReadinessFailed,
    SmokeTestError,
    TransientNetworkError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "KserveupError",
    "ConfigurationError",
    "ControlPlaneError",
    "PermissionDenied",
    "TransientNetworkError",
    "MalformedSpec",
    "ReadinessFailed",
    "PollInProgressError",
    "SmokeTestError",
    "main_with_error_handling",
    "format_error_message",
]
