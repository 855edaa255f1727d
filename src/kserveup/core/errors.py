"""
Unified error handling for kserveup CLI commands.

This module provides the error taxonomy, exit codes, and error reporting
shared by every command.

Exit Codes:
- 0: Success (workload ready)
- 10: Configuration error (nothing was touched)
- 11: Apply error (a resource could not be applied)
- 12: Readiness failed (workload reported a terminal failure)
- 13: Readiness timed out (deadline exceeded)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    APPLY_ERROR = 11
    READINESS_FAILED = 12
    READINESS_TIMEOUT = 13
    INTERRUPTED = 130
    UNKNOWN_ERROR = 127


class KserveupError(Exception):
    """Base exception for kserveup errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def resource(self) -> str | None:
        return self.details.get("resource")

    @property
    def stage(self) -> str | None:
        return self.details.get("stage")

    def tag(self, **details: Any) -> KserveupError:
        """Attach resource/stage context without replacing existing keys."""
        for key, value in details.items():
            self.details.setdefault(key, value)
        return self


class ConfigurationError(KserveupError):
    """Raised for invalid or incomplete deployment configuration."""

    exit_code = ExitCode.CONFIG_ERROR


class ControlPlaneError(KserveupError):
    """Raised when the control plane rejects or fails a request."""

    exit_code = ExitCode.APPLY_ERROR


class PermissionDenied(ControlPlaneError):
    """The caller is not allowed to perform the request. Never retried."""


class TransientNetworkError(ControlPlaneError):
    """A request failed in a way that may succeed when retried."""


class MalformedSpec(ControlPlaneError):
    """The desired-state document was rejected as invalid. Always fatal."""

    show_traceback = True


class ReadinessFailed(KserveupError):
    """The workload reported a terminal failure."""

    exit_code = ExitCode.READINESS_FAILED


class PollInProgressError(KserveupError):
    """Raised when a workload is already being polled by the same poller."""


class SmokeTestError(KserveupError):
    """Raised when a deployed endpoint does not answer an inference request."""

    exit_code = ExitCode.READINESS_FAILED


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI command functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - KserveupError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except KserveupError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                _print_error(e)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return ExitCode.INTERRUPTED
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: KserveupError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg


def _print_error(error: KserveupError) -> None:
    from kserveup.cli.ux import error as print_error

    print_error(format_error_message(error))
