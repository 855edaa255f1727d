"""Idempotent application of a single resource."""

from __future__ import annotations

import time
from typing import Callable

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from kserveup.core.errors import ControlPlaneError, MalformedSpec, TransientNetworkError
from kserveup.plan.models import ApplyResult, ApplyStatus, ResourceSpec
from kserveup.providers.base import ControlPlaneClient

logger = structlog.get_logger()


class IdempotentApplier:
    """Creates or reconciles resources through the control-plane client.

    Transient failures are retried with linear backoff (``backoff_seconds``,
    then twice that, and so on). Permission and other control-plane errors are
    reported as a failed result. Malformed specs are raised.
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._sleep = sleep

    def apply(self, spec: ResourceSpec) -> ApplyResult:
        attempts = 0

        def _attempt() -> str:
            nonlocal attempts
            attempts += 1
            return self._client.apply_resource(spec.kind, spec.name, spec.namespace, spec.payload)

        retrying = Retrying(
            retry=retry_if_exception_type(TransientNetworkError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_incrementing(start=self._backoff, increment=self._backoff),
            sleep=self._sleep,
            before_sleep=self._log_retry(spec),
            reraise=True,
        )

        try:
            outcome = retrying(_attempt)
        except MalformedSpec as e:
            logger.error("malformed_spec", resource=spec.ref, error=e.message)
            raise e.tag(resource=spec.ref, stage="apply")
        except ControlPlaneError as e:
            e.tag(resource=spec.ref, stage="apply")
            logger.warning(
                "resource_apply_failed",
                resource=spec.ref,
                error_type=type(e).__name__,
                error=e.message,
                attempts=attempts,
            )
            return ApplyResult.failed(spec, e, attempts=attempts)

        status = ApplyStatus(outcome)
        logger.info("resource_applied", resource=spec.ref, status=str(status), attempts=attempts)
        return ApplyResult(spec=spec, status=status, attempts=attempts)

    @staticmethod
    def _log_retry(spec: ResourceSpec) -> Callable[[RetryCallState], None]:
        def _before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            logger.warning(
                "resource_apply_retry",
                resource=spec.ref,
                attempt=state.attempt_number,
                wait_seconds=state.next_action.sleep if state.next_action else None,
                error=str(error),
            )

        return _before_sleep
