"""
Readiness polling for serving workloads.

The poller queries workload status at a fixed interval until it observes a
terminal state or the deadline passes::

    Pending -> Initializing -> Ready | Failed(reason)
                            -> TimedOut

Transitions happen only on observations. A workload that is briefly
unreadable (not found yet, or a transient API error) counts as Initializing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import structlog

from kserveup.core.errors import ConfigurationError, PollInProgressError, TransientNetworkError
from kserveup.providers.base import ControlPlaneClient, WorkloadPhase, WorkloadStatus

logger = structlog.get_logger()

DEFAULT_INTERVAL = 10.0
DEFAULT_DEADLINE = 300.0


class Clock(Protocol):
    def now(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class MonotonicClock:
    """Wall-time clock used outside tests."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class ReadinessState(StrEnum):
    PENDING = "pending"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (ReadinessState.READY, ReadinessState.FAILED, ReadinessState.TIMED_OUT)


@dataclass(frozen=True)
class ReadinessReport:
    """Terminal result of one poll call."""

    state: ReadinessState
    workload: str
    namespace: str
    endpoint: str | None = None
    reason: str | None = None
    last_condition: str | None = None
    attempts: int = 0
    elapsed: float = 0.0


class ReadinessPoller:
    """Polls one workload at a time per (namespace, name)."""

    def __init__(self, client: ControlPlaneClient, clock: Clock | None = None) -> None:
        self._client = client
        self._clock = clock or MonotonicClock()
        self._in_flight: set[tuple[str, str]] = set()

    def poll(
        self,
        workload_name: str,
        namespace: str,
        interval: float = DEFAULT_INTERVAL,
        deadline: float = DEFAULT_DEADLINE,
    ) -> ReadinessReport:
        if interval <= 0 or deadline <= 0:
            raise ConfigurationError(
                "Poll interval and deadline must be positive",
                details={"stage": "poll", "interval": interval, "deadline": deadline},
            )

        key = (namespace, workload_name)
        if key in self._in_flight:
            raise PollInProgressError(
                f"Workload {namespace}/{workload_name} is already being polled",
                details={"resource": workload_name, "stage": "poll"},
            )

        self._in_flight.add(key)
        try:
            return self._run(workload_name, namespace, interval, deadline)
        finally:
            self._in_flight.discard(key)

    def _run(
        self, workload_name: str, namespace: str, interval: float, deadline: float
    ) -> ReadinessReport:
        start = self._clock.now()
        state = ReadinessState.PENDING
        last_condition: str | None = None
        attempts = 0

        while True:
            attempts += 1
            status = self._observe(workload_name, namespace)
            elapsed = self._clock.now() - start

            if status.phase == WorkloadPhase.READY:
                state = ReadinessState.READY
            elif status.phase == WorkloadPhase.FAILED:
                state = ReadinessState.FAILED
                last_condition = status.message or last_condition
            else:
                state = ReadinessState.INITIALIZING
                last_condition = status.message or last_condition

            logger.debug(
                "poll_tick",
                workload=workload_name,
                attempt=attempts,
                elapsed=round(elapsed, 3),
                state=str(state),
                condition=status.message,
            )

            if state == ReadinessState.READY:
                return self._terminal(
                    state, workload_name, namespace, attempts, elapsed,
                    endpoint=status.endpoint,
                )
            if state == ReadinessState.FAILED:
                return self._terminal(
                    state, workload_name, namespace, attempts, elapsed,
                    reason=status.reason, last_condition=last_condition,
                )
            if elapsed >= deadline:
                return self._terminal(
                    ReadinessState.TIMED_OUT, workload_name, namespace, attempts, elapsed,
                    reason=f"not ready after {elapsed:g}s",
                    last_condition=last_condition,
                )

            self._clock.sleep(min(interval, deadline - elapsed))

    def _observe(self, workload_name: str, namespace: str) -> WorkloadStatus:
        try:
            return self._client.get_workload_status(workload_name, namespace)
        except TransientNetworkError as e:
            logger.info("poll_query_failed", workload=workload_name, error=e.message)
            return WorkloadStatus.initializing()

    def _terminal(
        self,
        state: ReadinessState,
        workload_name: str,
        namespace: str,
        attempts: int,
        elapsed: float,
        **fields: str | None,
    ) -> ReadinessReport:
        logger.info(
            "readiness_terminal",
            workload=workload_name,
            state=str(state),
            attempts=attempts,
            elapsed=round(elapsed, 3),
            reason=fields.get("reason"),
        )
        return ReadinessReport(
            state=state,
            workload=workload_name,
            namespace=namespace,
            attempts=attempts,
            elapsed=elapsed,
            **fields,
        )
