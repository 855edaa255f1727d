"""Orchestration package - apply, poll and report."""

from kserveup.orchestration.applier import IdempotentApplier
from kserveup.orchestration.engine import ProvisioningOrchestrator
from kserveup.orchestration.poller import (
    Clock,
    MonotonicClock,
    ReadinessPoller,
    ReadinessReport,
    ReadinessState,
)
from kserveup.orchestration.reporter import (
    ENDPOINT_UNKNOWN,
    DeploymentOutcome,
    OutcomeReporter,
)
from kserveup.orchestration.sequencer import DependencySequencer

__all__ = [
    "Clock",
    "DependencySequencer",
    "DeploymentOutcome",
    "ENDPOINT_UNKNOWN",
    "IdempotentApplier",
    "MonotonicClock",
    "OutcomeReporter",
    "ProvisioningOrchestrator",
    "ReadinessPoller",
    "ReadinessReport",
    "ReadinessState",
]
