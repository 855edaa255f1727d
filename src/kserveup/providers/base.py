from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal, Protocol

from kserveup.plan.models import ResourceKind

ApplyOutcome = Literal["created", "reconciled"]


class WorkloadPhase(StrEnum):
    NOT_FOUND = "not_found"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkloadStatus:
    """Observed status of a serving workload."""

    phase: WorkloadPhase
    endpoint: str | None = None
    reason: str | None = None
    message: str | None = None

    @classmethod
    def not_found(cls) -> WorkloadStatus:
        return cls(WorkloadPhase.NOT_FOUND)

    @classmethod
    def initializing(cls, message: str | None = None) -> WorkloadStatus:
        return cls(WorkloadPhase.INITIALIZING, message=message)

    @classmethod
    def ready(cls, endpoint: str | None) -> WorkloadStatus:
        return cls(WorkloadPhase.READY, endpoint=endpoint)

    @classmethod
    def failed(cls, reason: str, message: str | None = None) -> WorkloadStatus:
        return cls(WorkloadPhase.FAILED, reason=reason, message=message)


class ControlPlaneClient(Protocol):
    """Capability the orchestrator needs from the remote control plane.

    Implementations raise ``PermissionDenied``, ``TransientNetworkError`` or
    ``MalformedSpec`` from ``kserveup.core.errors``.
    """

    def apply_resource(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str,
        payload: dict[str, Any],
    ) -> ApplyOutcome:
        """Create the resource if absent, otherwise reconcile it to ``payload``."""
        ...

    def get_workload_status(self, name: str, namespace: str) -> WorkloadStatus:
        ...

    def delete_resource(self, kind: ResourceKind, name: str, namespace: str) -> bool:
        """Delete the resource; returns False when it did not exist."""
        ...

    def service_exists(self, name: str, namespace: str) -> bool:
        ...

    def namespace_exists(self, namespace: str) -> bool:
        """False only when the namespace is known to be absent."""
        ...
