"""Control-plane clients."""

from kserveup.providers.base import (
    ApplyOutcome,
    ControlPlaneClient,
    WorkloadPhase,
    WorkloadStatus,
)
from kserveup.providers.kubernetes import KubernetesControlPlane

__all__ = [
    "ApplyOutcome",
    "ControlPlaneClient",
    "KubernetesControlPlane",
    "WorkloadPhase",
    "WorkloadStatus",
]
