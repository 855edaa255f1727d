"""Shared wiring for CLI commands."""

from __future__ import annotations

from typing import Any

from kserveup.config.settings import Settings, get_settings
from kserveup.orchestration.engine import ProvisioningOrchestrator
from kserveup.orchestration.poller import Clock
from kserveup.providers.base import ControlPlaneClient
from kserveup.providers.kubernetes import KubernetesControlPlane


def make_control_plane(settings: Settings | None = None) -> ControlPlaneClient:
    settings = settings or get_settings()
    kwargs: dict[str, Any] = {
        "in_cluster": settings.in_cluster,
        "field_manager": settings.field_manager,
    }
    if settings.kubeconfig:
        kwargs["kubeconfig"] = settings.kubeconfig
    if settings.context:
        kwargs["context"] = settings.context
    return KubernetesControlPlane(**kwargs)


def make_orchestrator(
    client: ControlPlaneClient,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> ProvisioningOrchestrator:
    settings = settings or get_settings()
    return ProvisioningOrchestrator(
        client,
        clock=clock,
        max_attempts=settings.apply_max_attempts,
        backoff_seconds=settings.apply_backoff_seconds,
    )
