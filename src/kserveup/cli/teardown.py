"""
CLI command for removing a deployment's managed resources.
"""

from __future__ import annotations

from typing import Any

from kserveup.cli.common import make_control_plane, make_orchestrator
from kserveup.cli.ux import confirm, console, info, success, warning
from kserveup.config.loader import load_deployment_config
from kserveup.config.settings import Settings, get_settings
from kserveup.core.errors import main_with_error_handling
from kserveup.plan.models import ResourceKind
from kserveup.providers.base import ControlPlaneClient


@main_with_error_handling()
def teardown_command(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
    yes: bool = False,
    settings: Settings | None = None,
    client: ControlPlaneClient | None = None,
) -> int:
    """Delete the workload, runtime, identity and credentials, in that order."""
    settings = settings or get_settings()
    config = load_deployment_config(config_path, overrides=overrides, settings=settings)

    client = client or make_control_plane(settings)
    orchestrator = make_orchestrator(client, settings=settings)
    plan = orchestrator.plan_for_teardown(config)

    console.print(f"[bold]Resources in {config.namespace}:[/bold]")
    for spec in reversed(plan.specs):
        if spec.kind == ResourceKind.NAMESPACE:
            continue
        console.print(f"  [muted]•[/muted] {spec.kind}: {spec.name}")

    if not yes and not confirm("Delete these resources?", default=False):
        warning("Teardown cancelled")
        return 0

    deleted = orchestrator.teardown(plan)
    if deleted:
        success(f"Deleted {len(deleted)} resource(s)")
    else:
        info("Nothing to delete")
    return 0
