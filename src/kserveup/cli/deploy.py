"""
Deploy command.

Provisions storage credentials, the serving runtime and the inference
service, then waits for the workload to report ready.

Exit codes: 0 = Ready, 10 = config error, 11 = apply failure,
12 = readiness failed, 13 = timed out
"""

from __future__ import annotations

import json
from typing import Any

from kserveup.cli.common import make_control_plane, make_orchestrator
from kserveup.cli.ux import console, error, header, print_key_value, spinner, success, warning
from kserveup.config.deployment import with_detected_storage
from kserveup.config.loader import load_deployment_config
from kserveup.config.settings import Settings, get_settings
from kserveup.core.errors import main_with_error_handling
from kserveup.orchestration.poller import Clock, ReadinessState
from kserveup.orchestration.reporter import DeploymentOutcome
from kserveup.plan.builder import DescriptorBuilder
from kserveup.providers.base import ControlPlaneClient

STATUS_ICONS = {
    "created": "[success]✓[/success]",
    "reconciled": "[success]↻[/success]",
    "failed": "[error]✗[/error]",
}


@main_with_error_handling()
def deploy_command(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
    clean: bool = False,
    output_format: str = "text",
    settings: Settings | None = None,
    client: ControlPlaneClient | None = None,
    clock: Clock | None = None,
) -> int:
    """Deploy a workload and report its readiness."""
    settings = settings or get_settings()
    config = load_deployment_config(config_path, overrides=overrides, settings=settings)
    # Reject bad configuration before anything contacts the cluster
    DescriptorBuilder().validate(config, endpoint_optional=True)

    client = client or make_control_plane(settings)
    config = with_detected_storage(config, client)
    orchestrator = make_orchestrator(client, settings=settings, clock=clock)

    if output_format == "json":
        outcome = orchestrator.deploy(config, clean=clean)
        print(json.dumps(outcome.to_dict(), indent=2))
        return outcome.exit_code

    header(f"Deploying {config.namespace}/{config.workload_name}")
    print_key_value(
        {
            "Storage": str(config.storage.endpoint),
            "Image": config.image,
            "Polling": f"every {config.poll_interval:g}s for up to {config.poll_deadline:g}s",
        }
    )
    console.print()

    with spinner(f"Provisioning {config.workload_name}..."):
        outcome = orchestrator.deploy(config, clean=clean)

    print_outcome(outcome)
    return outcome.exit_code


def print_outcome(outcome: DeploymentOutcome) -> None:
    """Print a human-readable deployment report."""
    console.print("[bold]Resources:[/bold]")
    for result in outcome.resource_log:
        icon = STATUS_ICONS.get(str(result.status), "[muted]?[/muted]")
        line = f"  {icon} {str(result.spec.kind):<20} {result.spec.name:<28} {result.status}"
        if result.reason:
            line += f" [muted]({result.reason})[/muted]"
        console.print(line)
    console.print()

    if outcome.success:
        success("Model is serving")
        console.print(f"[cyan]Endpoint:[/cyan] {outcome.completions_url or outcome.endpoint}")
        console.print()
        return

    if outcome.state == ReadinessState.TIMED_OUT:
        warning(f"Timed out waiting for {outcome.failed_resource}")
    else:
        error(f"Deployment failed at {outcome.failed_stage}: {outcome.failed_resource}")

    if outcome.diagnostic:
        console.print(f"[bold]Last condition:[/bold] {outcome.diagnostic}")
    if outcome.hints:
        console.print()
        console.print("[bold]Next steps:[/bold]")
        for hint in outcome.hints:
            console.print(f"  [muted]•[/muted] {hint}")
    console.print()
