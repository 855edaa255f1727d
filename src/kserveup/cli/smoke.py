"""
Smoke test command: one chat completion against a deployed workload.
"""

from __future__ import annotations

import json

from kserveup.cli.common import make_control_plane
from kserveup.cli.ux import console, header, info, success, warning
from kserveup.config.settings import Settings, get_settings
from kserveup.core.errors import ReadinessFailed, main_with_error_handling
from kserveup.providers.base import ControlPlaneClient, WorkloadPhase
from kserveup.smoke.inference import DEFAULT_PROMPT, InferenceProbe, SmokeResult


def discover_endpoint(client: ControlPlaneClient, name: str, namespace: str) -> str:
    """Return the workload URL, or raise if it is not serving yet."""
    status = client.get_workload_status(name, namespace)
    if status.phase != WorkloadPhase.READY or not status.endpoint:
        raise ReadinessFailed(
            f"Could not find a serving URL for {namespace}/{name}. Is it deployed?",
            details={"resource": name, "stage": "smoke", "phase": str(status.phase)},
        )
    return status.endpoint


@main_with_error_handling()
def smoke_command(
    name: str,
    namespace: str | None = None,
    url: str | None = None,
    prompt: str = DEFAULT_PROMPT,
    max_tokens: int = 256,
    output_format: str = "text",
    settings: Settings | None = None,
    client: ControlPlaneClient | None = None,
    probe: InferenceProbe | None = None,
) -> int:
    settings = settings or get_settings()
    namespace = namespace or settings.namespace

    if url is None:
        client = client or make_control_plane(settings)
        url = discover_endpoint(client, name, namespace)

    probe = probe or InferenceProbe(
        timeout=settings.smoke_timeout, verify=settings.smoke_verify_tls
    )

    if output_format != "json":
        header(f"Inference smoke test: {namespace}/{name}")
        info(f"Target: {url}")
        console.print(f"[muted]Prompt:[/muted] {prompt}")
        console.print()

    result = probe.run(url, name, prompt, max_tokens=max_tokens)

    if output_format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_smoke_result(result)
    return 0


def print_smoke_result(result: SmokeResult) -> None:
    console.print("[bold]Model output:[/bold]")
    console.print(result.content)
    console.print()
    console.print(f"[cyan]Latency:[/cyan]    {result.latency_seconds:.2f} seconds")
    console.print(f"[cyan]Tokens:[/cyan]     {result.completion_tokens}")
    console.print(f"[cyan]Throughput:[/cyan] {result.tokens_per_second:.2f} tokens/sec")
    console.print()
    if result.high_performance:
        success("High performance")
    else:
        warning("Standard performance; consider increasing batch size")
