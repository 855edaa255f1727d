"""
CLI command for previewing the manifests a deployment would apply.
"""

from __future__ import annotations

import copy
import json
from typing import Any

import yaml

from kserveup.cli.ux import print_table
from kserveup.config.loader import load_deployment_config
from kserveup.config.settings import Settings
from kserveup.core.errors import main_with_error_handling
from kserveup.plan.builder import DescriptorBuilder
from kserveup.plan.models import DeploymentPlan

REDACTED = "********"
SECRET_KEYS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")


def redact(manifest: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``manifest`` with credential values masked."""
    if manifest.get("kind") != "Secret":
        return manifest
    masked = copy.deepcopy(manifest)
    data = masked.get("stringData", {})
    for key in SECRET_KEYS:
        if key in data:
            data[key] = REDACTED
    return masked


def render_plan(plan: DeploymentPlan, output_format: str = "yaml") -> str:
    manifests = [redact(spec.payload) for spec in plan]
    if output_format == "json":
        return json.dumps(manifests, indent=2)
    return yaml.safe_dump_all(manifests, default_flow_style=False, sort_keys=False)


@main_with_error_handling()
def plan_command(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
    output_format: str = "yaml",
    settings: Settings | None = None,
) -> int:
    """Print the ordered manifests without contacting the cluster."""
    config = load_deployment_config(config_path, overrides=overrides, settings=settings)
    plan = DescriptorBuilder().build(config)

    if output_format == "text":
        rows = [
            [str(step), spec.payload.get("kind", str(spec.kind)), spec.name, str(spec.kind)]
            for step, spec in enumerate(plan, 1)
        ]
        print_table(
            f"Plan for {config.namespace}/{config.workload_name}",
            ["#", "Kind", "Name", "Role"],
            rows,
        )
        return 0

    print(render_plan(plan, output_format))
    return 0
