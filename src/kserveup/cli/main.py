"""
kserveup command line.

Usage:
    kserveup <command> [args]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

from kserveup.config.settings import get_settings
from kserveup.logging import configure_logging
from kserveup.smoke.inference import DEFAULT_PROMPT


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", help="Deployment config file (YAML)")
    parser.add_argument("--namespace", "-n", help="Target namespace")
    parser.add_argument("--name", help="Workload (InferenceService) name")


def _add_deploy_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--image", help="Serving runtime image reference")
    parser.add_argument("--context-limit", type=int, help="Maximum model context length")
    parser.add_argument("--gpus", type=int, help="GPUs per replica")
    parser.add_argument("--storage-endpoint", help="S3 endpoint URL (auto-detected if omitted)")
    parser.add_argument("--storage-path", help="Model path inside the bucket")
    parser.add_argument("--service-account", help="Create and use this service account")
    parser.add_argument(
        "--create-namespace",
        action="store_true",
        default=None,
        help="Create the target namespace if it does not exist",
    )


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {
        "namespace": args.namespace,
        "workload_name": args.name,
    }
    for attr, key in (
        ("image", "image"),
        ("context_limit", "context_limit"),
        ("gpus", "gpu_count"),
        ("service_account", "service_account"),
        ("create_namespace", "create_namespace"),
        ("interval", "interval"),
        ("deadline", "deadline"),
    ):
        overrides[key] = getattr(args, attr, None)

    storage: dict[str, Any] = {}
    if getattr(args, "storage_endpoint", None):
        storage["endpoint"] = args.storage_endpoint
    if getattr(args, "storage_path", None):
        storage["path"] = args.storage_path
    if storage:
        overrides["storage_overrides"] = storage
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kserveup",
        description="Provision model-serving workloads and verify they become ready",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command")

    deploy_parser = subparsers.add_parser("deploy", help="Apply resources and wait for readiness")
    _add_config_arguments(deploy_parser)
    _add_deploy_arguments(deploy_parser)
    deploy_parser.add_argument("--interval", type=float, help="Seconds between status checks")
    deploy_parser.add_argument("--deadline", type=float, help="Seconds to wait for readiness")
    deploy_parser.add_argument(
        "--clean", action="store_true", help="Delete existing resources before applying"
    )
    deploy_parser.add_argument("--format", choices=["text", "json"], default="text")

    plan_parser = subparsers.add_parser("plan", help="Print manifests without applying them")
    _add_config_arguments(plan_parser)
    _add_deploy_arguments(plan_parser)
    plan_parser.add_argument("--format", choices=["yaml", "json", "text"], default="yaml")

    teardown_parser = subparsers.add_parser("teardown", help="Delete managed resources")
    _add_config_arguments(teardown_parser)
    teardown_parser.add_argument(
        "--service-account", help="Service account created by the deployment"
    )
    teardown_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    smoke_parser = subparsers.add_parser("smoke", help="Send a test prompt and measure throughput")
    smoke_parser.add_argument("--name", required=True, help="Workload (InferenceService) name")
    smoke_parser.add_argument("--namespace", "-n", help="Target namespace")
    smoke_parser.add_argument("--url", help="Endpoint URL (discovered if omitted)")
    smoke_parser.add_argument("--prompt", default=DEFAULT_PROMPT)
    smoke_parser.add_argument("--max-tokens", type=int, default=256)
    smoke_parser.add_argument("--format", choices=["text", "json"], default="text")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    level = logging.DEBUG if args.verbose else settings.log_level
    configure_logging(level, json_output=not args.verbose)

    if args.command == "deploy":
        from kserveup.cli.deploy import deploy_command

        sys.exit(
            deploy_command(
                config_path=args.config,
                overrides=_overrides(args),
                clean=args.clean,
                output_format=args.format,
                settings=settings,
            )
        )

    if args.command == "plan":
        from kserveup.cli.plan import plan_command

        sys.exit(
            plan_command(
                config_path=args.config,
                overrides=_overrides(args),
                output_format=args.format,
                settings=settings,
            )
        )

    if args.command == "teardown":
        from kserveup.cli.teardown import teardown_command

        sys.exit(
            teardown_command(
                config_path=args.config,
                overrides=_overrides(args),
                yes=args.yes,
                settings=settings,
            )
        )

    if args.command == "smoke":
        from kserveup.cli.smoke import smoke_command

        sys.exit(
            smoke_command(
                name=args.name,
                namespace=args.namespace,
                url=args.url,
                prompt=args.prompt,
                max_tokens=args.max_tokens,
                output_format=args.format,
                settings=settings,
            )
        )

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
