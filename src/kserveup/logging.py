import logging
from typing import Any

import structlog


def configure_logging(level: int | str = logging.INFO, *, json_output: bool = True) -> None:
    """Configure structlog/standard logging bridge.

    JSON lines go to stderr for pipelines; ``json_output=False`` switches to
    the console renderer for interactive ``-v`` runs.
    """

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s")


def bind_deployment(namespace: str, workload: str) -> None:
    """Bind namespace/workload to every log line emitted during a run."""
    structlog.contextvars.bind_contextvars(namespace=namespace, workload=workload)


def clear_deployment() -> None:
    structlog.contextvars.unbind_contextvars("namespace", "workload")
