"""Provisioning orchestrator: build, apply, wait, report."""

from __future__ import annotations

from typing import Callable

import structlog

from kserveup.config.deployment import DeploymentConfig
from kserveup.logging import bind_deployment, clear_deployment
from kserveup.orchestration.applier import IdempotentApplier
from kserveup.orchestration.poller import Clock, MonotonicClock, ReadinessPoller
from kserveup.orchestration.reporter import DeploymentOutcome, OutcomeReporter
from kserveup.orchestration.sequencer import DependencySequencer
from kserveup.plan.builder import DescriptorBuilder
from kserveup.plan.models import DeploymentPlan, ResourceKind
from kserveup.providers.base import ControlPlaneClient

logger = structlog.get_logger()

StageCallback = Callable[[str], None]


class ProvisioningOrchestrator:
    """Runs one deployment plan to completion.

    Not safe for concurrent runs against the same resource names; use one
    orchestrator per workload.
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        *,
        clock: Clock | None = None,
        builder: DescriptorBuilder | None = None,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
    ) -> None:
        self._client = client
        self._clock = clock or MonotonicClock()
        self._builder = builder or DescriptorBuilder()
        applier = IdempotentApplier(
            client,
            max_attempts=max_attempts,
            backoff_seconds=backoff_seconds,
            sleep=self._clock.sleep,
        )
        self._sequencer = DependencySequencer(applier)
        self._poller = ReadinessPoller(client, clock=self._clock)
        self._reporter = OutcomeReporter()

    def plan(self, config: DeploymentConfig) -> DeploymentPlan:
        return self._builder.build(config)

    def plan_for_teardown(self, config: DeploymentConfig) -> DeploymentPlan:
        """Plan that only names resources; storage settings are not needed."""
        return self._builder.build(config, strict=False)

    def deploy(
        self,
        config: DeploymentConfig,
        *,
        clean: bool = False,
        on_stage: StageCallback | None = None,
    ) -> DeploymentOutcome:
        """Provision ``config`` and wait for the workload to become ready.

        Configuration errors and malformed specs are raised; everything else
        is reported through the returned outcome.
        """
        notify = on_stage or (lambda stage: None)
        plan = self._builder.build(config)

        bind_deployment(config.namespace, config.workload_name)
        try:
            logger.info("deployment_started", resources=[spec.ref for spec in plan])

            creates_namespace = any(spec.kind == ResourceKind.NAMESPACE for spec in plan)
            if not creates_namespace and not self._client.namespace_exists(config.namespace):
                logger.error("namespace_missing", namespace=config.namespace)
                return self._reporter.missing_namespace(config.namespace)

            if clean:
                notify("clean")
                self.teardown(plan)

            notify("apply")
            sequence = self._sequencer.run(plan)

            readiness = None
            if sequence.success:
                notify("poll")
                readiness = self._poller.poll(
                    config.workload_name,
                    config.namespace,
                    interval=config.poll_interval,
                    deadline=config.poll_deadline,
                )

            outcome = self._reporter.report(sequence, readiness)
            logger.info(
                "deployment_finished",
                success=outcome.success,
                state=str(outcome.state),
                endpoint=outcome.endpoint,
                failed_stage=outcome.failed_stage,
                failed_resource=outcome.failed_resource,
            )
            return outcome
        finally:
            clear_deployment()

    def teardown(self, plan: DeploymentPlan) -> list[str]:
        """Delete plan resources, dependents first. Returns deleted refs.

        Namespaces are left in place even when the plan created them.
        """
        deleted = []
        for spec in reversed(plan.specs):
            if spec.kind == ResourceKind.NAMESPACE:
                continue
            if self._client.delete_resource(spec.kind, spec.name, spec.namespace):
                deleted.append(spec.ref)
                logger.info("resource_deleted", resource=spec.ref)
            else:
                logger.debug("resource_absent", resource=spec.ref)
        return deleted
