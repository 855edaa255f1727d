"""Dependency-ordered application of a deployment plan."""

from __future__ import annotations

import structlog

from kserveup.orchestration.applier import IdempotentApplier
from kserveup.plan.models import ApplyResult, DeploymentPlan, SequenceResult

logger = structlog.get_logger()


class DependencySequencer:
    """Applies plan resources one at a time, stopping at the first failure.

    Dependents of a failed resource are never sent to the control plane, and
    failures of non-prerequisites stop the run as well: a half-provisioned
    serving stack is not usable.
    """

    def __init__(self, applier: IdempotentApplier) -> None:
        self._applier = applier

    def run(self, plan: DeploymentPlan) -> SequenceResult:
        results: list[ApplyResult] = []
        total_steps = len(plan)

        for step, spec in enumerate(plan, 1):
            logger.debug("apply_step", step=step, total=total_steps, resource=spec.ref)
            result = self._applier.apply(spec)
            results.append(result)

            if not result.ok:
                logger.error(
                    "plan_blocked",
                    resource=spec.ref,
                    prerequisite=spec.kind.is_prerequisite,
                    reason=result.reason,
                    skipped=[s.ref for s in plan.specs[step:]],
                )
                return SequenceResult(results=tuple(results), blocked_by=spec)

        return SequenceResult(results=tuple(results))
