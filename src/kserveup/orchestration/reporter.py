"""Outcome aggregation and remediation hints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kserveup.core.errors import ExitCode, PermissionDenied, TransientNetworkError
from kserveup.orchestration.poller import ReadinessReport, ReadinessState
from kserveup.plan.models import ApplyResult, ApplyStatus, SequenceResult

ENDPOINT_UNKNOWN = "unknown"
COMPLETIONS_PATH = "/v1/completions"


@dataclass(frozen=True)
class DeploymentOutcome:
    """Final result of a deployment run."""

    success: bool
    state: ReadinessState
    endpoint: str = ENDPOINT_UNKNOWN
    resource_log: tuple[ApplyResult, ...] = ()
    failed_stage: str | None = None
    failed_resource: str | None = None
    diagnostic: str | None = None
    hints: tuple[str, ...] = field(default_factory=tuple)

    @property
    def statuses(self) -> list[ApplyStatus]:
        return [result.status for result in self.resource_log]

    @property
    def endpoint_known(self) -> bool:
        return self.endpoint != ENDPOINT_UNKNOWN

    @property
    def completions_url(self) -> str | None:
        if not self.endpoint_known:
            return None
        return self.endpoint.rstrip("/") + COMPLETIONS_PATH

    @property
    def exit_code(self) -> ExitCode:
        if self.success:
            return ExitCode.SUCCESS
        if self.failed_stage == "apply":
            return ExitCode.APPLY_ERROR
        if self.state == ReadinessState.TIMED_OUT:
            return ExitCode.READINESS_TIMEOUT
        return ExitCode.READINESS_FAILED

    def summary(self) -> str:
        lines = []
        for result in self.resource_log:
            line = f"{result.spec.kind:<20} {result.spec.name:<32} {result.status}"
            if result.reason:
                line += f" ({result.reason})"
            lines.append(line)

        if self.success:
            lines.append(f"Workload ready: {self.completions_url or ENDPOINT_UNKNOWN}")
        else:
            lines.append(
                f"Deployment failed at stage '{self.failed_stage}' "
                f"on {self.failed_resource} (state: {self.state})"
            )
            if self.diagnostic:
                lines.append(f"Last condition: {self.diagnostic}")
            lines.extend(f"Hint: {hint}" for hint in self.hints)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "state": str(self.state),
            "endpoint": self.endpoint,
            "completions_url": self.completions_url,
            "resources": [result.to_dict() for result in self.resource_log],
            "failed_stage": self.failed_stage,
            "failed_resource": self.failed_resource,
            "diagnostic": self.diagnostic,
            "hints": list(self.hints),
            "exit_code": int(self.exit_code),
        }


class OutcomeReporter:
    """Builds a DeploymentOutcome from apply results and readiness."""

    def report(
        self,
        sequence: SequenceResult,
        readiness: ReadinessReport | None,
    ) -> DeploymentOutcome:
        if not sequence.success or readiness is None:
            return self._apply_failure(sequence)

        if readiness.state == ReadinessState.READY:
            return DeploymentOutcome(
                success=True,
                state=readiness.state,
                endpoint=readiness.endpoint or ENDPOINT_UNKNOWN,
                resource_log=sequence.results,
            )

        workload_ref = f"{readiness.namespace}/{readiness.workload}"
        diagnostic = readiness.last_condition or readiness.reason
        return DeploymentOutcome(
            success=False,
            state=readiness.state,
            resource_log=sequence.results,
            failed_stage="readiness",
            failed_resource=workload_ref,
            diagnostic=diagnostic,
            hints=tuple(self._readiness_hints(readiness)),
        )

    def missing_namespace(self, namespace: str) -> DeploymentOutcome:
        """Outcome for a run stopped because the target namespace is absent."""
        return DeploymentOutcome(
            success=False,
            state=ReadinessState.PENDING,
            failed_stage="apply",
            failed_resource=f"namespace/{namespace}",
            diagnostic=f"Namespace {namespace} does not exist",
            hints=(
                f"Create it with: kubectl create namespace {namespace}",
                "or re-run with --create-namespace to have kserveup create it",
            ),
        )

    def _apply_failure(self, sequence: SequenceResult) -> DeploymentOutcome:
        failure = sequence.failure
        blocked = sequence.blocked_by
        hints: list[str] = []
        if failure is not None:
            hints = self._apply_hints(failure)
        return DeploymentOutcome(
            success=False,
            state=ReadinessState.PENDING,
            resource_log=sequence.results,
            failed_stage="apply",
            failed_resource=blocked.ref if blocked else None,
            diagnostic=failure.reason if failure else None,
            hints=tuple(hints),
        )

    def _apply_hints(self, failure: ApplyResult) -> list[str]:
        spec = failure.spec
        kind = spec.payload.get("kind", str(spec.kind))
        if isinstance(failure.error, PermissionDenied):
            return [
                f"Check that your account may manage {kind} objects: "
                f"kubectl auth can-i create {kind.lower()} -n {spec.namespace}",
            ]
        if isinstance(failure.error, TransientNetworkError):
            return [
                f"The control plane did not respond after {failure.attempts} attempt(s); "
                "re-run the deployment, applies are idempotent",
            ]
        return [f"Inspect the resource: kubectl get {kind.lower()} {spec.name} -n {spec.namespace} -o yaml"]

    def _readiness_hints(self, readiness: ReadinessReport) -> list[str]:
        ns, name = readiness.namespace, readiness.workload
        hints = [
            f"kubectl logs -n {ns} -l serving.kserve.io/inferenceservice={name} -c storage-initializer",
            f"kubectl describe inferenceservice {name} -n {ns}",
        ]
        if readiness.state == ReadinessState.TIMED_OUT:
            hints.append(
                "Large models can take several minutes to load; "
                "re-poll with a longer --deadline before redeploying"
            )
        return hints
