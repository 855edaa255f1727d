"""Plan and result types for provisioning."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Iterator

from kserveup.core.errors import ControlPlaneError


class ResourceKind(StrEnum):
    """Managed resource types, in the order they must be applied."""

    NAMESPACE = "namespace"
    CREDENTIAL_STORE = "credential-store"
    IDENTITY = "identity"
    RUNTIME_DEFINITION = "runtime-definition"
    WORKLOAD_DEFINITION = "workload-definition"

    @property
    def rank(self) -> int:
        return list(ResourceKind).index(self)

    @property
    def is_prerequisite(self) -> bool:
        return self in (
            ResourceKind.NAMESPACE,
            ResourceKind.CREDENTIAL_STORE,
            ResourceKind.IDENTITY,
        )


@dataclass(frozen=True)
class ResourceSpec:
    """One managed resource and its desired state.

    The payload is passed to the control plane verbatim.
    """

    kind: ResourceKind
    name: str
    namespace: str
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def ref(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass(frozen=True)
class DeploymentPlan:
    """Ordered resources for one deployment; prerequisites come first."""

    specs: tuple[ResourceSpec, ...]

    def __post_init__(self) -> None:
        seen: set[tuple[ResourceKind, str]] = set()
        last_rank = -1
        for spec in self.specs:
            key = (spec.kind, spec.name)
            if key in seen:
                raise ValueError(f"Duplicate resource in plan: {spec.ref}")
            seen.add(key)
            if spec.kind.rank < last_rank:
                raise ValueError(f"Resource {spec.ref} is ordered after one of its dependents")
            last_rank = spec.kind.rank

    def __iter__(self) -> Iterator[ResourceSpec]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def workload(self) -> ResourceSpec | None:
        for spec in self.specs:
            if spec.kind == ResourceKind.WORKLOAD_DEFINITION:
                return spec
        return None


class ApplyStatus(StrEnum):
    CREATED = "created"
    RECONCILED = "reconciled"
    FAILED = "failed"


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of applying a single resource."""

    spec: ResourceSpec
    status: ApplyStatus
    reason: str | None = None
    error: ControlPlaneError | None = field(default=None, compare=False)
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.status != ApplyStatus.FAILED

    @classmethod
    def failed(cls, spec: ResourceSpec, error: ControlPlaneError, attempts: int = 1) -> ApplyResult:
        return cls(spec=spec, status=ApplyStatus.FAILED, reason=error.message, error=error, attempts=attempts)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": str(self.spec.kind),
            "name": self.spec.name,
            "namespace": self.spec.namespace,
            "status": str(self.status),
            "attempts": self.attempts,
        }
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class SequenceResult:
    """Results of running a plan, up to and including the first failure."""

    results: tuple[ApplyResult, ...]
    blocked_by: ResourceSpec | None = None

    @property
    def success(self) -> bool:
        return self.blocked_by is None

    @property
    def blocked_on_prerequisite(self) -> bool:
        return self.blocked_by is not None and self.blocked_by.kind.is_prerequisite

    @property
    def failure(self) -> ApplyResult | None:
        for result in self.results:
            if not result.ok:
                return result
        return None
