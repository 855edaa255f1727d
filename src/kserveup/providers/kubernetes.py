"""
Kubernetes control-plane client.

Applies manifests with server-side apply through the dynamic client and
reads KServe InferenceService status. API failures are translated into the
kserveup error taxonomy:

- 401/403 -> PermissionDenied
- 400/422 and unknown kinds -> MalformedSpec
- 408/429/5xx and connection failures -> TransientNetworkError
- unreadable kubeconfig -> ConfigurationError
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import structlog

from kserveup.core.errors import (
    ConfigurationError,
    ControlPlaneError,
    MalformedSpec,
    PermissionDenied,
    TransientNetworkError,
)
from kserveup.plan.models import ResourceKind
from kserveup.providers.base import ApplyOutcome, WorkloadStatus

logger = structlog.get_logger()

# Fallback (apiVersion, kind) when a payload does not carry its own
KIND_TYPES: dict[ResourceKind, tuple[str, str]] = {
    ResourceKind.NAMESPACE: ("v1", "Namespace"),
    ResourceKind.CREDENTIAL_STORE: ("v1", "Secret"),
    ResourceKind.IDENTITY: ("v1", "ServiceAccount"),
    ResourceKind.RUNTIME_DEFINITION: ("serving.kserve.io/v1alpha1", "ServingRuntime"),
    ResourceKind.WORKLOAD_DEFINITION: ("serving.kserve.io/v1beta1", "InferenceService"),
}

CLUSTER_SCOPED = (ResourceKind.NAMESPACE,)

RETRYABLE_STATUSES = (408, 429, 500, 502, 503, 504)
FAILED_TRANSITIONS = ("BlockedByFailedLoad", "InvalidSpec")

# Lazy import kubernetes to keep plan/report paths free of cluster setup
_kubernetes_available: bool | None = None


def _check_kubernetes_available() -> bool:
    """Check if kubernetes package is installed."""
    global _kubernetes_available
    if _kubernetes_available is None:
        try:
            import kubernetes  # noqa: F401

            _kubernetes_available = True
        except ImportError:
            _kubernetes_available = False
    return _kubernetes_available


def translate_api_error(exc: Exception, *, resource: str, stage: str) -> ControlPlaneError:
    """Map a kubernetes/urllib3 exception onto the error taxonomy."""
    details = {"resource": resource, "stage": stage}
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None) or exc.__class__.__name__
    body = getattr(exc, "body", None)
    text = f"{status} {reason}" if status else str(exc) or reason
    if body:
        text = f"{text}: {body}"

    if status in (401, 403):
        return PermissionDenied(f"Permission denied for {resource}: {text}", details)
    if status in (400, 422):
        return MalformedSpec(f"Control plane rejected {resource}: {text}", details)
    if status is None or status in RETRYABLE_STATUSES:
        return TransientNetworkError(f"Control plane unavailable for {resource}: {text}", details)
    return ControlPlaneError(f"Control plane error for {resource}: {text}", details)


def workload_status_from_object(obj: dict[str, Any]) -> WorkloadStatus:
    """Derive a WorkloadStatus from an InferenceService object."""
    status = obj.get("status") or {}
    conditions = status.get("conditions") or []
    ready = next((c for c in conditions if c.get("type") == "Ready"), None)

    model_status = status.get("modelStatus") or {}
    transition = model_status.get("transitionStatus")
    target_state = (model_status.get("states") or {}).get("targetModelState")
    failure = model_status.get("lastFailureInfo") or {}

    if transition in FAILED_TRANSITIONS or target_state == "FailedToLoad":
        reason = failure.get("reason") or transition or target_state
        message = failure.get("message") or (ready or {}).get("message")
        return WorkloadStatus.failed(reason=reason, message=message)

    if ready and ready.get("status") == "True":
        endpoint = status.get("url") or (status.get("address") or {}).get("url")
        return WorkloadStatus.ready(endpoint)

    message = None
    if ready:
        message = ready.get("message") or ready.get("reason")
    return WorkloadStatus.initializing(message)


@dataclass
class KubernetesControlPlane:
    """
    Control-plane client backed by the Kubernetes API.

    Configuration:
        kubeconfig: Path to kubeconfig file (optional)
        context: Kubeconfig context to use (optional)
        in_cluster: Use the in-cluster service account config
        field_manager: Field manager name for server-side apply

    Environment variables:
        KUBECONFIG: Standard kubeconfig path
        KSERVEUP_CONTEXT: Kubeconfig context
    """

    kubeconfig: str | None = field(default_factory=lambda: os.environ.get("KUBECONFIG"))
    context: str | None = field(default_factory=lambda: os.environ.get("KSERVEUP_CONTEXT"))
    in_cluster: bool = False
    field_manager: str = "kserveup"

    # Injected or lazily created API clients
    dynamic_client: Any = field(default=None, repr=False, compare=False)
    core_api: Any = field(default=None, repr=False, compare=False)

    def _ensure_initialized(self) -> None:
        """Initialize Kubernetes clients if not already done."""
        if self.dynamic_client is not None and self.core_api is not None:
            return

        if not _check_kubernetes_available():
            raise ControlPlaneError(
                "kubernetes package not installed. Install with: pip install kubernetes"
            )

        from kubernetes import client, config, dynamic

        try:
            if self.in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config(config_file=self.kubeconfig, context=self.context)
        except config.ConfigException as e:
            raise ConfigurationError(
                f"Failed to load Kubernetes config: {e}", details={"stage": "connect"}
            ) from e

        api_client = client.ApiClient()
        if self.dynamic_client is None:
            # Construction runs API discovery against the cluster
            self.dynamic_client = self._call(
                lambda: dynamic.DynamicClient(api_client), "cluster", "connect"
            )
        if self.core_api is None:
            self.core_api = client.CoreV1Api(api_client)

    def _resource(self, kind: ResourceKind, payload: dict[str, Any] | None, ref: str) -> Any:
        self._ensure_initialized()
        api_version, k8s_kind = KIND_TYPES[kind]
        if payload:
            api_version = payload.get("apiVersion", api_version)
            k8s_kind = payload.get("kind", k8s_kind)

        from kubernetes.dynamic.exceptions import ResourceNotFoundError

        try:
            return self.dynamic_client.resources.get(api_version=api_version, kind=k8s_kind)
        except ResourceNotFoundError as e:
            raise MalformedSpec(
                f"Kind {k8s_kind} ({api_version}) is not served by the cluster",
                details={"resource": ref, "stage": "discover"},
            ) from e

    def _exists(self, resource: Any, name: str, namespace: str | None, ref: str) -> bool:
        from kubernetes.client.exceptions import ApiException

        try:
            self.dynamic_client.get(resource, name=name, namespace=namespace)
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise translate_api_error(e, resource=ref, stage="lookup") from e

    def apply_resource(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str,
        payload: dict[str, Any],
    ) -> ApplyOutcome:
        ref = f"{kind}/{namespace}/{name}"
        resource = self._resource(kind, payload, ref)
        scope = None if kind in CLUSTER_SCOPED else namespace
        existed = self._call(lambda: self._exists(resource, name, scope, ref), ref, "lookup")

        self._call(
            lambda: self.dynamic_client.server_side_apply(
                resource,
                body=payload,
                name=name,
                namespace=scope,
                field_manager=self.field_manager,
                force_conflicts=True,
            ),
            ref,
            "apply",
        )
        outcome: ApplyOutcome = "reconciled" if existed else "created"
        logger.debug("server_side_apply", resource=ref, outcome=outcome)
        return outcome

    def get_workload_status(self, name: str, namespace: str) -> WorkloadStatus:
        from kubernetes.client.exceptions import ApiException

        kind = ResourceKind.WORKLOAD_DEFINITION
        ref = f"{kind}/{namespace}/{name}"
        resource = self._resource(kind, None, ref)
        try:
            obj = self._call(
                lambda: self.dynamic_client.get(resource, name=name, namespace=namespace),
                ref,
                "status",
                passthrough=(ApiException,),
            )
        except ApiException as e:
            if e.status == 404:
                return WorkloadStatus.not_found()
            raise translate_api_error(e, resource=ref, stage="status") from e

        data = obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)
        return workload_status_from_object(data)

    def delete_resource(self, kind: ResourceKind, name: str, namespace: str) -> bool:
        from kubernetes.client.exceptions import ApiException

        ref = f"{kind}/{namespace}/{name}"
        scope = None if kind in CLUSTER_SCOPED else namespace
        resource = self._resource(kind, None, ref)
        try:
            self._call(
                lambda: self.dynamic_client.delete(resource, name=name, namespace=scope),
                ref,
                "delete",
                passthrough=(ApiException,),
            )
        except ApiException as e:
            if e.status == 404:
                return False
            raise translate_api_error(e, resource=ref, stage="delete") from e
        return True

    def service_exists(self, name: str, namespace: str) -> bool:
        from kubernetes.client.exceptions import ApiException

        self._ensure_initialized()
        ref = f"service/{namespace}/{name}"
        try:
            self._call(
                lambda: self.core_api.read_namespaced_service(name=name, namespace=namespace),
                ref,
                "lookup",
                passthrough=(ApiException,),
            )
        except ApiException as e:
            if e.status == 404:
                return False
            raise translate_api_error(e, resource=ref, stage="lookup") from e
        return True

    def namespace_exists(self, namespace: str) -> bool:
        from kubernetes.client.exceptions import ApiException

        self._ensure_initialized()
        ref = f"namespace/{namespace}"
        try:
            self._call(
                lambda: self.core_api.read_namespace(name=namespace),
                ref,
                "lookup",
                passthrough=(ApiException,),
            )
        except ApiException as e:
            if e.status == 404:
                return False
            if e.status == 403:
                # Project members often cannot read the Namespace object itself
                logger.debug("namespace_unverifiable", namespace=namespace)
                return True
            raise translate_api_error(e, resource=ref, stage="lookup") from e
        return True

    def _call(
        self,
        func: Any,
        ref: str,
        stage: str,
        passthrough: tuple[type[BaseException], ...] = (),
    ) -> Any:
        """Run an API call, translating errors not listed in ``passthrough``."""
        from kubernetes.client.exceptions import ApiException
        from urllib3.exceptions import HTTPError

        try:
            return func()
        except ControlPlaneError:
            raise
        except passthrough:
            raise
        except (ApiException, HTTPError) as e:
            raise translate_api_error(e, resource=ref, stage=stage) from e
