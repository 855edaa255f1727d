"""
Resource descriptor builder.

Turns a ``DeploymentConfig`` into the ordered set of manifests for a vLLM
model served through KServe, reading weights from S3-compatible storage:

1. Namespace (only when ``create_namespace`` is set)
2. Storage credential Secret (data connection)
3. ServiceAccount linked to the Secret (only when configured)
4. ServingRuntime
5. InferenceService
"""

from __future__ import annotations

from typing import Any

from kserveup.config.deployment import DeploymentConfig
from kserveup.core.errors import ConfigurationError
from kserveup.plan.models import DeploymentPlan, ResourceKind, ResourceSpec

KSERVE_GROUP = "serving.kserve.io"
SERVING_PORT = 8080
MODEL_MOUNT = "/mnt/models"
GPU_RESOURCE = "nvidia.com/gpu"

DASHBOARD_LABELS = {
    "opendatahub.io/dashboard": "true",
    "opendatahub.io/managed": "true",
}
MANAGED_BY = {"app.kubernetes.io/managed-by": "kserveup"}


class DescriptorBuilder:
    """Builds a deployment plan from configuration. Performs no I/O."""

    def build(self, config: DeploymentConfig, *, strict: bool = True) -> DeploymentPlan:
        """Build the plan.

        ``strict=False`` skips storage checks; such plans identify resources
        (e.g. for teardown) but must not be applied.
        """
        self.validate(config, strict=strict)

        specs: list[ResourceSpec] = []
        if config.create_namespace:
            specs.append(self._namespace(config))
        specs.append(self._secret(config))
        if config.service_account:
            specs.append(self._service_account(config))
        specs.append(self._serving_runtime(config))
        specs.append(self._inference_service(config))
        return DeploymentPlan(specs=tuple(specs))

    def validate(
        self,
        config: DeploymentConfig,
        *,
        strict: bool = True,
        endpoint_optional: bool = False,
    ) -> None:
        """Raise ConfigurationError listing every invalid field.

        ``endpoint_optional`` allows a missing storage endpoint, for checks that
        run before the endpoint is auto-detected.
        """
        problems: list[str] = []

        required = {
            "namespace": config.namespace,
            "workload_name": config.workload_name,
            "image": config.image,
        }
        storage_required = {
            "storage.endpoint": config.storage.endpoint,
            "storage.bucket": config.storage.bucket,
            "storage.access_key": config.storage.access_key,
            "storage.secret_key": config.storage.secret_key,
        }
        if endpoint_optional:
            del storage_required["storage.endpoint"]
        if strict:
            required.update(storage_required)
        for name, value in required.items():
            if not value or not str(value).strip():
                problems.append(f"{name} is required")

        for name, value in (
            ("context_limit", config.context_limit),
            ("gpu_count", config.gpu_count),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                problems.append(f"{name} must be a positive integer (got {value!r})")

        positive = {
            "poll_interval": config.poll_interval,
            "poll_deadline": config.poll_deadline,
        }
        for name, value in positive.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                problems.append(f"{name} must be a positive number (got {value!r})")

        if problems:
            raise ConfigurationError(
                "Invalid deployment configuration: " + "; ".join(problems),
                details={"stage": "build", "resource": config.workload_name or "<unnamed>"},
            )

    def _metadata(self, name: str, config: DeploymentConfig, **extra: Any) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": config.namespace,
            "labels": {**MANAGED_BY, **extra.pop("labels", {})},
        }
        metadata.update(extra)
        return metadata

    def _namespace(self, config: DeploymentConfig) -> ResourceSpec:
        manifest = {
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {
                "name": config.namespace,
                "labels": {**MANAGED_BY, **DASHBOARD_LABELS},
            },
        }
        return ResourceSpec(
            kind=ResourceKind.NAMESPACE,
            name=config.namespace,
            namespace=config.namespace,
            payload=manifest,
        )

    def _secret(self, config: DeploymentConfig) -> ResourceSpec:
        storage = config.storage
        manifest = {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._metadata(
                config.secret_name,
                config,
                labels=DASHBOARD_LABELS,
                annotations={f"{KSERVE_GROUP}/s3-endpoint": storage.host},
            ),
            "type": "Opaque",
            "stringData": {
                "AWS_ACCESS_KEY_ID": storage.access_key,
                "AWS_SECRET_ACCESS_KEY": storage.secret_key,
                "AWS_S3_ENDPOINT": storage.endpoint,
                "AWS_S3_BUCKET": storage.bucket,
                "AWS_DEFAULT_REGION": storage.region,
            },
        }
        return ResourceSpec(
            kind=ResourceKind.CREDENTIAL_STORE,
            name=config.secret_name,
            namespace=config.namespace,
            payload=manifest,
        )

    def _service_account(self, config: DeploymentConfig) -> ResourceSpec:
        assert config.service_account
        manifest = {
            "apiVersion": "v1",
            "kind": "ServiceAccount",
            "metadata": self._metadata(config.service_account, config),
            "secrets": [{"name": config.secret_name}],
            "imagePullSecrets": [{"name": config.secret_name}],
        }
        return ResourceSpec(
            kind=ResourceKind.IDENTITY,
            name=config.service_account,
            namespace=config.namespace,
            payload=manifest,
        )

    def _serving_runtime(self, config: DeploymentConfig) -> ResourceSpec:
        manifest = {
            "apiVersion": f"{KSERVE_GROUP}/v1alpha1",
            "kind": "ServingRuntime",
            "metadata": self._metadata(
                config.runtime_name,
                config,
                labels={"opendatahub.io/dashboard": "true"},
                annotations={
                    "opendatahub.io/apiProtocol": "REST",
                    "opendatahub.io/recommended-accelerators": f'["{GPU_RESOURCE}"]',
                    "opendatahub.io/template-display-name": "vLLM NVIDIA GPU ServingRuntime",
                },
            ),
            "spec": {
                "multiModel": False,
                "supportedModelFormats": [{"name": "vLLM", "autoSelect": True}],
                "containers": [
                    {
                        "name": "kserve-container",
                        "image": config.image,
                        "command": ["python", "-m", "vllm.entrypoints.openai.api_server"],
                        "args": [
                            f"--port={SERVING_PORT}",
                            f"--model={MODEL_MOUNT}",
                            "--served-model-name={{.Name}}",
                        ],
                        "env": [{"name": "HF_HOME", "value": "/tmp/hf_home"}],
                        "ports": [{"containerPort": SERVING_PORT, "protocol": "TCP"}],
                        "volumeMounts": [{"mountPath": "/dev/shm", "name": "shm"}],
                    }
                ],
                "volumes": [
                    {
                        "name": "shm",
                        "emptyDir": {"medium": "Memory", "sizeLimit": config.shm_size},
                    }
                ],
            },
        }
        return ResourceSpec(
            kind=ResourceKind.RUNTIME_DEFINITION,
            name=config.runtime_name,
            namespace=config.namespace,
            payload=manifest,
        )

    def _inference_service(self, config: DeploymentConfig) -> ResourceSpec:
        gpus = str(config.gpu_count)
        resources = config.resources.to_dict()
        resources["requests"][GPU_RESOURCE] = gpus
        resources["limits"][GPU_RESOURCE] = gpus

        predictor: dict[str, Any] = {
            "model": {
                "modelFormat": {"name": "vLLM"},
                "runtime": config.runtime_name,
                "storage": {"key": config.secret_name, "path": config.storage.path},
                "args": [
                    f"--dtype={config.dtype}",
                    f"--max-model-len={config.context_limit}",
                    *config.extra_args,
                ],
                "resources": resources,
            },
            "tolerations": [
                {"effect": "NoSchedule", "key": GPU_RESOURCE, "operator": "Exists"}
            ],
        }
        if config.service_account:
            predictor["serviceAccountName"] = config.service_account

        manifest = {
            "apiVersion": f"{KSERVE_GROUP}/v1beta1",
            "kind": "InferenceService",
            "metadata": self._metadata(
                config.workload_name,
                config,
                labels={
                    "opendatahub.io/dashboard": "true",
                    "networking.kserve.io/visibility": "exposed",
                },
                annotations={f"{KSERVE_GROUP}/deploymentMode": "RawDeployment"},
            ),
            "spec": {"predictor": predictor},
        }
        return ResourceSpec(
            kind=ResourceKind.WORKLOAD_DEFINITION,
            name=config.workload_name,
            namespace=config.namespace,
            payload=manifest,
        )
