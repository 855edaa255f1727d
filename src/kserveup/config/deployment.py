"""
Deployment configuration records.

A ``DeploymentConfig`` describes one model-serving workload: where it lives,
where its weights are stored, how much hardware it gets and how long to wait
for it. Values are validated by the descriptor builder, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kserveup.providers.base import ControlPlaneClient

DEFAULT_IMAGE = "registry.redhat.io/rhoai/odh-vllm-cuda-rhel9:v2.25.0-1759340926"
DEFAULT_REGION = "us-east-1"
MINIO_PORT = 9000

# Service names a MinIO install is commonly exposed under, in lookup order
MINIO_SERVICE_NAMES = ("minio-service", "minio")


@dataclass
class StorageConfig:
    """S3-compatible object storage holding the model weights."""

    endpoint: str | None = None
    bucket: str = "models"
    path: str = ""
    access_key: str | None = None
    secret_key: str | None = None
    access_key_env: str | None = None
    secret_key_env: str | None = None
    region: str = DEFAULT_REGION

    @property
    def host(self) -> str | None:
        """Endpoint without scheme, as KServe's s3-endpoint annotation expects."""
        if not self.endpoint:
            return None
        return self.endpoint.split("://", 1)[-1].rstrip("/")

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "bucket": self.bucket,
            "path": self.path,
            "access_key_env": self.access_key_env,
            "secret_key_env": self.secret_key_env,
            "region": self.region,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageConfig:
        return cls(
            endpoint=data.get("endpoint"),
            bucket=data.get("bucket", "models"),
            path=data.get("path", ""),
            access_key=data.get("access_key"),
            secret_key=data.get("secret_key"),
            access_key_env=data.get("access_key_env"),
            secret_key_env=data.get("secret_key_env"),
            region=data.get("region", DEFAULT_REGION),
        )


@dataclass
class ResourceRequirements:
    """CPU and memory requests/limits for the predictor container."""

    cpu_request: str = "2"
    memory_request: str = "2Gi"
    cpu_limit: str = "4"
    memory_limit: str = "8Gi"

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": {"cpu": self.cpu_request, "memory": self.memory_request},
            "limits": {"cpu": self.cpu_limit, "memory": self.memory_limit},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceRequirements:
        requests = data.get("requests", {})
        limits = data.get("limits", {})
        return cls(
            cpu_request=str(requests.get("cpu", "2")),
            memory_request=str(requests.get("memory", "2Gi")),
            cpu_limit=str(limits.get("cpu", "4")),
            memory_limit=str(limits.get("memory", "8Gi")),
        )


@dataclass
class DeploymentConfig:
    """Everything needed to provision and verify one serving workload."""

    namespace: str
    workload_name: str
    create_namespace: bool = False
    storage: StorageConfig = field(default_factory=StorageConfig)
    image: str = DEFAULT_IMAGE
    context_limit: int = 8192
    gpu_count: int = 1
    dtype: str = "float16"
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    service_account: str | None = None
    shm_size: str = "2Gi"
    extra_args: list[str] = field(default_factory=list)
    poll_interval: float = 10.0
    poll_deadline: float = 300.0

    @property
    def secret_name(self) -> str:
        return f"{self.workload_name}-storage"

    @property
    def runtime_name(self) -> str:
        return self.workload_name

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "create_namespace": self.create_namespace,
            "workload_name": self.workload_name,
            "storage": self.storage.to_dict(),
            "image": self.image,
            "context_limit": self.context_limit,
            "gpu_count": self.gpu_count,
            "dtype": self.dtype,
            "resources": self.resources.to_dict(),
            "service_account": self.service_account,
            "shm_size": self.shm_size,
            "extra_args": list(self.extra_args),
            "poll": {"interval": self.poll_interval, "deadline": self.poll_deadline},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeploymentConfig:
        poll = data.get("poll") or {}
        return cls(
            namespace=data.get("namespace", ""),
            create_namespace=bool(data.get("create_namespace", False)),
            workload_name=data.get("workload_name") or data.get("name", ""),
            storage=StorageConfig.from_dict(data.get("storage") or {}),
            image=data.get("image", DEFAULT_IMAGE),
            context_limit=data.get("context_limit", 8192),
            gpu_count=data.get("gpu_count", 1),
            dtype=data.get("dtype", "float16"),
            resources=ResourceRequirements.from_dict(data.get("resources") or {}),
            service_account=data.get("service_account"),
            shm_size=data.get("shm_size", "2Gi"),
            extra_args=list(data.get("extra_args") or []),
            poll_interval=poll.get("interval", 10.0),
            poll_deadline=poll.get("deadline", 300.0),
        )


def minio_endpoint(service: str, namespace: str) -> str:
    return f"http://{service}.{namespace}.svc.cluster.local:{MINIO_PORT}"


def with_detected_storage(
    config: DeploymentConfig, client: ControlPlaneClient
) -> DeploymentConfig:
    """Fill in the storage endpoint from the in-namespace MinIO service.

    Configs with an explicit endpoint are returned unchanged. Falls back to
    the last candidate name when no service is found.
    """
    if config.storage.endpoint:
        return config

    chosen = MINIO_SERVICE_NAMES[-1]
    for service in MINIO_SERVICE_NAMES:
        if client.service_exists(service, config.namespace):
            chosen = service
            break

    storage = replace(config.storage, endpoint=minio_endpoint(chosen, config.namespace))
    return replace(config, storage=storage)
