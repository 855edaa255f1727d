"""Root test configuration."""

import copy
import logging

import pytest
import structlog
import yaml
from kserveup.config.deployment import DeploymentConfig, StorageConfig
from kserveup.config.settings import Settings
from kserveup.providers.base import WorkloadStatus


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.current = 0.0
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


class InterruptingClock(FakeClock):
    """Clock whose first sleep behaves like Ctrl-C."""

    def sleep(self, seconds: float) -> None:
        raise KeyboardInterrupt


class FakeControlPlane:
    """In-memory control plane with scripted statuses and injectable faults."""

    def __init__(self) -> None:
        self.objects: dict[tuple, dict] = {}
        self.apply_calls: list[tuple] = []
        self.delete_calls: list[tuple] = []
        self.status_calls = 0
        self.statuses: list = []
        self.services: set[str] = set()
        self.service_calls: list[str] = []
        self.missing_namespaces: set[str] = set()
        self._apply_faults: dict[str, list[Exception]] = {}

    def fail_apply(self, name: str, *errors: Exception) -> None:
        """Raise ``errors`` (in order) on the next applies of ``name``."""
        self._apply_faults.setdefault(name, []).extend(errors)

    def apply_resource(self, kind, name, namespace, payload):
        self.apply_calls.append((kind, name, namespace))
        faults = self._apply_faults.get(name)
        if faults:
            raise faults.pop(0)
        key = (kind, namespace, name)
        existed = key in self.objects
        self.objects[key] = copy.deepcopy(payload)
        return "reconciled" if existed else "created"

    def get_workload_status(self, name, namespace):
        self.status_calls += 1
        if not self.statuses:
            return WorkloadStatus.not_found()
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def delete_resource(self, kind, name, namespace):
        self.delete_calls.append((kind, name, namespace))
        return self.objects.pop((kind, namespace, name), None) is not None

    def service_exists(self, name, namespace):
        self.service_calls.append(name)
        return name in self.services

    def namespace_exists(self, namespace):
        return namespace not in self.missing_namespaces


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def interrupting_clock():
    return InterruptingClock()


@pytest.fixture
def control_plane():
    return FakeControlPlane()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        namespace="model-deploy-lab",
        poll_interval=1.0,
        poll_deadline=5.0,
        apply_backoff_seconds=0.0,
    )


@pytest.fixture
def deployment_config():
    """Minimal valid config: no service account, explicit storage."""
    return DeploymentConfig(
        namespace="ns1",
        workload_name="m1",
        context_limit=8192,
        gpu_count=1,
        storage=StorageConfig(
            endpoint="http://minio-service.ns1.svc.cluster.local:9000",
            bucket="models",
            path="granite4",
            access_key="minio",
            secret_key="minio123",
        ),
        poll_interval=1.0,
        poll_deadline=100.0,
    )


@pytest.fixture
def config_file(tmp_path):
    """Deploy config with inline credentials, as written by a user."""
    path = tmp_path / "deploy.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "namespace": "ns1",
                "name": "m1",
                "storage": {
                    "endpoint": "http://minio.ns1.svc.cluster.local:9000",
                    "access_key": "minio",
                    "secret_key": "minio123",
                },
            }
        )
    )
    return str(path)
