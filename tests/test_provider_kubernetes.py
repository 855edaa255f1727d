"""Tests for the Kubernetes control-plane client."""

from unittest.mock import MagicMock

import pytest
from kserveup.core.errors import (
    ConfigurationError,
    ControlPlaneError,
    MalformedSpec,
    PermissionDenied,
    TransientNetworkError,
)
from kserveup.plan.models import ResourceKind
from kserveup.providers.base import WorkloadPhase
from kserveup.providers.kubernetes import (
    KubernetesControlPlane,
    _check_kubernetes_available,
    translate_api_error,
    workload_status_from_object,
)
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError
from urllib3.exceptions import ProtocolError

SECRET = {"apiVersion": "v1", "kind": "Secret", "metadata": {"name": "m1-storage"}}


@pytest.fixture
def dynamic_client():
    return MagicMock()


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def control_plane(dynamic_client, core_api):
    return KubernetesControlPlane(
        kubeconfig=None,
        context=None,
        field_manager="kserveup-test",
        dynamic_client=dynamic_client,
        core_api=core_api,
    )


def test_check_kubernetes_available():
    """kubernetes is a runtime dependency, so it is always importable."""
    assert _check_kubernetes_available() is True


class TestTranslateApiError:
    @pytest.mark.parametrize(
        "status, expected",
        [
            (401, PermissionDenied),
            (403, PermissionDenied),
            (400, MalformedSpec),
            (422, MalformedSpec),
            (429, TransientNetworkError),
            (503, TransientNetworkError),
            (409, ControlPlaneError),
        ],
    )
    def test_status_mapping(self, status, expected):
        error = translate_api_error(
            ApiException(status=status, reason="x"), resource="secret/ns1/a", stage="apply"
        )

        assert type(error) is expected
        assert error.resource == "secret/ns1/a"
        assert error.stage == "apply"

    def test_connection_errors_are_transient(self):
        error = translate_api_error(ProtocolError("reset"), resource="r", stage="apply")

        assert isinstance(error, TransientNetworkError)


class TestWorkloadStatusFromObject:
    def test_ready_with_url(self):
        status = workload_status_from_object(
            {
                "status": {
                    "url": "https://m1-ns1.apps.example.com",
                    "conditions": [{"type": "Ready", "status": "True"}],
                }
            }
        )

        assert status.phase == WorkloadPhase.READY
        assert status.endpoint == "https://m1-ns1.apps.example.com"

    def test_ready_falls_back_to_address(self):
        status = workload_status_from_object(
            {
                "status": {
                    "address": {"url": "http://m1.ns1.svc.cluster.local"},
                    "conditions": [{"type": "Ready", "status": "True"}],
                }
            }
        )

        assert status.endpoint == "http://m1.ns1.svc.cluster.local"

    def test_failed_to_load(self):
        status = workload_status_from_object(
            {
                "status": {
                    "conditions": [{"type": "Ready", "status": "False"}],
                    "modelStatus": {
                        "transitionStatus": "BlockedByFailedLoad",
                        "states": {"targetModelState": "FailedToLoad"},
                        "lastFailureInfo": {
                            "reason": "ModelLoadFailed",
                            "message": "storage-initializer: NoSuchBucket",
                        },
                    },
                }
            }
        )

        assert status.phase == WorkloadPhase.FAILED
        assert status.reason == "ModelLoadFailed"
        assert status.message == "storage-initializer: NoSuchBucket"

    def test_not_ready_is_initializing(self):
        status = workload_status_from_object(
            {
                "status": {
                    "conditions": [
                        {"type": "Ready", "status": "False", "reason": "PredictorNotReady"}
                    ]
                }
            }
        )

        assert status.phase == WorkloadPhase.INITIALIZING
        assert status.message == "PredictorNotReady"

    def test_no_status_yet(self):
        assert workload_status_from_object({}).phase == WorkloadPhase.INITIALIZING


class TestApplyResource:
    def test_new_object_is_created(self, control_plane, dynamic_client):
        """A 404 on lookup means server-side apply creates the object."""
        dynamic_client.get.side_effect = ApiException(status=404, reason="Not Found")

        outcome = control_plane.apply_resource(
            ResourceKind.CREDENTIAL_STORE, "m1-storage", "ns1", SECRET
        )

        assert outcome == "created"
        dynamic_client.resources.get.assert_called_once_with(api_version="v1", kind="Secret")
        _, kwargs = dynamic_client.server_side_apply.call_args
        assert kwargs["body"] is SECRET
        assert kwargs["field_manager"] == "kserveup-test"
        assert kwargs["force_conflicts"] is True

    def test_existing_object_is_reconciled(self, control_plane, dynamic_client):
        outcome = control_plane.apply_resource(
            ResourceKind.CREDENTIAL_STORE, "m1-storage", "ns1", SECRET
        )

        assert outcome == "reconciled"

    def test_forbidden_apply(self, control_plane, dynamic_client):
        dynamic_client.get.side_effect = ApiException(status=404, reason="Not Found")
        dynamic_client.server_side_apply.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(PermissionDenied) as exc_info:
            control_plane.apply_resource(ResourceKind.CREDENTIAL_STORE, "m1-storage", "ns1", SECRET)

        assert exc_info.value.resource == "credential-store/ns1/m1-storage"

    def test_lookup_outage_is_transient(self, control_plane, dynamic_client):
        dynamic_client.get.side_effect = ApiException(status=503, reason="Unavailable")

        with pytest.raises(TransientNetworkError):
            control_plane.apply_resource(ResourceKind.CREDENTIAL_STORE, "m1-storage", "ns1", SECRET)

    def test_namespace_is_applied_cluster_wide(self, control_plane, dynamic_client):
        body = {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "ns1"}}

        control_plane.apply_resource(ResourceKind.NAMESPACE, "ns1", "ns1", body)

        dynamic_client.resources.get.assert_called_once_with(api_version="v1", kind="Namespace")
        _, kwargs = dynamic_client.server_side_apply.call_args
        assert kwargs["namespace"] is None
        assert kwargs["name"] == "ns1"

    def test_unknown_kind_is_malformed(self, control_plane, dynamic_client):
        dynamic_client.resources.get.side_effect = ResourceNotFoundError("no InferenceService")

        with pytest.raises(MalformedSpec):
            control_plane.apply_resource(
                ResourceKind.WORKLOAD_DEFINITION, "m1", "ns1", {"kind": "InferenceService"}
            )


class TestReadsAndDeletes:
    def test_status_not_found(self, control_plane, dynamic_client):
        dynamic_client.get.side_effect = ApiException(status=404, reason="Not Found")

        assert control_plane.get_workload_status("m1", "ns1").phase == WorkloadPhase.NOT_FOUND

    def test_status_from_object(self, control_plane, dynamic_client):
        dynamic_client.get.return_value.to_dict.return_value = {
            "status": {"url": "https://x", "conditions": [{"type": "Ready", "status": "True"}]}
        }

        status = control_plane.get_workload_status("m1", "ns1")

        assert status.phase == WorkloadPhase.READY
        assert status.endpoint == "https://x"

    def test_status_query_failure_is_translated(self, control_plane, dynamic_client):
        dynamic_client.get.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(TransientNetworkError):
            control_plane.get_workload_status("m1", "ns1")

    def test_delete_missing_returns_false(self, control_plane, dynamic_client):
        dynamic_client.delete.side_effect = ApiException(status=404, reason="Not Found")

        assert control_plane.delete_resource(ResourceKind.RUNTIME_DEFINITION, "m1", "ns1") is False

    def test_delete_existing(self, control_plane, dynamic_client):
        assert control_plane.delete_resource(ResourceKind.RUNTIME_DEFINITION, "m1", "ns1") is True
        dynamic_client.resources.get.assert_called_once_with(
            api_version="serving.kserve.io/v1alpha1", kind="ServingRuntime"
        )

    def test_service_exists(self, control_plane, core_api):
        core_api.read_namespaced_service.side_effect = [
            MagicMock(),
            ApiException(status=404, reason="Not Found"),
        ]

        assert control_plane.service_exists("minio-service", "ns1") is True
        assert control_plane.service_exists("minio", "ns1") is False

    @pytest.mark.parametrize(
        "error, expected",
        [
            (None, True),
            (ApiException(status=404, reason="Not Found"), False),
            (ApiException(status=403, reason="Forbidden"), True),
        ],
    )
    def test_namespace_exists(self, control_plane, core_api, error, expected):
        """Forbidden reads cannot prove absence, so the namespace is assumed present."""
        core_api.read_namespace.side_effect = error

        assert control_plane.namespace_exists("ns1") is expected
        core_api.read_namespace.assert_called_once_with(name="ns1")

    def test_namespace_lookup_outage_is_translated(self, control_plane, core_api):
        core_api.read_namespace.side_effect = ApiException(status=503, reason="Unavailable")

        with pytest.raises(TransientNetworkError):
            control_plane.namespace_exists("ns1")


class TestInitialization:
    def test_unloadable_kubeconfig_is_configuration_error(self, monkeypatch):
        from kubernetes import config

        def fail_to_load(**kwargs):
            raise config.ConfigException("Invalid kube-config file. No configuration found.")

        monkeypatch.setattr(config, "load_kube_config", fail_to_load)
        control_plane = KubernetesControlPlane(kubeconfig="/nonexistent", context=None)

        with pytest.raises(ConfigurationError) as exc_info:
            control_plane.service_exists("minio", "ns1")

        assert "Failed to load Kubernetes config" in exc_info.value.message
