"""
Tests for the kopf handler wiring.
"""

from unittest.mock import MagicMock, patch

import kopf
import pytest

from serving_operator import operator
from serving_operator.config import OperatorConfig
from serving_operator.errors import ApplyError, StaleGenerationError


@pytest.fixture
def reconciler(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(operator, "_reconciler", mock)
    return mock


class TestReconcileKey:
    """Tests for error translation into kopf retry semantics."""

    def test_namespaced_key(self, reconciler):
        operator.reconcile_key("knative-serving", "knative-serving")
        reconciler.reconcile.assert_called_once_with("knative-serving/knative-serving")

    def test_operator_error_is_temporary(self, reconciler):
        reconciler.reconcile.side_effect = ApplyError("ConfigMap x", RuntimeError("boom"))
        with pytest.raises(kopf.TemporaryError):
            operator.reconcile_key("ns", "ks")

    def test_stale_generation_is_permanent(self, reconciler):
        reconciler.reconcile.side_effect = StaleGenerationError("ns/ks", 1, 2)
        with pytest.raises(kopf.PermanentError):
            operator.reconcile_key("ns", "ks")

    def test_uninitialized(self, monkeypatch):
        monkeypatch.setattr(operator, "_reconciler", None)
        with pytest.raises(RuntimeError):
            operator.reconcile_key("ns", "ks")


class TestBuildReconciler:
    """Tests for startup wiring."""

    @patch("serving_operator.operator.KubernetesInstanceClient")
    @patch("serving_operator.operator.Manifest")
    @patch("serving_operator.operator.KubernetesClient")
    @patch("serving_operator.operator.load_kube_config")
    def test_wires_config(self, mock_load, mock_client, mock_manifest, mock_instances):
        config = OperatorConfig(
            manifest_path="/manifests",
            recursive=True,
            finalizer_name="custom-finalizer",
            release_version="9.9.9",
        )
        reconciler = operator.build_reconciler(config)

        mock_manifest.from_path.assert_called_once_with(
            "/manifests", mock_client.return_value, recursive=True
        )
        mock_instances.assert_called_once_with(
            group="operator.knative.dev",
            version="v1alpha1",
            plural="knativeservings",
            api_client=mock_load.return_value,
        )
        assert reconciler.finalizer_name == "custom-finalizer"
        assert reconciler.release_version == "9.9.9"
        assert [p.name for p in reconciler.registry.platforms] == ["openshift", "minikube"]
