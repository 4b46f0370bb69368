"""
Tests for the dynamic-client backed ClusterClient.
"""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError

from serving_operator.errors import ConflictError, NotFoundError, OperatorError
from serving_operator.manifest import KubernetesClient, Resource, items_exist, kind_exists


@pytest.fixture
def dynamic_client():
    with patch("serving_operator.manifest.client.dynamic.DynamicClient") as cls:
        yield cls.return_value


@pytest.fixture
def api(dynamic_client):
    api = MagicMock()
    api.namespaced = True
    dynamic_client.resources.get.return_value = api
    return api


class TestKubernetesClient:
    """Tests for request routing and error translation."""

    def test_get_returns_resource(self, dynamic_client, api):
        api.get.return_value.to_dict.return_value = {"kind": "ConfigMap", "metadata": {"name": "a"}}
        client = KubernetesClient(api_client=MagicMock())
        result = client.get(Resource.new("v1", "ConfigMap", "a", "ns"))
        assert result.name == "a"
        dynamic_client.resources.get.assert_called_with(api_version="v1", kind="ConfigMap")
        api.get.assert_called_once_with(name="a", namespace="ns")

    def test_cluster_scoped_kind_has_no_namespace(self, dynamic_client, api):
        api.namespaced = False
        api.get.return_value.to_dict.return_value = {"kind": "Node", "metadata": {"name": "minikube"}}
        KubernetesClient(api_client=MagicMock()).get(Resource.new("v1", "Node", "minikube"))
        api.get.assert_called_once_with(name="minikube", namespace=None)

    def test_not_found_translated(self, dynamic_client, api):
        api.get.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(NotFoundError):
            KubernetesClient(api_client=MagicMock()).get(Resource.new("v1", "ConfigMap", "a", "ns"))

    def test_conflict_translated(self, dynamic_client, api):
        api.replace.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(ConflictError):
            KubernetesClient(api_client=MagicMock()).update(Resource.new("v1", "ConfigMap", "a", "ns"))

    def test_other_errors_wrapped(self, dynamic_client, api):
        api.create.side_effect = ApiException(status=500, reason="Internal Server Error")
        with pytest.raises(OperatorError) as exc_info:
            KubernetesClient(api_client=MagicMock()).create(Resource.new("v1", "ConfigMap", "a", "ns"))
        assert not isinstance(exc_info.value, (NotFoundError, ConflictError))

    def test_unserved_kind_is_not_found(self, dynamic_client):
        dynamic_client.resources.get.side_effect = ResourceNotFoundError("no Route")
        with pytest.raises(NotFoundError):
            KubernetesClient(api_client=MagicMock()).list("route.openshift.io/v1", "Route")

    def test_delete_propagates_in_background(self, dynamic_client, api):
        KubernetesClient(api_client=MagicMock()).delete(Resource.new("v1", "ConfigMap", "a", "ns"))
        api.delete.assert_called_once_with(
            name="a", namespace="ns", body={"propagationPolicy": "Background"}
        )


class TestDiscoveryHelpers:
    """Tests for kind_exists and items_exist."""

    def test_kind_exists(self):
        client = MagicMock()
        client.list.return_value = []
        assert kind_exists(client, "route.openshift.io/v1", "Route")
        client.list.side_effect = NotFoundError("Route", "*")
        assert not kind_exists(client, "route.openshift.io/v1", "Route")

    def test_items_exist(self):
        client = MagicMock()
        client.list.return_value = [Resource.new("v1", "Node", "n")]
        assert items_exist(client, "v1", "Node")
        client.list.return_value = []
        assert not items_exist(client, "v1", "Node")
