"""
Tests for Istio gateway overrides.
"""

from conftest import make_instance
from serving_operator.manifest import Resource
from serving_operator.transforms import gateway_transform


def _gateway(name):
    return Resource({
        "apiVersion": "networking.istio.io/v1alpha3",
        "kind": "Gateway",
        "metadata": {"name": name, "namespace": "knative-serving"},
        "spec": {
            "selector": {"istio": "ingressgateway"},
            "servers": [{"port": {"number": 80}}],
        },
    })


SERVERS = [{"port": {"number": 443, "name": "https", "protocol": "HTTPS"}, "hosts": ["*"]}]


class TestGatewayTransform:
    """Tests for gateway_transform."""

    def test_ingress_selector_replaced(self):
        instance = make_instance(spec={"knativeIngressGateway": {"selector": {"custom": "ingress"}}})
        r = gateway_transform(instance)(_gateway("knative-ingress-gateway"))
        assert r.get("spec", "selector") == {"custom": "ingress"}
        assert r.get("spec", "servers") == [{"port": {"number": 80}}]

    def test_cluster_local_servers_replaced(self):
        instance = make_instance(spec={"clusterLocalGateway": {"servers": SERVERS}})
        r = gateway_transform(instance)(_gateway("cluster-local-gateway"))
        assert r.get("spec", "servers") == SERVERS
        assert r.get("spec", "selector") == {"istio": "ingressgateway"}

    def test_other_gateway_untouched(self):
        instance = make_instance(spec={"knativeIngressGateway": {"selector": {"custom": "ingress"}}})
        r = gateway_transform(instance)(_gateway("some-other-gateway"))
        assert r.get("spec", "selector") == {"istio": "ingressgateway"}

    def test_no_override_untouched(self):
        r = gateway_transform(make_instance())(_gateway("knative-ingress-gateway"))
        assert r.get("spec", "selector") == {"istio": "ingressgateway"}
