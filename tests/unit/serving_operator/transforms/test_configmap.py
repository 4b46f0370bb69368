"""
Tests for ConfigMap literal overrides.
"""

from conftest import FakeClient, make_instance
from serving_operator.manifest import Manifest, Resource
from serving_operator.transforms import config_map_transform


def _cm(name, data=None):
    return Resource({
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name, "namespace": "knative-serving"},
        "data": dict(data or {}),
    })


class TestConfigMapTransform:
    """Tests for config_map_transform."""

    def test_override_merged_into_data(self):
        instance = make_instance(spec={"config": {"network": {"b": "2"}}})
        r = config_map_transform(instance)(_cm("config-network", {"a": "1"}))
        assert r.data == {"a": "1", "b": "2"}

    def test_override_replaces_existing_key(self):
        instance = make_instance(spec={"config": {"network": {"a": "9"}}})
        r = config_map_transform(instance)(_cm("config-network", {"a": "1"}))
        assert r.data == {"a": "9"}

    def test_other_suffix_untouched(self):
        instance = make_instance(spec={"config": {"network": {"b": "2"}}})
        r = config_map_transform(instance)(_cm("config-domain", {"a": "1"}))
        assert r.data == {"a": "1"}

    def test_unprefixed_configmap_untouched(self):
        instance = make_instance(spec={"config": {"network": {"b": "2"}}})
        r = config_map_transform(instance)(_cm("network", {"a": "1"}))
        assert r.data == {"a": "1"}

    def test_removed_override_removed_from_cluster(self):
        client = FakeClient()
        base = Manifest([_cm("config-network", {"a": "1"})], client)

        with_override = make_instance(spec={"config": {"network": {"b": "2"}}})
        base.transform(config_map_transform(with_override)).apply_all()
        live = client.lookup("v1", "ConfigMap", "config-network", "knative-serving")
        assert live.data == {"a": "1", "b": "2"}

        base.transform(config_map_transform(make_instance())).apply_all()
        live = client.lookup("v1", "ConfigMap", "config-network", "knative-serving")
        assert live.data == {"a": "1"}
