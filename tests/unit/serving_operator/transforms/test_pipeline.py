"""
Tests for the built-in transform pipeline.
"""

from conftest import make_instance
from serving_operator.transforms import builtin_transforms


class TestBuiltinTransforms:
    """Tests for builtin_transforms ordering and end-to-end effect."""

    def test_seven_transforms(self):
        assert len(builtin_transforms(make_instance())) == 7

    def test_pipeline_over_manifest(self, sample_manifest):
        instance = make_instance(
            namespace="serving",
            spec={
                "namespace": "serving",
                "registry": {"default": "reg/${NAME}"},
                "config": {"network": {"b": "2"}},
            },
        )
        result = sample_manifest.transform(*builtin_transforms(instance))
        by_name = {(r.kind, r.name): r for r in result}

        controller = by_name[("Deployment", "controller")]
        assert controller.namespace == "serving"
        assert controller.containers[0]["image"] == "reg/controller"
        assert controller.owner_references[0]["name"] == "knative-serving"
        assert controller.owner_references[0]["controller"] is True

        assert by_name[("ConfigMap", "config-network")].data == {"a": "1", "b": "2"}
        binding = by_name[("ClusterRoleBinding", "knative-serving-controller-admin")]
        assert binding.obj["subjects"][0]["namespace"] == "serving"
        assert binding.owner_references == []
        assert by_name[("Namespace", "knative-serving")].namespace == ""

    def test_no_owner_across_namespaces(self, sample_manifest):
        instance = make_instance(namespace="operators", spec={"namespace": "knative-serving"})
        result = sample_manifest.transform(*builtin_transforms(instance))
        for resource in result:
            assert resource.owner_references == []
        controller = [r for r in result if r.kind == "Deployment" and r.name == "controller"][0]
        assert controller.namespace == "knative-serving"
