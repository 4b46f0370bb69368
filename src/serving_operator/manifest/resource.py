"""
Generic, self-describing cluster object.

``Resource`` wraps the decoded JSON/YAML body of a Kubernetes object. It
exposes typed accessors for the handful of fields the operator inspects
(kind, name, namespace, annotations, containers, data) and keeps every other
field in the underlying ``obj`` dict untouched, so a resource read from YAML
or from the API round-trips without loss.

Example:
    from serving_operator.manifest.resource import Resource

    cm = Resource({"apiVersion": "v1", "kind": "ConfigMap",
                   "metadata": {"name": "config-network"}})
    cm.namespace = "knative-serving"
    cm.data["istio.sidecar.includeOutboundIPRanges"] = "10.0.0.1/24"
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

# Kinds that live outside any namespace. Namespace injection and owner
# references are skipped for these.
CLUSTER_SCOPED_KINDS = frozenset({
    "APIService",
    "CertificateSigningRequest",
    "ClusterRole",
    "ClusterRoleBinding",
    "ComponentStatus",
    "CustomResourceDefinition",
    "MeshPolicy",
    "MutatingWebhookConfiguration",
    "Namespace",
    "Node",
    "PersistentVolume",
    "PriorityClass",
    "SelfSubjectAccessReview",
    "SelfSubjectRulesReview",
    "StorageClass",
    "SubjectAccessReview",
    "TokenReview",
    "ValidatingWebhookConfiguration",
    "VolumeAttachment",
})

_MISSING = object()


class Resource:
    """A single Kubernetes object held as an open attribute bag."""

    __slots__ = ("obj",)

    def __init__(self, obj: Optional[Dict[str, Any]] = None):
        self.obj: Dict[str, Any] = obj if obj is not None else {}

    @classmethod
    def new(
        cls,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> "Resource":
        """Build a bare resource from its identifying fields."""
        resource = cls({"apiVersion": api_version, "kind": kind, "metadata": {"name": name}})
        if namespace:
            resource.namespace = namespace
        return resource

    # Identity

    @property
    def api_version(self) -> str:
        return self.obj.get("apiVersion", "")

    @api_version.setter
    def api_version(self, value: str) -> None:
        self.obj["apiVersion"] = value

    @property
    def kind(self) -> str:
        return self.obj.get("kind", "")

    @kind.setter
    def kind(self, value: str) -> None:
        self.obj["kind"] = value

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.obj.setdefault("metadata", {})

    @property
    def name(self) -> str:
        return self.obj.get("metadata", {}).get("name", "")

    @name.setter
    def name(self, value: str) -> None:
        self.metadata["name"] = value

    @property
    def namespace(self) -> str:
        return self.obj.get("metadata", {}).get("namespace", "")

    @namespace.setter
    def namespace(self, value: str) -> None:
        if value:
            self.metadata["namespace"] = value
        else:
            self.metadata.pop("namespace", None)

    @property
    def is_cluster_scoped(self) -> bool:
        return self.kind in CLUSTER_SCOPED_KINDS

    @property
    def annotations(self) -> Dict[str, str]:
        return self.metadata.setdefault("annotations", {})

    @property
    def owner_references(self) -> List[Dict[str, Any]]:
        return self.obj.get("metadata", {}).get("ownerReferences", [])

    @owner_references.setter
    def owner_references(self, refs: List[Dict[str, Any]]) -> None:
        self.metadata["ownerReferences"] = refs

    # Workload accessors

    @property
    def pod_spec(self) -> Dict[str, Any]:
        """Pod template spec of a Deployment/DaemonSet-like resource."""
        return self.obj.setdefault("spec", {}).setdefault("template", {}).setdefault("spec", {})

    @property
    def containers(self) -> List[Dict[str, Any]]:
        return self.pod_spec.setdefault("containers", [])

    @property
    def data(self) -> Dict[str, str]:
        """``data`` map of a ConfigMap-like resource."""
        data = self.obj.get("data")
        if data is None:
            data = self.obj["data"] = {}
        return data

    # Generic access

    def get(self, *path: str, default: Any = None) -> Any:
        """Read a nested field, returning ``default`` when any hop is missing."""
        node: Any = self.obj
        for key in path:
            if not isinstance(node, dict):
                return default
            node = node.get(key, _MISSING)
            if node is _MISSING:
                return default
        return node

    def set(self, value: Any, *path: str) -> None:
        """Write a nested field, creating intermediate maps as needed."""
        node = self.obj
        for key in path[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child
        node[path[-1]] = value

    def deep_copy(self) -> "Resource":
        return Resource(copy.deepcopy(self.obj))

    def to_dict(self) -> Dict[str, Any]:
        return self.obj

    def ref(self) -> Dict[str, str]:
        """Compact reference recorded in the Instance status."""
        ref = {"apiVersion": self.api_version, "kind": self.kind, "name": self.name}
        if self.namespace:
            ref["namespace"] = self.namespace
        return ref

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.obj == other.obj

    def __repr__(self) -> str:
        location = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.kind}({self.api_version}) {location}"
