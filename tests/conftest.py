"""
Pytest configuration and fixtures for serving operator tests.
"""

from __future__ import annotations

import copy
import os
from typing import Any, Dict, Generator, List, Optional, Tuple

import pytest

from serving_operator.config import reset_config
from serving_operator.errors import ConflictError, NotFoundError
from serving_operator.manifest import Manifest, Resource
from serving_operator.models import KnativeServing


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_operator_env() -> Generator[None, None, None]:
    """Strip SERVING_OPERATOR_* variables and reset the config singleton."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("SERVING_OPERATOR_")}
    for key in saved:
        del os.environ[key]
    reset_config()

    yield

    reset_config()
    for key in [k for k in os.environ if k.startswith("SERVING_OPERATOR_")]:
        del os.environ[key]
    os.environ.update(saved)


# ============================================================================
# Fake Cluster
# ============================================================================


Key = Tuple[str, str, str, str]


def _key(resource: Resource) -> Key:
    return (resource.api_version, resource.kind, resource.namespace, resource.name)


class FakeClient:
    """In-memory ``ClusterClient`` that records every call.

    ``writes`` holds ``(verb, kind, name)`` for each create/update/delete,
    ``reads`` holds ``(kind, name)`` for each get. Listing a kind missing
    from ``served`` raises NotFoundError, as if the API did not serve it.
    ``errors`` maps ``(verb, kind, name)`` to an exception to raise.
    """

    def __init__(self, objects: Optional[List[Dict[str, Any]]] = None):
        self.objects: Dict[Key, Dict[str, Any]] = {}
        self.writes: List[Tuple[str, str, str]] = []
        self.reads: List[Tuple[str, str]] = []
        self.served: set = set()
        self.errors: Dict[Tuple[str, str, str], Exception] = {}
        self._version = 0
        for obj in objects or []:
            self.add(obj)

    def add(self, obj: Dict[str, Any]) -> Resource:
        resource = Resource(copy.deepcopy(obj))
        self.objects[_key(resource)] = resource.obj
        self.served.add((resource.api_version, resource.kind))
        return resource

    def lookup(self, api_version: str, kind: str, name: str, namespace: str = "") -> Optional[Resource]:
        obj = self.objects.get((api_version, kind, namespace, name))
        return Resource(copy.deepcopy(obj)) if obj is not None else None

    def _fail(self, verb: str, resource: Resource) -> None:
        error = self.errors.get((verb, resource.kind, resource.name))
        if error is not None:
            raise error

    def _bump(self, obj: Dict[str, Any]) -> None:
        self._version += 1
        obj.setdefault("metadata", {})["resourceVersion"] = str(self._version)

    def get(self, resource: Resource) -> Resource:
        self.reads.append((resource.kind, resource.name))
        self._fail("get", resource)
        obj = self.objects.get(_key(resource))
        if obj is None:
            raise NotFoundError(resource.kind, resource.name, resource.namespace or None)
        return Resource(copy.deepcopy(obj))

    def create(self, resource: Resource) -> Resource:
        self._fail("create", resource)
        key = _key(resource)
        if key in self.objects:
            raise ConflictError(f"{resource.kind} {resource.name} already exists")
        obj = copy.deepcopy(resource.obj)
        self._bump(obj)
        self.objects[key] = obj
        self.served.add((resource.api_version, resource.kind))
        self.writes.append(("create", resource.kind, resource.name))
        return Resource(copy.deepcopy(obj))

    def update(self, resource: Resource) -> Resource:
        self._fail("update", resource)
        key = _key(resource)
        if key not in self.objects:
            raise NotFoundError(resource.kind, resource.name, resource.namespace or None)
        obj = copy.deepcopy(resource.obj)
        self._bump(obj)
        self.objects[key] = obj
        self.writes.append(("update", resource.kind, resource.name))
        return Resource(copy.deepcopy(obj))

    def delete(self, resource: Resource) -> None:
        self._fail("delete", resource)
        key = _key(resource)
        if key not in self.objects:
            raise NotFoundError(resource.kind, resource.name, resource.namespace or None)
        del self.objects[key]
        self.writes.append(("delete", resource.kind, resource.name))

    def list(self, api_version: str, kind: str, namespace: Optional[str] = None) -> List[Resource]:
        if (api_version, kind) not in self.served:
            raise NotFoundError(kind, "*", namespace)
        return [
            Resource(copy.deepcopy(obj))
            for (av, k, ns, _), obj in self.objects.items()
            if av == api_version and k == kind and (namespace is None or ns == namespace)
        ]

    def verbs(self, verb: str) -> List[Tuple[str, str]]:
        return [(kind, name) for v, kind, name in self.writes if v == verb]


class FakeInstances:
    """In-memory ``InstanceClient``."""

    def __init__(self, instances: Optional[List[KnativeServing]] = None):
        self.store: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self._version = 0
        for instance in instances or []:
            self.store[instance.key] = instance.to_dict()

    def _save(self, instance: KnativeServing) -> KnativeServing:
        self._version += 1
        body = instance.to_dict()
        body["metadata"]["resourceVersion"] = str(self._version)
        self.store[instance.key] = body
        return KnativeServing.from_dict(copy.deepcopy(body))

    def get(self, namespace: str, name: str) -> Optional[KnativeServing]:
        self.calls.append(("get", f"{namespace}/{name}"))
        body = self.store.get(f"{namespace}/{name}")
        return KnativeServing.from_dict(copy.deepcopy(body)) if body else None

    def list(self) -> List[KnativeServing]:
        self.calls.append(("list", "*"))
        return [KnativeServing.from_dict(copy.deepcopy(body)) for body in self.store.values()]

    def create(self, instance: KnativeServing) -> KnativeServing:
        self.calls.append(("create", instance.key))
        if instance.key in self.store:
            raise ConflictError(f"{instance.key} already exists")
        return self._save(instance)

    def update(self, instance: KnativeServing) -> KnativeServing:
        self.calls.append(("update", instance.key))
        stored = self.store.get(instance.key)
        if stored is None:
            raise NotFoundError("KnativeServing", instance.name, instance.namespace)
        # Main resource updates leave status alone.
        body = instance.to_dict()
        body["status"] = copy.deepcopy(stored.get("status", {}))
        return self._save(KnativeServing.from_dict(body))

    def update_status(self, instance: KnativeServing) -> KnativeServing:
        self.calls.append(("update_status", instance.key))
        stored = self.store.get(instance.key)
        if stored is None:
            raise NotFoundError("KnativeServing", instance.name, instance.namespace)
        body = copy.deepcopy(stored)
        body["status"] = instance.to_dict().get("status", {})
        return self._save(KnativeServing.from_dict(body))

    def count(self, verb: str) -> int:
        return sum(1 for v, _ in self.calls if v == verb)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


# ============================================================================
# Manifest Fixtures
# ============================================================================


def deployment(name: str, namespace: str = "knative-serving", containers=None) -> Dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "template": {
                "spec": {
                    "containers": containers or [{"name": name, "image": f"gcr.io/knative/{name}:v1"}],
                },
            },
        },
    }


def available(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a Deployment body carrying an Available=True condition."""
    obj = copy.deepcopy(obj)
    obj["status"] = {"conditions": [{"type": "Available", "status": "True"}]}
    return obj


@pytest.fixture
def sample_resources() -> List[Dict[str, Any]]:
    """A small release manifest in the order it would appear on disk."""
    return [
        {
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {"name": "knative-serving"},
        },
        {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": "services.serving.knative.dev"},
        },
        {
            "apiVersion": "v1",
            "kind": "ServiceAccount",
            "metadata": {"name": "controller", "namespace": "knative-serving"},
        },
        {
            "apiVersion": "rbac.authorization.k8s.io/v1",
            "kind": "ClusterRoleBinding",
            "metadata": {"name": "knative-serving-controller-admin"},
            "subjects": [{"kind": "ServiceAccount", "name": "controller", "namespace": "knative-serving"}],
            "roleRef": {"kind": "ClusterRole", "name": "knative-serving-admin"},
        },
        {
            "apiVersion": "rbac.authorization.k8s.io/v1",
            "kind": "ClusterRole",
            "metadata": {"name": "knative-serving-admin"},
            "rules": [],
        },
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"name": "config-network", "namespace": "knative-serving"},
            "data": {"a": "1"},
        },
        deployment("activator"),
        deployment("controller"),
        deployment("webhook"),
    ]


@pytest.fixture
def sample_manifest(sample_resources, fake_client) -> Manifest:
    return Manifest([Resource(copy.deepcopy(obj)) for obj in sample_resources], fake_client)


# ============================================================================
# Instance Fixtures
# ============================================================================


def make_instance(
    name: str = "knative-serving",
    namespace: str = "knative-serving",
    generation: int = 1,
    spec: Optional[Dict[str, Any]] = None,
    **metadata: Any,
) -> KnativeServing:
    body = {
        "apiVersion": "operator.knative.dev/v1alpha1",
        "kind": "KnativeServing",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "generation": generation,
            **metadata,
        },
        "spec": spec or {},
    }
    return KnativeServing.from_dict(body)


@pytest.fixture
def instance() -> KnativeServing:
    return make_instance()


@pytest.fixture
def fake_instances(instance) -> FakeInstances:
    return FakeInstances([instance])
