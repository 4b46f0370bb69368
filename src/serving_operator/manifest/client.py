"""
Cluster API access for manifests.

``ClusterClient`` is the narrow interface the reconciliation core consumes:
get/create/update/delete/list keyed by (apiVersion, kind, namespace, name).
``KubernetesClient`` implements it on top of the ``kubernetes`` dynamic
client, whose discovery cache resolves each kind to its REST resource and
tells us whether it is namespaced.

Example:
    from serving_operator.manifest.client import KubernetesClient, load_kube_config

    api_client = load_kube_config()
    cluster = KubernetesClient(api_client)
    live = cluster.get(resource)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, runtime_checkable

from serving_operator.errors import ConflictError, NotFoundError, OperatorError
from serving_operator.manifest.resource import Resource

logger = logging.getLogger(__name__)

try:
    from kubernetes import client as k8s_client
    from kubernetes import config as k8s_config
    from kubernetes import dynamic
    from kubernetes.client.exceptions import ApiException
    from kubernetes.dynamic.exceptions import DynamicApiError, ResourceNotFoundError
    K8S_AVAILABLE = True
except ImportError:
    K8S_AVAILABLE = False
    logger.warning("kubernetes package not installed - KubernetesClient unavailable")


@runtime_checkable
class ClusterClient(Protocol):
    """Minimal cluster API used by Manifest and the reconciler."""

    def get(self, resource: Resource) -> Resource:
        """Return the live object; raise NotFoundError if absent."""
        ...

    def create(self, resource: Resource) -> Resource:
        ...

    def update(self, resource: Resource) -> Resource:
        ...

    def delete(self, resource: Resource) -> None:
        """Delete the object; raise NotFoundError if absent."""
        ...

    def list(self, api_version: str, kind: str, namespace: Optional[str] = None) -> List[Resource]:
        """List objects of a kind; raise NotFoundError if the kind is not served."""
        ...


def kind_exists(client: ClusterClient, api_version: str, kind: str, namespace: Optional[str] = None) -> bool:
    """Check whether the cluster serves ``kind`` at ``api_version``."""
    try:
        client.list(api_version, kind, namespace)
    except NotFoundError:
        return False
    return True


def items_exist(client: ClusterClient, api_version: str, kind: str, namespace: Optional[str] = None) -> bool:
    """Check whether at least one object of ``kind`` exists."""
    return len(client.list(api_version, kind, namespace)) > 0


def load_kube_config(kubeconfig: Optional[str] = None):
    """Load cluster credentials and return an ``ApiClient``.

    Explicit kubeconfig first, then in-cluster service account, then the
    default kubeconfig location.
    """
    if not K8S_AVAILABLE:
        raise RuntimeError(
            "kubernetes package required for cluster access. "
            "Install with: pip install kubernetes"
        )
    if kubeconfig:
        k8s_config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            k8s_config.load_incluster_config()
        except k8s_config.ConfigException:
            k8s_config.load_kube_config()
    return k8s_client.ApiClient()


class KubernetesClient:
    """``ClusterClient`` backed by ``kubernetes.dynamic.DynamicClient``."""

    def __init__(self, api_client=None):
        if not K8S_AVAILABLE:
            raise RuntimeError(
                "kubernetes package required for KubernetesClient. "
                "Install with: pip install kubernetes"
            )
        self.dynamic = dynamic.DynamicClient(api_client or k8s_client.ApiClient())

    def _api(self, api_version: str, kind: str):
        try:
            return self.dynamic.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise NotFoundError(kind, f"(kind not served at {api_version})") from e

    def _namespace(self, api, resource: Resource) -> Optional[str]:
        if api.namespaced:
            return resource.namespace or "default"
        return None

    def _translate(self, resource: Resource, e: Exception) -> Exception:
        status = getattr(e, "status", None)
        if status == 404:
            return NotFoundError(resource.kind, resource.name, resource.namespace or None)
        if status == 409:
            return ConflictError(f"conflict writing {resource}: {e}")
        return OperatorError(f"{resource}: {e}")

    def get(self, resource: Resource) -> Resource:
        api = self._api(resource.api_version, resource.kind)
        try:
            result = api.get(name=resource.name, namespace=self._namespace(api, resource))
        except (DynamicApiError, ApiException) as e:
            raise self._translate(resource, e) from e
        return Resource(result.to_dict())

    def create(self, resource: Resource) -> Resource:
        api = self._api(resource.api_version, resource.kind)
        try:
            result = api.create(body=resource.to_dict(), namespace=self._namespace(api, resource))
        except (DynamicApiError, ApiException) as e:
            raise self._translate(resource, e) from e
        return Resource(result.to_dict())

    def update(self, resource: Resource) -> Resource:
        api = self._api(resource.api_version, resource.kind)
        try:
            result = api.replace(body=resource.to_dict(), namespace=self._namespace(api, resource))
        except (DynamicApiError, ApiException) as e:
            raise self._translate(resource, e) from e
        return Resource(result.to_dict())

    def delete(self, resource: Resource) -> None:
        api = self._api(resource.api_version, resource.kind)
        try:
            api.delete(
                name=resource.name,
                namespace=self._namespace(api, resource),
                body={"propagationPolicy": "Background"},
            )
        except (DynamicApiError, ApiException) as e:
            raise self._translate(resource, e) from e

    def list(self, api_version: str, kind: str, namespace: Optional[str] = None) -> List[Resource]:
        api = self._api(api_version, kind)
        probe = Resource.new(api_version, kind, "", namespace)
        try:
            if api.namespaced and namespace:
                result = api.get(namespace=namespace)
            else:
                result = api.get()
        except (DynamicApiError, ApiException) as e:
            raise self._translate(probe, e) from e
        return [Resource(item) for item in result.to_dict().get("items", [])]
