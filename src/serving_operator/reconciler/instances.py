"""
Instance (KnativeServing) API access.

Reads and writes the custom resource through ``CustomObjectsApi``. Status
changes go through the status subresource; finalizer changes go through a
regular update. Both return the object as stored by the API server so the
caller continues with the fresh ``resourceVersion``.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, runtime_checkable

from serving_operator.errors import ConflictError, OperatorError
from serving_operator.models import KnativeServing

logger = logging.getLogger(__name__)

try:
    from kubernetes import client
    from kubernetes.client.exceptions import ApiException
    K8S_AVAILABLE = True
except ImportError:
    K8S_AVAILABLE = False
    logger.warning("kubernetes package not installed - KubernetesInstanceClient unavailable")


@runtime_checkable
class InstanceClient(Protocol):
    """CRUD for Instances, as the reconciler needs it."""

    def get(self, namespace: str, name: str) -> Optional[KnativeServing]:
        ...

    def list(self) -> List[KnativeServing]:
        ...

    def create(self, instance: KnativeServing) -> KnativeServing:
        ...

    def update(self, instance: KnativeServing) -> KnativeServing:
        ...

    def update_status(self, instance: KnativeServing) -> KnativeServing:
        ...


class KubernetesInstanceClient:
    """``InstanceClient`` backed by the Kubernetes custom objects API."""

    def __init__(
        self,
        group: str = "operator.knative.dev",
        version: str = "v1alpha1",
        plural: str = "knativeservings",
        api_client=None,
    ):
        if not K8S_AVAILABLE:
            raise RuntimeError(
                "kubernetes package required for KubernetesInstanceClient. "
                "Install with: pip install kubernetes"
            )
        self.group = group
        self.version = version
        self.plural = plural
        self.custom_api = client.CustomObjectsApi(api_client)

    def _raise(self, action: str, instance_key: str, e: "ApiException") -> None:
        logger.error("Failed to %s %s %s: %s", action, self.plural, instance_key, e)
        if e.status == 409:
            raise ConflictError(f"conflict on {action} of {instance_key}: {e.reason}") from e
        raise OperatorError(f"failed to {action} {instance_key}: {e.reason}") from e

    def get(self, namespace: str, name: str) -> Optional[KnativeServing]:
        try:
            raw = self.custom_api.get_namespaced_custom_object(
                group=self.group,
                version=self.version,
                namespace=namespace,
                plural=self.plural,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            self._raise("get", f"{namespace}/{name}", e)
        return KnativeServing.from_dict(raw)

    def list(self) -> List[KnativeServing]:
        try:
            raw = self.custom_api.list_cluster_custom_object(
                group=self.group,
                version=self.version,
                plural=self.plural,
            )
        except ApiException as e:
            self._raise("list", "*", e)
        return [KnativeServing.from_dict(item) for item in raw.get("items", [])]

    def create(self, instance: KnativeServing) -> KnativeServing:
        try:
            raw = self.custom_api.create_namespaced_custom_object(
                group=self.group,
                version=self.version,
                namespace=instance.namespace,
                plural=self.plural,
                body=instance.to_dict(),
            )
        except ApiException as e:
            self._raise("create", instance.key, e)
        return KnativeServing.from_dict(raw)

    def update(self, instance: KnativeServing) -> KnativeServing:
        try:
            raw = self.custom_api.replace_namespaced_custom_object(
                group=self.group,
                version=self.version,
                namespace=instance.namespace,
                plural=self.plural,
                name=instance.name,
                body=instance.to_dict(),
            )
        except ApiException as e:
            self._raise("update", instance.key, e)
        return KnativeServing.from_dict(raw)

    def update_status(self, instance: KnativeServing) -> KnativeServing:
        try:
            raw = self.custom_api.replace_namespaced_custom_object_status(
                group=self.group,
                version=self.version,
                namespace=instance.namespace,
                plural=self.plural,
                name=instance.name,
                body=instance.to_dict(),
            )
        except ApiException as e:
            self._raise("update status of", instance.key, e)
        return KnativeServing.from_dict(raw)
