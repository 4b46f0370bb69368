"""
Generic transforms: owner and namespace injection.

A transform is a callable taking a ``Resource`` and returning the (possibly
mutated) resource. Transforms are composed left to right by
``Manifest.transform``; the first exception aborts the whole pass.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.resource import Resource

logger = logging.getLogger(__name__)

_BINDING_KINDS = ("ClusterRoleBinding", "RoleBinding")
_WEBHOOK_KINDS = ("MutatingWebhookConfiguration", "ValidatingWebhookConfiguration")


def inject_owner(
    owner: Dict[str, Any],
    owner_namespace: Optional[str] = None,
    target_namespace: Optional[str] = None,
) -> Transformer:
    """Point every namespaced resource at ``owner`` so the API can reap it.

    Cluster-scoped resources cannot be owned by a namespaced object and are
    left alone. Owner references cannot cross namespaces either, so when
    ``owner_namespace`` is given a resource is owned only if it ends up there,
    judged by ``target_namespace`` when the resource is about to be moved.
    """
    def transform(resource: Resource) -> Resource:
        if resource.is_cluster_scoped:
            return resource
        namespace = target_namespace or resource.namespace
        if owner_namespace and namespace != owner_namespace:
            logger.debug(
                "Not owning %s %s/%s: owner lives in %s",
                resource.kind, namespace, resource.name, owner_namespace,
            )
            return resource
        resource.owner_references = [dict(owner)]
        return resource
    return transform


def inject_namespace(namespace: str) -> Transformer:
    """Place every namespaced resource, and namespace references held by
    cluster-scoped ones, into ``namespace``."""
    def transform(resource: Resource) -> Resource:
        if not namespace:
            return resource
        kind = resource.kind
        if not resource.is_cluster_scoped:
            resource.namespace = namespace
        if kind in _BINDING_KINDS:
            for subject in resource.get("subjects", default=[]) or []:
                if subject.get("kind") == "ServiceAccount":
                    subject["namespace"] = namespace
        elif kind in _WEBHOOK_KINDS:
            for webhook in resource.get("webhooks", default=[]) or []:
                service = webhook.get("clientConfig", {}).get("service")
                if service is not None:
                    service["namespace"] = namespace
        elif kind == "APIService":
            service = resource.get("spec", "service")
            if isinstance(service, dict):
                service["namespace"] = namespace
        return resource
    return transform
