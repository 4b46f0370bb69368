"""
Image and registry rewriting.

For every container of a Deployment or DaemonSet, and for every caching
``Image`` resource, the replacement image is:

1. ``spec.registry.override[<container name>]`` if set, verbatim
2. otherwise ``spec.registry.default`` with ``${NAME}`` replaced by the
   container name
3. otherwise the image is left as declared

Configured ``imagePullSecrets`` are appended; existing ones are kept.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.resource import Resource
from serving_operator.models import KnativeServing, Registry

logger = logging.getLogger(__name__)

CONTAINER_NAME_VARIABLE = "${NAME}"
CACHING_API_VERSION = "caching.internal.knative.dev/v1alpha1"
WORKLOAD_KINDS = ("Deployment", "DaemonSet")


def replace_name(image_template: str, name: str) -> str:
    return image_template.replace(CONTAINER_NAME_VARIABLE, name)


def get_new_image(registry: Registry, container_name: str) -> str:
    """Return the image for ``container_name``, or "" to keep the current one."""
    override = registry.override.get(container_name, "")
    if override:
        return override
    return replace_name(registry.default, container_name)


def add_image_pull_secrets(
    secrets: List[Dict[str, Any]],
    registry: Registry,
) -> List[Dict[str, Any]]:
    """Append the registry's pull secrets to ``secrets``, skipping duplicates."""
    result = list(secrets or [])
    existing = {s.get("name") for s in result}
    for secret in registry.image_pull_secrets:
        if secret.name not in existing:
            logger.debug("Adding imagePullSecret %s", secret.name)
            result.append({"name": secret.name})
            existing.add(secret.name)
    return result


def _update_workload(resource: Resource, registry: Registry) -> None:
    for container in resource.containers:
        new_image = get_new_image(registry, container.get("name", ""))
        if new_image:
            logger.debug(
                "Updating container image from %s to %s", container.get("image"), new_image
            )
            container["image"] = new_image
    pod_spec = resource.pod_spec
    secrets = add_image_pull_secrets(pod_spec.get("imagePullSecrets", []), registry)
    if secrets:
        pod_spec["imagePullSecrets"] = secrets


def _update_caching_image(resource: Resource, registry: Registry) -> None:
    new_image = get_new_image(registry, resource.name)
    if new_image:
        logger.debug(
            "Updating image from %s to %s", resource.get("spec", "image"), new_image
        )
        resource.set(new_image, "spec", "image")
    secrets = add_image_pull_secrets(resource.get("spec", "imagePullSecrets", default=[]), registry)
    if secrets:
        resource.set(secrets, "spec", "imagePullSecrets")
    resource.obj.pop("status", None)


def image_transform(instance: KnativeServing) -> Transformer:
    registry = instance.spec.registry

    def transform(resource: Resource) -> Resource:
        if resource.kind in WORKLOAD_KINDS:
            logger.debug("Updating %s %s images", resource.kind, resource.name)
            _update_workload(resource, registry)
        elif resource.kind == "Image" and resource.api_version == CACHING_API_VERSION:
            _update_caching_image(resource, registry)
        return resource
    return transform
