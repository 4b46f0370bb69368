"""
Custom CA certificates for the controller.

When ``spec.controllerCustomCerts`` names a ConfigMap or Secret, the
``controller`` Deployment gets a volume for it, a mount at
``/custom-certs`` on its first container and ``SSL_CERT_DIR`` pointing at
the mount.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from serving_operator.errors import TransformError
from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.predicates import all_of, by_kind, by_name
from serving_operator.manifest.resource import Resource
from serving_operator.models import CustomCerts, KnativeServing

logger = logging.getLogger(__name__)

CUSTOM_CERTS_ENV_NAME = "SSL_CERT_DIR"
CUSTOM_CERTS_MOUNT_PATH = "/custom-certs"
CUSTOM_CERTS_NAME_PREFIX = "custom-certs-"
CONTROLLER_DEPLOYMENT = "controller"

CONTROLLER = all_of(by_kind("Deployment"), by_name(CONTROLLER_DEPLOYMENT))


def _volume_source(certs: CustomCerts) -> Dict[str, Any]:
    if certs.type == "ConfigMap":
        return {"configMap": {"name": certs.name}}
    if certs.type == "Secret":
        return {"secret": {"secretName": certs.name}}
    raise TransformError(f"Unknown CustomCerts type: {certs.type}")


def configure_custom_certs(resource: Resource, certs: CustomCerts) -> None:
    source = _volume_source(certs)
    if not certs.name:
        raise TransformError(f"CustomCerts name for {certs.type} is required")
    containers = resource.containers
    if not containers:
        raise TransformError("no containers to mount custom certs into", resource.kind, resource.name)

    name = CUSTOM_CERTS_NAME_PREFIX + certs.name
    pod_spec = resource.pod_spec
    pod_spec.setdefault("volumes", []).append({"name": name, **source})
    container = containers[0]
    container.setdefault("volumeMounts", []).append(
        {"name": name, "mountPath": CUSTOM_CERTS_MOUNT_PATH}
    )
    container.setdefault("env", []).append(
        {"name": CUSTOM_CERTS_ENV_NAME, "value": CUSTOM_CERTS_MOUNT_PATH}
    )
    logger.debug("Mounted custom certs %s into %s", name, resource.name)


def custom_certs_transform(instance: KnativeServing) -> Transformer:
    certs = instance.spec.controller_custom_certs

    def transform(resource: Resource) -> Resource:
        if certs.is_empty():
            return resource
        if CONTROLLER(resource):
            configure_custom_certs(resource, certs)
        return resource
    return transform
