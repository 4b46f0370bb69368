"""
OpenShift platform.

Detected by the presence of the ``route.openshift.io/v1`` Route kind.
Contributes:

- ingress: the cluster ingress domain becomes the default route domain
  in ``config-domain``
- egress: the cluster service network CIDRs are routed around the sidecar
  via ``config-network``
- the controller trusts the OpenShift service CA bundle
- pre-install: install the Maistra operator and control plane when no
  service mesh is present and their manifests are configured
- pre-install: ensure the ``config-service-ca`` ConfigMap exists so the
  service CA operator injects the bundle into it
- post-install: apply the OpenShift ingress operator manifest, if one is
  configured
"""

from __future__ import annotations

import logging
from typing import Optional

from serving_operator.errors import NotFoundError
from serving_operator.extensions.registry import Extension
from serving_operator.manifest.client import ClusterClient, items_exist, kind_exists
from serving_operator.manifest.manifest import Manifest
from serving_operator.manifest.resource import Resource
from serving_operator.models import KnativeServing
from serving_operator.transforms.certs import CONTROLLER
from serving_operator.transforms.configmap import update_config_map
from serving_operator.transforms.core import inject_namespace, inject_owner

logger = logging.getLogger(__name__)

ROUTE_API_VERSION = "route.openshift.io/v1"
CONFIG_API_VERSION = "config.openshift.io/v1"
CA_BUNDLE_CONFIGMAP = "config-service-ca"
CA_BUNDLE_ANNOTATION = "service.alpha.openshift.io/inject-cabundle"
SERVICE_CA_VOLUME = "service-ca"
SERVICE_CA_MOUNT_PATH = "/var/run/secrets/kubernetes.io/servicecerts"
SERVICE_CA_CERT_FILE = SERVICE_CA_MOUNT_PATH + "/service-ca.crt"

MAISTRA_API_VERSION = "istio.openshift.com/v1alpha3"
ISTIO_API_VERSION = "networking.istio.io/v1alpha3"
MAISTRA_OPERATOR_NAMESPACE = "istio-operator"
MAISTRA_CONTROL_PLANE_NAMESPACE = "istio-system"


class OpenShiftPlatform:
    """Applies when the cluster serves OpenShift Routes."""

    name = "openshift"

    def __init__(
        self,
        ingress_manifest: Optional[str] = None,
        maistra_operator_manifest: Optional[str] = None,
        maistra_control_plane_manifest: Optional[str] = None,
    ):
        self.ingress_manifest = ingress_manifest
        self.maistra_operator_manifest = maistra_operator_manifest
        self.maistra_control_plane_manifest = maistra_control_plane_manifest

    def detect(self, client: ClusterClient) -> Optional[Extension]:
        if not kind_exists(client, ROUTE_API_VERSION, "Route"):
            return None
        hooks = _OpenShiftHooks(
            client,
            self.ingress_manifest,
            self.maistra_operator_manifest,
            self.maistra_control_plane_manifest,
        )
        return Extension(
            name=self.name,
            transformers=[hooks.ingress, hooks.egress, deployment_controller],
            pre_installs=[hooks.ensure_maistra, hooks.ca_bundle_config_map],
            post_installs=[hooks.ensure_openshift_ingress],
        )


def deployment_controller(resource: Resource) -> Resource:
    """Mount the service CA bundle into the controller, once."""
    if not CONTROLLER(resource):
        return resource
    pod_spec = resource.pod_spec
    volumes = pod_spec.setdefault("volumes", [])
    if any(v.get("name") == SERVICE_CA_VOLUME for v in volumes):
        return resource
    volumes.append({"name": SERVICE_CA_VOLUME, "configMap": {"name": CA_BUNDLE_CONFIGMAP}})
    containers = resource.containers
    if containers:
        containers[0].setdefault("volumeMounts", []).append(
            {"name": SERVICE_CA_VOLUME, "mountPath": SERVICE_CA_MOUNT_PATH}
        )
        containers[0].setdefault("env", []).append(
            {"name": "SSL_CERT_FILE", "value": SERVICE_CA_CERT_FILE}
        )
    return resource


class _OpenShiftHooks:
    """Transforms and hooks that need the live cluster."""

    def __init__(
        self,
        client: ClusterClient,
        ingress_manifest: Optional[str],
        maistra_operator_manifest: Optional[str] = None,
        maistra_control_plane_manifest: Optional[str] = None,
    ):
        self.client = client
        self.ingress_manifest = ingress_manifest
        self.maistra_operator_manifest = maistra_operator_manifest
        self.maistra_control_plane_manifest = maistra_control_plane_manifest

    def _cluster_config(self, kind: str) -> Optional[Resource]:
        try:
            return self.client.get(Resource.new(CONFIG_API_VERSION, kind, "cluster"))
        except NotFoundError:
            return None

    def ingress(self, resource: Resource) -> Resource:
        if resource.kind == "ConfigMap" and resource.name == "config-domain":
            config = self._cluster_config("Ingress")
            domain = config.get("spec", "domain", default="") if config else ""
            if domain:
                update_config_map(resource, {domain: ""})
        return resource

    def egress(self, resource: Resource) -> Resource:
        if resource.kind == "ConfigMap" and resource.name == "config-network":
            config = self._cluster_config("Network")
            networks = config.get("spec", "serviceNetwork", default=[]) if config else []
            if networks:
                update_config_map(
                    resource, {"istio.sidecar.includeOutboundIPRanges": ",".join(networks)}
                )
        return resource

    def ca_bundle_config_map(self, instance: KnativeServing) -> None:
        cm = Resource.new("v1", "ConfigMap", CA_BUNDLE_CONFIGMAP, instance.target_namespace)
        try:
            self.client.get(cm)
            return
        except NotFoundError:
            pass
        cm.annotations[CA_BUNDLE_ANNOTATION] = "true"
        if cm.namespace == instance.namespace:
            cm.owner_references = [instance.owner_reference()]
        logger.info("Creating ConfigMap %s/%s", cm.namespace, cm.name)
        self.client.create(cm)

    def ensure_openshift_ingress(self, instance: KnativeServing) -> None:
        if not self.ingress_manifest:
            logger.debug("No OpenShift ingress manifest configured")
            return
        logger.info("Ensuring OpenShift ingress operator is installed")
        transforms = [
            inject_owner(
                instance.owner_reference(),
                owner_namespace=instance.namespace,
                target_namespace=instance.target_namespace,
            ),
            inject_namespace(instance.target_namespace),
        ]
        Manifest.from_path(self.ingress_manifest, self.client).transform(*transforms).apply_all()

    def _install(self, pathname: str, namespace: str) -> None:
        manifest = Manifest.from_path(pathname, self.client)
        Manifest([Resource.new("v1", "Namespace", namespace)], self.client).apply_all()
        manifest.transform(inject_namespace(namespace)).apply_all()

    def _control_plane_exists(self) -> bool:
        try:
            return items_exist(
                self.client, MAISTRA_API_VERSION, "ControlPlane", MAISTRA_CONTROL_PLANE_NAMESPACE
            )
        except NotFoundError:
            # ControlPlane kind not served yet
            return False

    def ensure_maistra(self, instance: KnativeServing) -> None:
        """Install the Maistra service mesh unless Istio is already present."""
        if not (self.maistra_operator_manifest or self.maistra_control_plane_manifest):
            logger.debug("No Maistra manifests configured")
            return
        logger.info("Ensuring Istio is installed in OpenShift for %s", instance.key)
        if kind_exists(self.client, MAISTRA_API_VERSION, "ControlPlane"):
            logger.info("Maistra operator already installed")
        elif kind_exists(self.client, ISTIO_API_VERSION, "VirtualService"):
            logger.info("Maistra operator not present but Istio is installed, assuming it is set up")
            return
        elif self.maistra_operator_manifest:
            logger.info("Installing Maistra operator")
            self._install(self.maistra_operator_manifest, MAISTRA_OPERATOR_NAMESPACE)

        if not self.maistra_control_plane_manifest:
            return
        if self._control_plane_exists():
            logger.info("Maistra control plane already installed")
            return
        logger.info("Installing Maistra control plane")
        self._install(self.maistra_control_plane_manifest, MAISTRA_CONTROL_PLANE_NAMESPACE)
