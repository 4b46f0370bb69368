"""Minikube platform: widen the sidecar's outbound IP range."""

from __future__ import annotations

import logging
from typing import Optional

from serving_operator.errors import NotFoundError
from serving_operator.extensions.registry import Extension
from serving_operator.manifest.client import ClusterClient
from serving_operator.manifest.resource import Resource
from serving_operator.transforms.configmap import update_config_map

logger = logging.getLogger(__name__)

MINIKUBE_NODE = "minikube"
OUTBOUND_IP_RANGES_KEY = "istio.sidecar.includeOutboundIPRanges"
MINIKUBE_OUTBOUND_IP_RANGES = "10.0.0.1/24"


def egress(resource: Resource) -> Resource:
    if resource.kind == "ConfigMap" and resource.name == "config-network":
        update_config_map(resource, {OUTBOUND_IP_RANGES_KEY: MINIKUBE_OUTBOUND_IP_RANGES})
    return resource


class MinikubePlatform:
    """Applies when the cluster has a node named ``minikube``."""

    name = "minikube"

    def detect(self, client: ClusterClient) -> Optional[Extension]:
        try:
            client.get(Resource.new("v1", "Node", MINIKUBE_NODE))
        except NotFoundError:
            return None
        return Extension(name=self.name, transformers=[egress])
