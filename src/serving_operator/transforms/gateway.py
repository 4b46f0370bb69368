"""
Istio gateway overrides.

The two gateways shipped with the release can have their ``spec.selector``
and/or ``spec.servers`` replaced wholesale from the Instance spec. Gateways
with any other name pass through untouched.
"""

from __future__ import annotations

import copy
import logging

from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.resource import Resource
from serving_operator.models import IstioGatewayOverride, KnativeServing

logger = logging.getLogger(__name__)

GATEWAY_API_VERSION = "networking.istio.io/v1alpha3"
KNATIVE_INGRESS_GATEWAY = "knative-ingress-gateway"
CLUSTER_LOCAL_GATEWAY = "cluster-local-gateway"


def update_gateway(override: IstioGatewayOverride, resource: Resource) -> None:
    if override.selector:
        logger.debug("Updating selector of gateway %s", resource.name)
        resource.set(dict(override.selector), "spec", "selector")
    if override.servers:
        logger.debug("Updating servers of gateway %s", resource.name)
        resource.set(copy.deepcopy(override.servers), "spec", "servers")


def gateway_transform(instance: KnativeServing) -> Transformer:
    overrides = {
        KNATIVE_INGRESS_GATEWAY: instance.spec.knative_ingress_gateway,
        CLUSTER_LOCAL_GATEWAY: instance.spec.cluster_local_gateway,
    }

    def transform(resource: Resource) -> Resource:
        if resource.kind == "Gateway" and resource.api_version == GATEWAY_API_VERSION:
            override = overrides.get(resource.name)
            if override is not None:
                update_gateway(override, resource)
        return resource
    return transform
