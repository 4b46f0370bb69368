"""
Per-container resource requirements override.

Each Deployment container whose name appears in ``spec.resources`` has its
``resources`` block replaced by the configured requirements. Containers with
no entry keep whatever the manifest declared.
"""

from __future__ import annotations

import copy
import logging

from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.resource import Resource
from serving_operator.models import KnativeServing

logger = logging.getLogger(__name__)


def resource_requirements_transform(instance: KnativeServing) -> Transformer:
    overrides = instance.spec.resources

    def transform(resource: Resource) -> Resource:
        if resource.kind != "Deployment" or not overrides:
            return resource
        for container in resource.containers:
            name = container.get("name", "")
            if name in overrides:
                logger.debug("Overriding resources of %s/%s", resource.name, name)
                container["resources"] = copy.deepcopy(overrides[name])
        return resource
    return transform
