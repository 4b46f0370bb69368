"""
ConfigMap literal overrides.

``spec.config`` maps a suffix to key/value pairs; the ConfigMap named
``config-<suffix>`` gets each pair set on its ``data``. Keys not mentioned
keep their manifest values.
"""

from __future__ import annotations

import logging
from typing import Dict

from serving_operator.manifest.manifest import Transformer
from serving_operator.manifest.resource import Resource
from serving_operator.models import KnativeServing

logger = logging.getLogger(__name__)

CONFIG_PREFIX = "config-"


def update_config_map(resource: Resource, data: Dict[str, str]) -> None:
    """Set every entry of ``data`` on the ConfigMap, adding or replacing."""
    for key, value in data.items():
        logger.debug("Setting %s=%s in ConfigMap %s", key, value, resource.name)
        resource.data[key] = value


def config_map_transform(instance: KnativeServing) -> Transformer:
    config = instance.spec.config

    def transform(resource: Resource) -> Resource:
        if resource.kind != "ConfigMap" or not resource.name.startswith(CONFIG_PREFIX):
            return resource
        data = config.get(resource.name[len(CONFIG_PREFIX):])
        if data:
            update_config_map(resource, data)
        return resource
    return transform
