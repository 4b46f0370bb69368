"""
Transform pipeline.

``builtin_transforms`` returns the built-in transforms for an Instance in the
order they must run:

1. owner reference injection
2. target namespace injection
3. image / registry rewrite
4. per-container resource requirements
5. Istio gateway overrides
6. ConfigMap literal overrides
7. controller custom certificates

Platform extensions append their own transforms after these.
"""

from __future__ import annotations

from typing import List

from serving_operator.manifest.manifest import Transformer
from serving_operator.models import KnativeServing
from serving_operator.transforms.certs import configure_custom_certs, custom_certs_transform
from serving_operator.transforms.configmap import config_map_transform, update_config_map
from serving_operator.transforms.core import inject_namespace, inject_owner
from serving_operator.transforms.gateway import gateway_transform
from serving_operator.transforms.images import get_new_image, image_transform, replace_name
from serving_operator.transforms.resources import resource_requirements_transform


def builtin_transforms(instance: KnativeServing) -> List[Transformer]:
    return [
        inject_owner(
            instance.owner_reference(),
            owner_namespace=instance.namespace,
            target_namespace=instance.target_namespace,
        ),
        inject_namespace(instance.target_namespace),
        image_transform(instance),
        resource_requirements_transform(instance),
        gateway_transform(instance),
        config_map_transform(instance),
        custom_certs_transform(instance),
    ]


__all__ = [
    "builtin_transforms",
    "inject_owner",
    "inject_namespace",
    "image_transform",
    "get_new_image",
    "replace_name",
    "resource_requirements_transform",
    "gateway_transform",
    "config_map_transform",
    "update_config_map",
    "custom_certs_transform",
    "configure_custom_certs",
]
