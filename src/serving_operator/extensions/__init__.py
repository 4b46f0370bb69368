"""
Platform extensions.

Public API::

    from serving_operator.extensions import (
        Extension,
        Extensions,
        ExtensionRegistry,
        PlatformExtension,
        MinikubePlatform,
        OpenShiftPlatform,
        default_registry,
    )
"""

from __future__ import annotations

from typing import Optional

from serving_operator.extensions.minikube import MinikubePlatform
from serving_operator.extensions.openshift import OpenShiftPlatform
from serving_operator.extensions.registry import (
    Extension,
    ExtensionRegistry,
    Extensions,
    Hook,
    PlatformExtension,
)


def default_registry(
    openshift_ingress_manifest: Optional[str] = None,
    maistra_operator_manifest: Optional[str] = None,
    maistra_control_plane_manifest: Optional[str] = None,
) -> ExtensionRegistry:
    """The platforms the operator knows about, in detection order."""
    return ExtensionRegistry([
        OpenShiftPlatform(
            ingress_manifest=openshift_ingress_manifest,
            maistra_operator_manifest=maistra_operator_manifest,
            maistra_control_plane_manifest=maistra_control_plane_manifest,
        ),
        MinikubePlatform(),
    ])


__all__ = [
    "Extension",
    "Extensions",
    "ExtensionRegistry",
    "Hook",
    "PlatformExtension",
    "MinikubePlatform",
    "OpenShiftPlatform",
    "default_registry",
]
