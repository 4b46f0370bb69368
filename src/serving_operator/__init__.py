"""
Serving operator - declarative install of Knative Serving on Kubernetes.

A KnativeServing custom resource describes the desired install. The operator
loads the release manifest once at startup, rewrites it for each Instance
(namespace, owner, images, config, gateways, certificates, platform tweaks),
applies it in RBAC-first order, and reports progress through status
conditions. Deleting the last Instance tears the install down again.

Key Features:
- Manifest library: load, filter, transform, apply and delete resource bundles
- Transform pipeline driven by the Instance spec
- Platform extensions for OpenShift and Minikube
- Staged reconciler with generation tracking and a cleanup finalizer

Example usage:
    from serving_operator import Manifest, Reconciler

    manifest = Manifest.from_path("config/knative-serving", client)
    reconciler = Reconciler(manifest, instances, default_registry())
    reconciler.reconcile("knative-serving/knative-serving")
"""

__version__ = "0.1.0"
__all__ = [
    "Manifest",
    "Resource",
    "KnativeServing",
    "Reconciler",
    "ExtensionRegistry",
    "default_registry",
    "__version__",
]


# Lazy imports to avoid loading the kubernetes client at import time
def __getattr__(name: str):
    if name == "Manifest":
        from serving_operator.manifest import Manifest
        return Manifest
    if name == "Resource":
        from serving_operator.manifest import Resource
        return Resource
    if name == "KnativeServing":
        from serving_operator.models import KnativeServing
        return KnativeServing
    if name == "Reconciler":
        from serving_operator.reconciler import Reconciler
        return Reconciler
    if name == "ExtensionRegistry":
        from serving_operator.extensions import ExtensionRegistry
        return ExtensionRegistry
    if name == "default_registry":
        from serving_operator.extensions import default_registry
        return default_registry
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
