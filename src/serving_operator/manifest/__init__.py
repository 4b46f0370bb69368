"""
Manifest handling: the Resource envelope, YAML loading, merge semantics,
predicates and the cluster-facing Manifest itself.

Public API::

    from serving_operator.manifest import (
        Resource,
        Manifest,
        ClusterClient,
        KubernetesClient,
        load_manifest,
        update_changed,
    )
"""

from serving_operator.manifest.client import (
    ClusterClient,
    KubernetesClient,
    items_exist,
    kind_exists,
    load_kube_config,
)
from serving_operator.manifest.loader import load_manifest, parse_documents
from serving_operator.manifest.manifest import (
    CREATED_ANNOTATION,
    CREATED_VALUE,
    DEFAULT_APPLY_PHASES,
    DEFAULT_DELETE_PHASES,
    Manifest,
    Transformer,
    created_by_us,
)
from serving_operator.manifest.merge import update_changed
from serving_operator.manifest.predicates import (
    RBAC,
    ROLE,
    ROLE_BINDING,
    Predicate,
    all_of,
    any_of,
    by_kind,
    by_name,
    no_crds,
    none_of,
)
from serving_operator.manifest.resource import CLUSTER_SCOPED_KINDS, Resource

__all__ = [
    # Resource
    "Resource",
    "CLUSTER_SCOPED_KINDS",
    # Loading
    "load_manifest",
    "parse_documents",
    # Merge
    "update_changed",
    # Predicates
    "Predicate",
    "by_kind",
    "by_name",
    "any_of",
    "all_of",
    "none_of",
    "no_crds",
    "ROLE",
    "ROLE_BINDING",
    "RBAC",
    # Client
    "ClusterClient",
    "KubernetesClient",
    "kind_exists",
    "items_exist",
    "load_kube_config",
    # Manifest
    "Manifest",
    "Transformer",
    "created_by_us",
    "CREATED_ANNOTATION",
    "CREATED_VALUE",
    "DEFAULT_APPLY_PHASES",
    "DEFAULT_DELETE_PHASES",
]
