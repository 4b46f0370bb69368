"""
Reconciliation of KnativeServing Instances.

Public API:
    Reconciler: Staged convergence loop, one pass per Instance key
    ReconcileState: Value threaded through the stages
    STAGES: The ordered stage functions
    GenerationTracker: Creation/edit classification and stale replay rejection
    InstanceClient / KubernetesInstanceClient: Instance API access
    ensure_default_instance: Create the operand Instance at startup
"""

from serving_operator.reconciler.generation import GenerationTracker
from serving_operator.reconciler.instances import InstanceClient, KubernetesInstanceClient
from serving_operator.reconciler.reconciler import (
    DEFAULT_FINALIZER,
    FINALIZE_PHASES,
    STAGES,
    ReconcileState,
    Reconciler,
    check_deployments,
    delete_obsolete_resources,
    ensure_default_instance,
    ensure_finalizer,
    init_status,
    install,
    is_deployment_available,
    obsolete_resources,
    split_key,
    transform,
)

__all__ = [
    # Reconciler
    "Reconciler",
    "ReconcileState",
    "STAGES",
    "DEFAULT_FINALIZER",
    "FINALIZE_PHASES",
    "split_key",
    "ensure_default_instance",
    # Stages
    "ensure_finalizer",
    "init_status",
    "transform",
    "install",
    "check_deployments",
    "delete_obsolete_resources",
    "is_deployment_available",
    "obsolete_resources",
    # Generations
    "GenerationTracker",
    # Instances
    "InstanceClient",
    "KubernetesInstanceClient",
]
