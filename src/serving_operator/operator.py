"""
kopf wiring for the KnativeServing reconciler.

Every handler funnels into ``Reconciler.reconcile(key)``; the Reconciler
refetches the Instance and decides between the stage fold and finalization.
kopf owns the work queue, per-object serialization, and retry with backoff.
The reconciler manages its own finalizer. The delete handler is registered
as optional, which alone would not make kopf add a finalizer.

A periodic timer re-runs the reconcile so Deployment availability is
picked up even though status-only changes raise no update event. kopf
guards timers with its own finalizer, so both finalizers sit on an Instance
and the delete handler still fires while the timer is stopped. The
reconciler removes only its own.

Run with:
    kopf run -m serving_operator.operator
"""

from __future__ import annotations

import logging
from typing import Optional

import kopf

from serving_operator.config import OperatorConfig, get_config
from serving_operator.errors import OperatorError, StaleGenerationError
from serving_operator.extensions import default_registry
from serving_operator.logger import configure_logging
from serving_operator.manifest import KubernetesClient, Manifest, load_kube_config
from serving_operator.reconciler import (
    KubernetesInstanceClient,
    Reconciler,
    ensure_default_instance,
)

logger = logging.getLogger(__name__)

_config = get_config()
GROUP = _config.crd_group
VERSION = _config.crd_version
PLURAL = _config.crd_plural

_reconciler: Optional[Reconciler] = None


def build_reconciler(config: OperatorConfig) -> Reconciler:
    """Wire the cluster clients, manifest, and platform registry together."""
    api_client = load_kube_config(config.kubeconfig)
    cluster = KubernetesClient(api_client)
    manifest = Manifest.from_path(config.manifest_path, cluster, recursive=config.recursive)
    instances = KubernetesInstanceClient(
        group=config.crd_group,
        version=config.crd_version,
        plural=config.crd_plural,
        api_client=api_client,
    )
    logger.info("Loaded %d resources from %s", len(manifest), config.manifest_path)
    return Reconciler(
        manifest,
        instances,
        default_registry(
            config.openshift_ingress_manifest,
            config.maistra_operator_manifest,
            config.maistra_control_plane_manifest,
        ),
        release_version=config.release_version,
        finalizer_name=config.finalizer_name,
    )


def get_reconciler() -> Reconciler:
    if _reconciler is None:
        raise RuntimeError("Reconciler not initialized; the startup handler has not run")
    return _reconciler


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **kwargs):
    global _reconciler
    configure_logging(_config.log_level, _config.log_format)
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=GROUP)
    _reconciler = build_reconciler(_config)
    if _config.create_default_instance:
        ensure_default_instance(
            _reconciler.instances,
            _config.operand_namespace,
            _config.operand_name,
            api_version=_config.api_version,
            kind=_config.crd_kind,
        )
    logger.info(
        "Serving operator started (version=%s, watching %s)",
        _config.release_version,
        _config.watch_namespace or "all namespaces",
    )


def reconcile_key(namespace: Optional[str], name: str) -> None:
    """Reconcile one Instance, translating errors into kopf retry semantics."""
    key = f"{namespace}/{name}" if namespace else name
    try:
        get_reconciler().reconcile(key)
    except StaleGenerationError as e:
        raise kopf.PermanentError(str(e)) from e
    except OperatorError as e:
        raise kopf.TemporaryError(str(e), delay=_config.resync_interval) from e


@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
@kopf.on.resume(GROUP, VERSION, PLURAL)
def reconcile_instance(name, namespace, **kwargs):
    reconcile_key(namespace, name)


@kopf.on.delete(GROUP, VERSION, PLURAL, optional=True)
def finalize_instance(name, namespace, **kwargs):
    reconcile_key(namespace, name)


@kopf.timer(GROUP, VERSION, PLURAL, interval=_config.resync_interval, idle=_config.resync_interval)
def resync_instance(name, namespace, **kwargs):
    reconcile_key(namespace, name)
