"""
KnativeServing reconciler.

One reconcile pass is a left fold over a fixed, ordered tuple of stage
functions. Each stage takes the ``ReconcileState`` (the Instance, the
Manifest, and the extensions detected for this pass) and returns the state
for the next stage; the first exception aborts the fold. Nothing that was
already applied is rolled back, the next pass converges the rest.

Stages:
    ensure_finalizer          add the cleanup finalizer once
    init_status               initialize conditions and persist them
    transform                 detect platforms, run the transform pipeline
    install                   pre-install hooks, apply, post-install hooks
    check_deployments         first unavailable Deployment marks NotReady
    delete_obsolete_resources remove objects orphaned by older releases

An Instance carrying a deletionTimestamp is finalized instead: the manifest
is torn down only when no other live Instance remains, then the finalizer is
removed.

Usage:
    reconciler = Reconciler(manifest, instances, registry, release_version="0.1.0")
    reconciler.reconcile("knative-serving/knative-serving")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from serving_operator.errors import (
    ApplyError,
    NotFoundError,
    ObsoleteCleanupError,
    OperatorError,
)
from serving_operator.extensions.registry import ExtensionRegistry, Extensions
from serving_operator.logger import ReconcileLogger
from serving_operator.manifest import (
    RBAC,
    ROLE,
    ROLE_BINDING,
    Manifest,
    Resource,
    all_of,
    by_kind,
    no_crds,
    none_of,
)
from serving_operator.models import KnativeServing
from serving_operator.reconciler.generation import GenerationTracker
from serving_operator.reconciler.instances import InstanceClient
from serving_operator.telemetry import DELETION_CHANGE, ReconcileReporter
from serving_operator.transforms import inject_namespace

logger = logging.getLogger(__name__)

DEFAULT_FINALIZER = "delete-knative-serving-manifest"

DEPLOYMENT = by_kind("Deployment")

# Deployments first, bindings then roles last. CRDs are never removed.
FINALIZE_PHASES = (
    DEPLOYMENT,
    all_of(no_crds, none_of(RBAC, DEPLOYMENT)),
    ROLE_BINDING,
    ROLE,
)


def obsolete_resources(instance: KnativeServing) -> List[Resource]:
    """Objects created by earlier releases that no longer ship in the manifest."""
    return [
        Resource.new("v1", "Service", "knative-ingressgateway", "istio-system"),
        Resource.new("apps/v1", "Deployment", "knative-ingressgateway", "istio-system"),
        Resource.new(
            "autoscaling/v1", "HorizontalPodAutoscaler", "knative-ingressgateway", "istio-system"
        ),
        Resource.new("v1", "ConfigMap", "config-controller", instance.target_namespace),
    ]


@dataclass
class ReconcileState:
    """Value threaded through the stages of one reconcile pass."""
    instance: KnativeServing
    manifest: Manifest
    extensions: Extensions = field(default_factory=Extensions)
    persisted_status: Optional[dict] = None


Stage = Callable[["Reconciler", ReconcileState], ReconcileState]


def ensure_finalizer(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    instance = state.instance
    if reconciler.finalizer_name in instance.metadata.finalizers:
        return state
    logger.info("Adding finalizer %s to %s", reconciler.finalizer_name, instance.key)
    instance.metadata.finalizers.append(reconciler.finalizer_name)
    return replace(state, instance=reconciler.instances.update(instance))


def init_status(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    instance = state.instance
    if instance.status.conditions:
        return state
    instance.status.initialize_conditions()
    return replace(state, instance=reconciler.instances.update_status(instance))


def transform(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    instance = state.instance
    try:
        extensions = reconciler.registry.detect(state.manifest.client)
        manifest = state.manifest.transform(*extensions.transformers(instance))
    except OperatorError as e:
        instance.status.mark_install_failed(str(e))
        raise
    logger.debug(
        "Transformed %d resources for %s (extensions: %s)",
        len(manifest),
        instance.key,
        ", ".join(extensions.names) or "none",
    )
    return replace(state, manifest=manifest, extensions=extensions)


def install(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    instance = state.instance
    status = instance.status
    if status.is_deploying():
        logger.debug("Install of %s still deploying, skipping apply", instance.key)
        return state
    try:
        state.extensions.pre_install(instance)
        applied = state.manifest.apply_all()
        state.extensions.post_install(instance)
    except ApplyError as e:
        status.resources = [r.ref() for r in e.applied]
        status.mark_install_failed(str(e))
        raise
    except OperatorError as e:
        status.mark_install_failed(str(e))
        raise
    status.resources = [r.ref() for r in applied]
    status.version = reconciler.release_version
    status.mark_install_succeeded()
    logger.info("Installed %d resources for %s", len(applied), instance.key)
    return state


def check_deployments(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    status = state.instance.status
    for deployment in state.manifest.filter(DEPLOYMENT):
        try:
            live = state.manifest.get(deployment)
        except OperatorError:
            status.mark_deployments_not_ready()
            raise
        if live is None or not is_deployment_available(live):
            logger.info("Deployment %s/%s not yet available", deployment.namespace, deployment.name)
            status.mark_deployments_not_ready()
            return state
    status.mark_deployments_available()
    return state


def delete_obsolete_resources(reconciler: "Reconciler", state: ReconcileState) -> ReconcileState:
    client = state.manifest.client
    for resource in obsolete_resources(state.instance):
        try:
            client.delete(resource)
        except NotFoundError:
            continue
        except Exception as e:
            raise ObsoleteCleanupError(resource, e) from e
        logger.info("Deleted obsolete %s %s/%s", resource.kind, resource.namespace, resource.name)
    return state


STAGES: Tuple[Tuple[str, Stage], ...] = (
    ("ensure_finalizer", ensure_finalizer),
    ("init_status", init_status),
    ("transform", transform),
    ("install", install),
    ("check_deployments", check_deployments),
    ("delete_obsolete_resources", delete_obsolete_resources),
)


def is_deployment_available(deployment: Resource) -> bool:
    for condition in deployment.get("status", "conditions", default=None) or []:
        if condition.get("type") == "Available" and condition.get("status") == "True":
            return True
    return False


def _status_snapshot(instance: KnativeServing) -> dict:
    return instance.status.model_dump(by_alias=True, mode="json")


def split_key(key: str) -> Tuple[str, str]:
    namespace, _, name = key.rpartition("/")
    return namespace, name


class Reconciler:
    """Converges the cluster onto the manifest for each KnativeServing Instance."""

    def __init__(
        self,
        manifest: Manifest,
        instances: InstanceClient,
        registry: Optional[ExtensionRegistry] = None,
        release_version: str = "",
        finalizer_name: str = DEFAULT_FINALIZER,
        reporter: Optional[ReconcileReporter] = None,
        events: Optional[ReconcileLogger] = None,
        stages: Tuple[Tuple[str, Stage], ...] = STAGES,
    ):
        self.manifest = manifest
        self.instances = instances
        self.registry = registry or ExtensionRegistry()
        self.release_version = release_version
        self.finalizer_name = finalizer_name
        self.reporter = reporter or ReconcileReporter()
        self.events = events or ReconcileLogger()
        self.stages = stages
        self.generations = GenerationTracker()

    def reconcile(self, key: str) -> Optional[KnativeServing]:
        """Reconcile the Instance named by ``key`` (``namespace/name``).

        Returns the Instance as last persisted, or None if it no longer
        exists. Errors propagate to the caller, which owns retry.
        """
        namespace, name = split_key(key)
        instance = self.instances.get(namespace, name)
        if instance is None:
            logger.info("Instance %s no longer exists", key)
            self.generations.forget(key)
            return None
        if instance.being_deleted:
            return self.finalize(instance)

        self.track_generation(instance)

        start = time.monotonic()
        success = False
        self.events.reconcile_started(key, instance.metadata.generation)
        try:
            state = self.run_stages(ReconcileState(instance, self.manifest))
            success = True
        finally:
            self.reporter.report_reconcile(namespace, name, time.monotonic() - start, success)
        instance = self._persist_status(state.instance, state.persisted_status, raise_errors=True)
        self.events.reconcile_completed(
            key, instance.status.is_ready(), (time.monotonic() - start) * 1000.0
        )
        return instance

    def track_generation(self, instance: KnativeServing) -> None:
        key = instance.key
        previous = self.generations.get(key)
        generation = instance.metadata.generation
        change = self.generations.observe(key, generation)
        if change is not None:
            self.reporter.report_change(key, change)
            self.events.generation_changed(key, change, generation, previous)

    def run_stages(self, state: ReconcileState) -> ReconcileState:
        """Fold ``state`` through every stage, stopping at the first error.

        The status is persisted before the error propagates so a failure
        condition recorded by the failing stage reaches the API. The
        returned state carries the status as last written by a stage.
        """
        persisted = _status_snapshot(state.instance)
        for name, stage in self.stages:
            before = state.instance
            try:
                state = stage(self, state)
            except Exception as e:
                self.events.reconcile_failed(state.instance.key, name, e)
                self._persist_status(state.instance, persisted)
                raise
            # A replaced Instance came back from the API.
            if state.instance is not before:
                persisted = _status_snapshot(state.instance)
        state.instance.status.observed_generation = state.instance.metadata.generation
        return replace(state, persisted_status=persisted)

    def _persist_status(
        self, instance: KnativeServing, persisted: Optional[dict], raise_errors: bool = False
    ) -> KnativeServing:
        if _status_snapshot(instance) == persisted:
            return instance
        try:
            return self.instances.update_status(instance)
        except OperatorError as e:
            logger.warning("Failed to update status of %s: %s", instance.key, e)
            if raise_errors:
                raise
            return instance

    def finalize(self, instance: KnativeServing) -> Optional[KnativeServing]:
        """Tear down the install for a deleted Instance and release it."""
        key = instance.key
        self.generations.forget(key)
        self.reporter.report_change(key, DELETION_CHANGE)
        if self.finalizer_name not in instance.metadata.finalizers:
            return instance

        others = [
            other for other in self.instances.list()
            if other.key != key and not other.being_deleted
        ]
        deleted: List[Resource] = []
        if others:
            logger.info(
                "Instance %s deleted but %d other instance(s) remain, keeping resources",
                key,
                len(others),
            )
        else:
            logger.info("Deleting resources for %s", key)
            manifest = self.manifest.transform(inject_namespace(instance.target_namespace))
            deleted = manifest.delete_all(FINALIZE_PHASES)
        self.events.instance_finalized(key, len(deleted), skipped=bool(others))

        # Re-read so the update carries the latest resourceVersion.
        namespace, name = split_key(key)
        current = self.instances.get(namespace, name)
        if current is None:
            return None
        if self.finalizer_name in current.metadata.finalizers:
            current.metadata.finalizers.remove(self.finalizer_name)
            logger.info("Removing finalizer %s from %s", self.finalizer_name, key)
            current = self.instances.update(current)
        return current


def ensure_default_instance(
    instances: InstanceClient,
    namespace: str,
    name: str,
    api_version: Optional[str] = None,
    kind: Optional[str] = None,
) -> KnativeServing:
    """Create an Instance with an empty spec unless one already exists."""
    existing = instances.get(namespace, name)
    if existing is not None:
        return existing
    raw = {"metadata": {"name": name, "namespace": namespace}}
    if api_version:
        raw["apiVersion"] = api_version
    if kind:
        raw["kind"] = kind
    logger.info("Creating default instance %s/%s", namespace, name)
    return instances.create(KnativeServing.from_dict(raw))
