"""
Group application of a set of Kubernetes resources.

A ``Manifest`` is an ordered list of Resources bound to a ``ClusterClient``.
It knows how to converge the cluster toward those resources (``apply_all``)
and how to tear them down again (``delete_all``), honouring the ordering the
RBAC system needs:

- apply: (Cluster)Roles, then (Cluster)RoleBindings, then everything else,
  so a binding never references a role that does not exist yet
- delete: reverse apply order, with RBAC kinds held back until the very end
  (bindings, then roles) so a human can still inspect a half-finished
  teardown

Example:
    manifest = Manifest.from_path("config/knative-serving", cluster)
    transformed = manifest.transform(inject_namespace("knative-serving"))
    transformed.apply_all()
"""

from __future__ import annotations

import copy
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from serving_operator.errors import ApplyError, NotFoundError, TransformError
from serving_operator.manifest.client import ClusterClient
from serving_operator.manifest.loader import load_manifest
from serving_operator.manifest.merge import update_changed
from serving_operator.manifest.predicates import (
    RBAC,
    ROLE,
    ROLE_BINDING,
    Predicate,
    all_of,
    none_of,
)
from serving_operator.manifest.resource import Resource

logger = logging.getLogger(__name__)

# Marks objects this operator created, as opposed to pre-existing ones it
# merely updated. Only marked objects are eligible for deletion.
CREATED_ANNOTATION = "manifestival"
CREATED_VALUE = "new"

DEFAULT_APPLY_PHASES: Sequence[Predicate] = (ROLE, ROLE_BINDING, none_of(RBAC))
DEFAULT_DELETE_PHASES: Sequence[Predicate] = (none_of(RBAC), ROLE_BINDING, ROLE)

Transformer = Callable[[Resource], Optional[Resource]]


def created_by_us(resource: Resource) -> bool:
    return resource.get("metadata", "annotations", CREATED_ANNOTATION) == CREATED_VALUE


class Manifest:
    """Ordered set of resources managed as a group against one cluster."""

    def __init__(self, resources: Iterable[Resource], client: Optional[ClusterClient] = None):
        self._resources: List[Resource] = list(resources)
        self.client = client

    @classmethod
    def from_path(
        cls,
        pathname: str,
        client: Optional[ClusterClient] = None,
        recursive: bool = False,
    ) -> "Manifest":
        return cls(load_manifest(pathname, recursive), client)

    @property
    def resources(self) -> List[Resource]:
        return list(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self):
        return iter(self._resources)

    def filter(self, *predicates: Predicate) -> "Manifest":
        """Return a manifest holding only resources matching every predicate."""
        match = all_of(*predicates)
        return Manifest([r for r in self._resources if match(r)], self.client)

    def transform(self, *transformers: Transformer) -> "Manifest":
        """Return a new manifest with every transformer applied, in order.

        Transformers receive a deep copy and may mutate it in place or return
        a replacement. The first failure aborts the whole transform and the
        source manifest is left untouched.
        """
        result = []
        for original in self._resources:
            resource = original.deep_copy()
            for fn in transformers:
                try:
                    replaced = fn(resource)
                except TransformError:
                    raise
                except Exception as e:
                    raise TransformError(str(e), resource.kind, resource.name) from e
                if replaced is not None:
                    resource = replaced
            result.append(resource)
        return Manifest(result, self.client)

    def _require_client(self) -> ClusterClient:
        if self.client is None:
            raise RuntimeError("Manifest has no cluster client bound")
        return self.client

    def get(self, resource: Resource) -> Optional[Resource]:
        """Return the live copy of ``resource``, or None if it does not exist."""
        try:
            return self._require_client().get(resource)
        except NotFoundError:
            return None

    def apply(self, resource: Resource) -> bool:
        """Create or update a single resource.

        Returns True if a write was issued. Unchanged desired state produces
        no write.
        """
        client = self._require_client()
        current = self.get(resource)
        if current is None:
            logger.info("Creating %s %s", resource.kind, _location(resource))
            desired = resource.deep_copy()
            desired.annotations[CREATED_ANNOTATION] = CREATED_VALUE
            client.create(desired)
            return True
        if update_changed(copy.deepcopy(resource.to_dict()), current.to_dict()):
            logger.info("Updating %s %s", resource.kind, _location(resource))
            client.update(current)
            return True
        logger.debug("Unchanged %s %s", resource.kind, _location(resource))
        return False

    def apply_all(self, phases: Sequence[Predicate] = DEFAULT_APPLY_PHASES) -> List[Resource]:
        """Apply every resource, phase by phase.

        Returns the resources applied, in order. On failure raises
        ``ApplyError`` carrying the resources applied before the failure.
        """
        applied: List[Resource] = []
        for phase in phases:
            for resource in self._resources:
                if not phase(resource):
                    continue
                try:
                    self.apply(resource)
                except Exception as e:
                    raise ApplyError(resource, e, applied) from e
                applied.append(resource)
        return applied

    def delete(self, resource: Resource) -> bool:
        """Delete a single resource.

        Absent resources and resources this operator did not create are
        skipped. A NotFound during the delete itself counts as success, since
        owner-reference garbage collection may have won the race.
        """
        current = self.get(resource)
        if current is None:
            return False
        if not created_by_us(current):
            logger.info(
                "Skipping %s %s: not created by this operator",
                resource.kind,
                _location(resource),
            )
            return False
        logger.info("Deleting %s %s", resource.kind, _location(resource))
        try:
            self._require_client().delete(resource)
        except NotFoundError:
            pass
        return True

    def delete_all(self, phases: Sequence[Predicate] = DEFAULT_DELETE_PHASES) -> List[Resource]:
        """Delete every resource in reverse order, phase by phase.

        Returns the resources actually deleted.
        """
        deleted: List[Resource] = []
        visited = set()
        reversed_resources = list(reversed(self._resources))
        for phase in phases:
            for resource in reversed_resources:
                if id(resource) in visited or not phase(resource):
                    continue
                visited.add(id(resource))
                if self.delete(resource):
                    deleted.append(resource)
        return deleted


def _location(resource: Resource) -> str:
    if resource.namespace:
        return f"{resource.namespace}/{resource.name}"
    return resource.name
