"""
Resource predicates for filtering a Manifest.

Example:
    from serving_operator.manifest.predicates import RBAC, by_kind, none_of

    deployments = manifest.filter(by_kind("Deployment"))
    the_rest = manifest.filter(no_crds, none_of(RBAC))
"""

from __future__ import annotations

from typing import Callable

from serving_operator.manifest.resource import Resource

Predicate = Callable[[Resource], bool]


def by_kind(kind: str) -> Predicate:
    def predicate(resource: Resource) -> bool:
        return resource.kind == kind
    return predicate


def by_name(name: str) -> Predicate:
    def predicate(resource: Resource) -> bool:
        return resource.name == name
    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    def predicate(resource: Resource) -> bool:
        return any(p(resource) for p in predicates)
    return predicate


def all_of(*predicates: Predicate) -> Predicate:
    def predicate(resource: Resource) -> bool:
        return all(p(resource) for p in predicates)
    return predicate


def none_of(*predicates: Predicate) -> Predicate:
    def predicate(resource: Resource) -> bool:
        return not any(p(resource) for p in predicates)
    return predicate


def no_crds(resource: Resource) -> bool:
    return resource.kind != "CustomResourceDefinition"


ROLE: Predicate = any_of(by_kind("ClusterRole"), by_kind("Role"))
ROLE_BINDING: Predicate = any_of(by_kind("ClusterRoleBinding"), by_kind("RoleBinding"))
RBAC: Predicate = any_of(ROLE, ROLE_BINDING)
