"""
Exception taxonomy for the serving operator.

Every error raised by the reconciliation core derives from ``OperatorError``
so the event-driven caller (kopf, or a test) can decide on retry policy
without knowing the individual failure modes.

- NotFoundError: the API reported 404; callers treat it as "absent"
- ConflictError: optimistic-concurrency conflict (409), surfaced as-is
- TransformError: a transform refused a resource; nothing is applied
- ApplyError: creating/updating a resource failed mid-install
- HookError: a platform pre/post-install hook failed
- StaleGenerationError: a replay of an older Instance generation
- ObsoleteCleanupError: deleting a legacy resource failed
- DetectionError: a platform detector failed
"""

from __future__ import annotations

from typing import Optional


class OperatorError(Exception):
    """Base class for all operator errors."""


class NotFoundError(OperatorError):
    """The requested object does not exist on the cluster."""

    def __init__(self, kind: str, name: str, namespace: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} not found")


class ConflictError(OperatorError):
    """The API rejected a write because the object changed underneath us."""


class TransformError(OperatorError):
    """A transform could not be applied to a resource."""

    def __init__(self, message: str, kind: str = "", name: str = ""):
        self.kind = kind
        self.name = name
        if kind or name:
            message = f"{kind}/{name}: {message}"
        super().__init__(message)


class ApplyError(OperatorError):
    """Creating or updating a manifest resource failed."""

    def __init__(self, resource, cause: Exception, applied=None):
        self.resource = resource
        self.cause = cause
        self.applied = list(applied or [])
        super().__init__(f"failed to apply {resource}: {cause}")


class HookError(OperatorError):
    """A platform pre-install or post-install hook failed."""

    def __init__(self, phase: str, hook: str, cause: Exception):
        self.phase = phase
        self.hook = hook
        self.cause = cause
        super().__init__(f"{phase} hook {hook} failed: {cause}")


class StaleGenerationError(OperatorError):
    """An older generation of an Instance was observed after a newer one."""

    def __init__(self, key: str, new_generation: int, old_generation: int):
        self.key = key
        self.new_generation = new_generation
        self.old_generation = old_generation
        super().__init__(
            f"reconciling obsolete generation of {key}: "
            f"newGen = {new_generation} and oldGen = {old_generation}"
        )


class ObsoleteCleanupError(OperatorError):
    """Removing a resource left behind by an earlier release failed."""

    def __init__(self, resource, cause: Exception):
        self.resource = resource
        self.cause = cause
        super().__init__(f"failed to delete obsolete {resource}: {cause}")


class DetectionError(OperatorError):
    """A platform detector could not decide whether it applies."""

    def __init__(self, platform: str, cause: Exception):
        self.platform = platform
        self.cause = cause
        super().__init__(f"platform detection for {platform} failed: {cause}")
