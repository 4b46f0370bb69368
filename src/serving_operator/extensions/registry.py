"""
Platform extension registry.

A platform (OpenShift, Minikube, ...) contributes an ``Extension`` bundle
when its detector recognises the cluster: extra transforms appended after
the built-ins, plus hooks that run immediately before and after the
manifest is applied.

The registry is an explicit object built once at startup and handed to the
Reconciler; nothing is registered at import time.

Example:
    registry = ExtensionRegistry([OpenShiftPlatform(), MinikubePlatform()])
    extensions = registry.detect(cluster)
    manifest = manifest.transform(*extensions.transformers(instance))
    extensions.pre_install(instance)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Protocol, runtime_checkable

from serving_operator.errors import DetectionError, HookError
from serving_operator.manifest.client import ClusterClient
from serving_operator.manifest.manifest import Transformer
from serving_operator.models import KnativeServing
from serving_operator.transforms import builtin_transforms

logger = logging.getLogger(__name__)

Hook = Callable[[KnativeServing], None]


@dataclass
class Extension:
    """Platform-specific transforms and install hooks."""
    name: str
    transformers: List[Transformer] = field(default_factory=list)
    pre_installs: List[Hook] = field(default_factory=list)
    post_installs: List[Hook] = field(default_factory=list)


@runtime_checkable
class PlatformExtension(Protocol):
    """Decides whether a platform applies to the cluster at hand."""

    name: str

    def detect(self, client: ClusterClient) -> Optional[Extension]:
        """Return the platform's Extension, or None if not applicable."""
        ...


class Extensions:
    """The extensions detected for one reconcile pass, in registration order."""

    def __init__(self, extensions: Iterable[Extension] = ()):
        self._extensions = list(extensions)

    def __iter__(self) -> Iterator[Extension]:
        return iter(self._extensions)

    def __len__(self) -> int:
        return len(self._extensions)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._extensions]

    def transformers(self, instance: KnativeServing) -> List[Transformer]:
        """Built-in transforms followed by every extension's transforms."""
        result = builtin_transforms(instance)
        for extension in self._extensions:
            result.extend(extension.transformers)
        return result

    def _run(self, phase: str, instance: KnativeServing) -> None:
        for extension in self._extensions:
            hooks = extension.pre_installs if phase == "pre-install" else extension.post_installs
            for hook in hooks:
                hook_name = f"{extension.name}.{getattr(hook, '__name__', repr(hook))}"
                logger.debug("Running %s hook %s", phase, hook_name)
                try:
                    hook(instance)
                except Exception as e:
                    raise HookError(phase, hook_name, e) from e

    def pre_install(self, instance: KnativeServing) -> None:
        self._run("pre-install", instance)

    def post_install(self, instance: KnativeServing) -> None:
        self._run("post-install", instance)


class ExtensionRegistry:
    """Ordered list of platform detectors."""

    def __init__(self, platforms: Iterable[PlatformExtension] = ()):
        self._platforms: List[PlatformExtension] = list(platforms)

    def register(self, platform: PlatformExtension) -> None:
        self._platforms.append(platform)

    @property
    def platforms(self) -> List[PlatformExtension]:
        return list(self._platforms)

    def detect(self, client: ClusterClient) -> Extensions:
        """Run every detector in registration order.

        Raises:
            DetectionError: If any detector fails; no extensions are returned.
        """
        detected = []
        for platform in self._platforms:
            try:
                extension = platform.detect(client)
            except DetectionError:
                raise
            except Exception as e:
                raise DetectionError(platform.name, e) from e
            if extension is None:
                logger.debug("Platform %s not detected", platform.name)
                continue
            logger.info("Platform %s detected", platform.name)
            detected.append(extension)
        return Extensions(detected)
