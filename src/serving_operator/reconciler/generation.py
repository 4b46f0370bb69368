"""
Per-Instance generation tracking.

Remembers the last ``metadata.generation`` seen for each Instance key so a
reconcile can be classified as a creation, an edit, or a stale replay. The
classification feeds telemetry only; the one thing it enforces is refusing
to act on a generation older than one already reconciled.
"""

from __future__ import annotations

from typing import Dict, Optional

from serving_operator.errors import StaleGenerationError
from serving_operator.telemetry import CREATION_CHANGE, EDIT_CHANGE


class GenerationTracker:
    """Map of Instance key -> last seen generation."""

    def __init__(self) -> None:
        self._generations: Dict[str, int] = {}

    def get(self, key: str) -> Optional[int]:
        return self._generations.get(key)

    def observe(self, key: str, generation: int) -> Optional[str]:
        """Record ``generation`` for ``key`` and classify the change.

        Returns ``"creation"`` for a first sighting at generation 1,
        ``"edit"`` for a newer generation, and None otherwise (a repeat of
        the same generation, or a first sighting of an Instance that
        predates this process).

        Raises:
            StaleGenerationError: If ``generation`` is older than the last
                one recorded. The recorded value is left unchanged.
        """
        previous = self._generations.get(key)
        change = None
        if previous is not None:
            if generation < previous:
                raise StaleGenerationError(key, generation, previous)
            if generation > previous:
                change = EDIT_CHANGE
        elif generation == 1:
            change = CREATION_CHANGE
        self._generations[key] = generation
        return change

    def forget(self, key: str) -> None:
        self._generations.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._generations

    def __len__(self) -> int:
        return len(self._generations)
