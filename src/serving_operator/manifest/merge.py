"""
Recursive merge of desired state into live state.

The live object carries fields we must not clobber (``metadata.resourceVersion``,
``spec.clusterIP``, server-side defaults, labels added by other controllers),
so only keys present in the desired object are written. ``data`` maps are the
exception: they are replaced wholesale so that removing a key from the
Instance's config overrides removes it from the live ConfigMap too.
"""

from __future__ import annotations

from typing import Any, Dict

# Fields replaced wholesale rather than merged key by key.
REPLACED_FIELDS = frozenset({"data"})


def update_changed(src: Dict[str, Any], tgt: Dict[str, Any]) -> bool:
    """Merge ``src`` into ``tgt`` in place.

    Returns True if ``tgt`` was modified. Keys of ``tgt`` absent from ``src``
    are preserved.
    """
    changed = False
    for key, value in src.items():
        if key in REPLACED_FIELDS:
            if value != tgt.get(key):
                tgt[key] = value
                changed = True
            continue
        if isinstance(value, dict):
            current = tgt.get(key)
            if not isinstance(current, dict):
                tgt[key] = value
                changed = True
            elif update_changed(value, current):
                changed = True
            continue
        if key not in tgt or value != tgt[key]:
            tgt[key] = value
            changed = True
    return changed
