"""
YAML manifest loader.

Reads the bundled release manifest into an ordered list of Resources. Paths
may be a single file, a directory, or a comma-separated mix of both; files
within a directory are read in sorted order so the resulting resource order
is stable across runs.

Usage::

    from serving_operator.manifest.loader import load_manifest

    resources = load_manifest("config/knative-serving", recursive=True)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

import yaml

from serving_operator.manifest.resource import Resource

logger = logging.getLogger(__name__)

MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")


def _manifest_files(path: Path, recursive: bool) -> Iterable[Path]:
    if path.is_file():
        yield path
        return
    pattern = "**/*" if recursive else "*"
    for child in sorted(path.glob(pattern)):
        if child.is_file() and child.suffix in MANIFEST_SUFFIXES:
            yield child


def parse_documents(text: str) -> List[Resource]:
    """Parse a (possibly multi-document) YAML string into Resources."""
    resources = []
    for doc in yaml.safe_load_all(text):
        if not doc:
            continue
        if not isinstance(doc, dict):
            raise ValueError(f"manifest document is not a mapping: {doc!r}")
        resources.append(Resource(doc))
    return resources


def load_manifest(pathname: str, recursive: bool = False) -> List[Resource]:
    """Load every resource found under ``pathname``.

    Raises:
        FileNotFoundError: If any listed path does not exist.
        yaml.YAMLError: If a file contains invalid YAML.
    """
    resources: List[Resource] = []
    for part in pathname.split(","):
        part = part.strip()
        if not part:
            continue
        path = Path(part).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Manifest path not found: {path}")
        for file in _manifest_files(path, recursive):
            with open(file) as fh:
                parsed = parse_documents(fh.read())
            logger.debug("Read %d resources from %s", len(parsed), file)
            resources.extend(parsed)
    logger.info("Loaded manifest %s: %d resources", pathname, len(resources))
    return resources
