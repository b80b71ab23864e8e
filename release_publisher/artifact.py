"""Artifact references produced upstream and consumed by publishing stages."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

UPLOADABLE_TYPES = frozenset({"archive", "binary", "checksum", "signature", "package", "sbom"})
ARTIFACT_TYPES = UPLOADABLE_TYPES | {"metadata", "manifest", "source"}


@dataclass(frozen=True, slots=True)
class Artifact:
    name: str
    path: Path
    type: str = "archive"
    extra: Dict[str, object] = field(default_factory=dict)

    @property
    def uploadable(self) -> bool:
        return self.type in UPLOADABLE_TYPES

    def open(self):
        return self.path.open("rb")


class Artifacts:
    """Run-scoped artifact registry; safe to read from upload workers."""

    def __init__(self, items: Optional[Iterable[Artifact]] = None) -> None:
        self._lock = threading.Lock()
        self._items: List[Artifact] = list(items or [])

    def add(self, artifact: Artifact) -> None:
        with self._lock:
            self._items.append(artifact)

    def list(self) -> List[Artifact]:
        with self._lock:
            return list(self._items)

    def filter(self, predicate: Callable[[Artifact], bool]) -> List[Artifact]:
        return [item for item in self.list() if predicate(item)]

    def by_type(self, *types: str) -> List[Artifact]:
        wanted = set(types)
        return self.filter(lambda item: item.type in wanted)

    def by_ids(self, ids: Iterable[str]) -> List[Artifact]:
        wanted = set(ids)
        if not wanted:
            return self.list()
        return self.filter(lambda item: item.extra.get("id") in wanted)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
