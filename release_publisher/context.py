"""Run-scoped state shared by every stage of a publishing run."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from .artifact import Artifacts
from .config import Config

_PRERELEASE_RE = re.compile(r"^v?\d+(\.\d+)*-[0-9A-Za-z.-]+")


@dataclass(frozen=True, slots=True)
class GitInfo:
    current_tag: str
    commit: str = ""
    previous_tag: Optional[str] = None


@dataclass
class Context:
    config: Config
    git: GitInfo
    artifacts: Artifacts = field(default_factory=Artifacts)
    release_notes: str = ""
    token: Optional[str] = None
    fail_fast: bool = False
    skip_publish: bool = False
    skip_stages: frozenset[str] = frozenset()
    release_id: Optional[str] = None
    release_url: Optional[str] = None

    @property
    def version(self) -> str:
        tag = self.git.current_tag
        return tag[1:] if tag.startswith("v") else tag

    @property
    def prerelease(self) -> bool:
        configured = self.config.release.prerelease
        if configured == "auto":
            return bool(_PRERELEASE_RE.match(self.git.current_tag))
        return bool(configured)

    def template_data(self, **extra: object) -> Dict[str, object]:
        data: Dict[str, object] = {
            "project_name": self.config.project_name,
            "tag": self.git.current_tag,
            "version": self.version,
            "commit": self.git.commit,
            "previous_tag": self.git.previous_tag or "",
            "prerelease": self.prerelease,
        }
        data.update(extra)
        return data

    def skips(self, name: str) -> bool:
        return name in self.skip_stages
