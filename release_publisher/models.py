"""Value types shared by release clients and stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ReleaseNotesConflictError


@dataclass(frozen=True, slots=True)
class Repo:
    owner: str
    name: str
    branch: Optional[str] = None

    def __str__(self) -> str:
        if not self.owner:
            return self.name
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class CommitAuthor:
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class ChangelogItem:
    sha: str
    message: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_username: Optional[str] = None


class ReleaseNotesMode(str, Enum):
    """How freshly rendered notes combine with notes already on the release."""

    KEEP_EXISTING = "keep-existing"
    APPEND = "append"
    PREPEND = "prepend"
    REPLACE = "replace"
    ERROR_IF_EXISTS = "error-if-exists"


def merge_release_notes(existing: Optional[str], rendered: str, mode: ReleaseNotesMode | str) -> str:
    """Return the body a release should carry after an update."""

    mode = ReleaseNotesMode(mode)
    current = existing or ""
    if not current:
        return rendered
    if mode is ReleaseNotesMode.KEEP_EXISTING:
        return current
    if mode is ReleaseNotesMode.APPEND:
        return f"{current}\n\n{rendered}" if rendered else current
    if mode is ReleaseNotesMode.PREPEND:
        return f"{rendered}\n\n{current}" if rendered else current
    if mode is ReleaseNotesMode.ERROR_IF_EXISTS:
        raise ReleaseNotesConflictError("release already has notes and mode is 'error-if-exists'")
    return rendered


def first_line(message: str) -> str:
    return message.split("\n", 1)[0]
