"""Release notes built from the provider's commit comparison."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

from ..models import ChangelogItem
from ..templates import render

if TYPE_CHECKING:
    from ..client import ReleaseClient
    from ..context import Context


def format_changelog(items: Iterable[ChangelogItem]) -> str:
    lines: List[str] = ["## Changelog", ""]
    for item in items:
        line = f"* {item.sha[:7]} {item.message}"
        if item.author_username:
            line += f" (@{item.author_username})"
        elif item.author_name:
            line += f" ({item.author_name})"
        lines.append(line)
    return "\n".join(lines)


def build_release_notes(ctx: "Context", client: "ReleaseClient") -> str:
    """Header, changelog body and footer joined by blank lines.

    When the context carries no notes and a previous tag is known, the body is
    generated from the provider's comparison between the two revisions.
    """

    release = ctx.config.release
    data = ctx.template_data()
    body = ctx.release_notes
    if not body and ctx.git.previous_tag:
        items = client.changelog(
            release.repo.to_repo(),
            ctx.git.previous_tag,
            ctx.git.commit or ctx.git.current_tag,
        )
        body = format_changelog(items)

    parts = []
    if release.header:
        parts.append(render(release.header, data, field="release.header"))
    if body:
        parts.append(body)
    if release.footer:
        parts.append(render(release.footer, data, field="release.footer"))
    return "\n\n".join(parts)
