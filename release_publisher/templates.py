"""Template rendering for configuration strings.

Templates use ``str.format`` syntax. The ``!u`` conversion path-escapes a
value so it can be embedded in a URL segment::

    render("{download}/releases/download/{tag!u}/{artifact_name}", data)
"""

from __future__ import annotations

import string
from typing import Any, Mapping
from urllib.parse import quote

from .errors import TemplateError


class _Formatter(string.Formatter):
    def convert_field(self, value: Any, conversion: str | None) -> Any:
        if conversion == "u":
            return quote(str(value), safe="")
        return super().convert_field(value, conversion)


_FORMATTER = _Formatter()


def render(template: str, data: Mapping[str, Any], *, field: str | None = None) -> str:
    """Render ``template`` with ``data``; failures become ``TemplateError``."""

    try:
        return _FORMATTER.vformat(template, (), dict(data))
    except (KeyError, IndexError, ValueError, AttributeError) as exc:
        label = f" for {field}" if field else ""
        raise TemplateError(f"failed to render template{label} {template!r}: {exc!r}", field=field) from exc
