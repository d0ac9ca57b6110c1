"""Field kind lookup from external configuration.

Kinds only describe how a client renders a field. Values stay opaque strings.
"""

from __future__ import annotations

from typing import Literal, cast

from ipr_review.config import Settings, get_settings

FieldKind = Literal["enum", "short_text", "long_text"]
_KNOWN_KINDS = frozenset({"enum", "short_text", "long_text"})


def resolve_field_kind(field_name: str, settings: Settings | None = None) -> FieldKind:
    """Return the configured kind for a field, falling back to the default kind."""

    settings = settings or get_settings()
    kind = settings.field_kinds.get(field_name, settings.default_field_kind)
    if kind not in _KNOWN_KINDS:
        return "short_text"
    return cast(FieldKind, kind)
