"""Server/client component classification from the leading module directive."""

from __future__ import annotations

from typing import Optional

from .logging import get_logger
from .models import ComponentKind
from .syntax import SourceFile

CLIENT_DIRECTIVE = "use client"
SERVER_DIRECTIVE = "use server"

_LOGGER = get_logger("classify")


def classify(file_name: str, source_text: str) -> ComponentKind:
    """Return ``CLIENT`` iff the first statement is the ``'use client'`` directive.

    Never raises; anything unparseable is treated as server code.
    """
    if not isinstance(source_text, str):
        return ComponentKind.SERVER
    try:
        source = SourceFile(file_name or "", source_text)
    except (TypeError, ValueError) as exc:
        _LOGGER.debug("Could not parse %s for classification: %s", file_name, exc)
        return ComponentKind.SERVER
    return classify_source(source)


def classify_source(source: SourceFile) -> ComponentKind:
    directive: Optional[str] = source.leading_directive()
    if directive == CLIENT_DIRECTIVE:
        return ComponentKind.CLIENT
    return ComponentKind.SERVER


__all__ = ["CLIENT_DIRECTIVE", "SERVER_DIRECTIVE", "classify", "classify_source"]
