"""Typed analysis context, merging and route-segment sanitization."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import InvalidRequest
from .paths import basename, normalize_path

ROUTE_SEGMENT_NAMES = frozenset({"page", "layout", "default", "template", "error", "loading"})
ROUTE_HANDLER_NAME = "route"
_SEGMENT_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")
_HANDLER_EXTENSIONS = (".ts", ".js")

_KNOWN_KEYS = {"routeConfig", "clientBundles", "clientComponentPaths", "route"}


@dataclass(frozen=True)
class BundleRecord:
    """Client chunks pulled in by one component file."""

    file_path: str
    chunks: Tuple[str, ...]
    total_bytes: Optional[int] = None

    @classmethod
    def from_mapping(cls, payload: Any) -> "BundleRecord":
        if not isinstance(payload, Mapping):
            raise InvalidRequest("clientBundles entries must be objects")
        file_path = payload.get("filePath")
        if not isinstance(file_path, str) or not file_path:
            raise InvalidRequest("clientBundles entries must include filePath")
        chunks = payload.get("chunks", [])
        if not isinstance(chunks, list) or not all(isinstance(chunk, str) for chunk in chunks):
            raise InvalidRequest("clientBundles chunks must be a list of strings")
        total = payload.get("totalBytes")
        if total is not None and (isinstance(total, bool) or not isinstance(total, (int, float))):
            raise InvalidRequest("clientBundles totalBytes must be a number")
        return cls(
            file_path=file_path,
            chunks=tuple(chunks),
            total_bytes=int(total) if total is not None else None,
        )

    @property
    def normalized_path(self) -> str:
        return normalize_path(self.file_path)


@dataclass(frozen=True)
class AnalysisContext:
    """Shared or per-target inputs for the rules.

    Only the named fields are interpreted. Unknown keys are preserved in
    ``extras`` so callers can round-trip them.
    """

    route_config: Optional[Dict[str, Any]] = None
    client_bundles: Optional[Tuple[BundleRecord, ...]] = None
    client_component_paths: Optional[Tuple[str, ...]] = None
    route: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Any) -> Optional["AnalysisContext"]:
        """Validate a wire-form context mapping; ``None`` passes through."""
        if payload is None:
            return None
        if isinstance(payload, AnalysisContext):
            return payload
        if not isinstance(payload, Mapping):
            raise InvalidRequest("context must be an object")

        route_config = payload.get("routeConfig")
        if route_config is not None and not isinstance(route_config, Mapping):
            raise InvalidRequest("context.routeConfig must be an object")

        bundles_raw = payload.get("clientBundles")
        bundles: Optional[Tuple[BundleRecord, ...]] = None
        if bundles_raw is not None:
            if not isinstance(bundles_raw, list):
                raise InvalidRequest("context.clientBundles must be a list")
            bundles = tuple(BundleRecord.from_mapping(item) for item in bundles_raw)

        paths_raw = payload.get("clientComponentPaths")
        paths: Optional[Tuple[str, ...]] = None
        if paths_raw is not None:
            if not isinstance(paths_raw, list) or not all(isinstance(p, str) for p in paths_raw):
                raise InvalidRequest("context.clientComponentPaths must be a list of strings")
            paths = tuple(paths_raw)

        route = payload.get("route")
        if route is not None and not isinstance(route, str):
            raise InvalidRequest("context.route must be a string")

        return cls(
            route_config=dict(route_config) if route_config is not None else None,
            client_bundles=bundles,
            client_component_paths=paths,
            route=route,
            extras={key: value for key, value in payload.items() if key not in _KNOWN_KEYS},
        )

    def is_empty(self) -> bool:
        return (
            self.route_config is None
            and self.client_bundles is None
            and self.client_component_paths is None
            and self.route is None
            and not self.extras
        )


def merge_contexts(
    shared: Optional[AnalysisContext], own: Optional[AnalysisContext]
) -> Optional[AnalysisContext]:
    """Overlay a target's own context on the shared one; target keys win."""
    if shared is None and own is None:
        return None
    if shared is None:
        return own
    if own is None:
        return shared
    return AnalysisContext(
        route_config=own.route_config if own.route_config is not None else shared.route_config,
        client_bundles=(
            own.client_bundles if own.client_bundles is not None else shared.client_bundles
        ),
        client_component_paths=(
            own.client_component_paths
            if own.client_component_paths is not None
            else shared.client_component_paths
        ),
        route=own.route if own.route is not None else shared.route,
        extras={**shared.extras, **own.extras},
    )


def is_route_segment_file(file_name: str) -> bool:
    """Return True for page/layout/default/template/error/loading files and route handlers.

    Only the basename decides, so nested route files match at any depth.
    """
    name = basename(file_name)
    stem, dot, extension = name.rpartition(".")
    if not dot:
        return False
    suffix = f".{extension}"
    if stem in ROUTE_SEGMENT_NAMES:
        return suffix in _SEGMENT_EXTENSIONS
    if stem == ROUTE_HANDLER_NAME:
        return suffix in _HANDLER_EXTENSIONS
    return False


def sanitize_context(
    context: Optional[AnalysisContext], file_name: str
) -> Optional[AnalysisContext]:
    """Drop ``route_config`` for files that are not route segments."""
    if context is None or context.route_config is None:
        return context
    if is_route_segment_file(file_name):
        return context
    stripped = replace(context, route_config=None)
    return None if stripped.is_empty() else stripped


def bundles_of(context: Optional[AnalysisContext]) -> List[BundleRecord]:
    if context is None or context.client_bundles is None:
        return []
    return list(context.client_bundles)


__all__ = [
    "AnalysisContext",
    "BundleRecord",
    "ROUTE_SEGMENT_NAMES",
    "bundles_of",
    "is_route_segment_file",
    "merge_contexts",
    "sanitize_context",
]
