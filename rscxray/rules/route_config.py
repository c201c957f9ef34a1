"""Flags mutually inconsistent route segment config exports."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from tree_sitter import Node

from ..context import AnalysisContext
from ..models import Diagnostic, Range
from ..syntax import SourceFile
from .base import ClassifiedFile, Rule

ROUTE_CONFIG_KEYS = ("dynamic", "revalidate", "fetchCache", "runtime", "preferredRegion")
REQUEST_TIME_APIS = {
    "cookies": "next/headers",
    "headers": "next/headers",
    "draftMode": "next/headers",
    "unstable_noStore": "next/cache",
    "noStore": "next/cache",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RouteSegmentConfigRule(Rule):
    """Only runs when ``route_config`` survived sanitization for the file."""

    rule_id = "route-segment-config-conflict"

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        return context is not None and context.route_config is not None

    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        if context is None or context.route_config is None:
            return []
        source = file.source
        exported = {
            name: entry
            for name, entry in source.exported_constants().items()
            if name in ROUTE_CONFIG_KEYS
        }
        config: Dict[str, Any] = dict(context.route_config)
        config.update({name: value for name, (value, _) in exported.items()})

        def span(*names: str) -> Optional[Range]:
            for name in names:
                if name in exported:
                    return source.range_of(exported[name][1])
            return None

        dynamic = config.get("dynamic")
        revalidate = config.get("revalidate")
        fetch_cache = config.get("fetchCache")
        diagnostics: List[Diagnostic] = []

        if dynamic == "force-dynamic" and _is_number(revalidate) and revalidate > 0:
            diagnostics.append(
                self.diagnostic(
                    file,
                    "Route segment config conflict: dynamic = 'force-dynamic' renders on every "
                    f"request, so revalidate = {revalidate} never applies. Remove revalidate "
                    "or drop 'force-dynamic'.",
                    span("revalidate", "dynamic"),
                )
            )

        if dynamic == "force-static":
            if _is_number(revalidate) and revalidate == 0:
                diagnostics.append(
                    self.diagnostic(
                        file,
                        "Route segment config conflict: dynamic = 'force-static' caches the route, "
                        "but revalidate = 0 opts it out of caching.",
                        span("revalidate", "dynamic"),
                    )
                )
            if fetch_cache == "force-no-store":
                diagnostics.append(
                    self.diagnostic(
                        file,
                        "Route segment config conflict: dynamic = 'force-static' caches the route, "
                        "but fetchCache = 'force-no-store' disables the fetch cache.",
                        span("fetchCache", "dynamic"),
                    )
                )
            for api, call in self._request_time_calls(source):
                diagnostics.append(
                    self.diagnostic(
                        file,
                        f"Route segment config conflict: dynamic = 'force-static' renders at build "
                        f"time, but {api}() reads request-time data. Remove {api}() or switch the "
                        "route to dynamic rendering.",
                        span("dynamic") or source.range_of(call),
                    )
                )
        return diagnostics

    @staticmethod
    def _request_time_calls(source: SourceFile) -> List[Tuple[str, Node]]:
        bindings = source.imported_bindings()
        calls: List[Tuple[str, Node]] = []
        seen = set()
        for node in source.walk():
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None or callee.type != "identifier":
                continue
            name = source.text_of(callee)
            module = REQUEST_TIME_APIS.get(name)
            if module is None or bindings.get(name) != module or name in seen:
                continue
            seen.add(name)
            calls.append((name, node))
        return calls


__all__ = ["REQUEST_TIME_APIS", "ROUTE_CONFIG_KEYS", "RouteSegmentConfigRule"]
