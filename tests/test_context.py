"""Tests for context validation, merging and sanitization."""

from __future__ import annotations

import pytest

from rscxray.context import (
    AnalysisContext,
    BundleRecord,
    is_route_segment_file,
    merge_contexts,
    sanitize_context,
)
from rscxray.errors import InvalidRequest


@pytest.mark.parametrize(
    "file_name",
    [
        "page.tsx",
        "layout.tsx",
        "default.tsx",
        "template.tsx",
        "error.tsx",
        "loading.tsx",
        "route.ts",
        "app/dashboard/page.tsx",
        "./app/a/b/c/layout.tsx",
        "app/api/users/route.ts",
    ],
)
def test_route_segment_files_are_recognized(file_name: str) -> None:
    assert is_route_segment_file(file_name)


@pytest.mark.parametrize(
    "file_name",
    ["SalesMetrics.tsx", "components/Header.tsx", "mypage.tsx", "page.css", "page"],
)
def test_non_route_files_are_rejected(file_name: str) -> None:
    assert not is_route_segment_file(file_name)


def test_from_mapping_parses_known_fields_and_keeps_extras() -> None:
    context = AnalysisContext.from_mapping(
        {
            "routeConfig": {"dynamic": "force-dynamic"},
            "clientBundles": [{"filePath": "A.tsx", "chunks": ["lib.js"], "totalBytes": 1200}],
            "clientComponentPaths": ["./Button"],
            "route": "/dashboard",
            "scenario": "demo",
        }
    )
    assert context is not None
    assert context.route_config == {"dynamic": "force-dynamic"}
    assert context.client_bundles == (BundleRecord("A.tsx", ("lib.js",), 1200),)
    assert context.client_component_paths == ("./Button",)
    assert context.route == "/dashboard"
    assert context.extras == {"scenario": "demo"}


@pytest.mark.parametrize(
    "payload",
    [
        "not-a-mapping",
        {"routeConfig": ["dynamic"]},
        {"clientBundles": {"filePath": "A.tsx"}},
        {"clientBundles": [{"chunks": ["lib.js"]}]},
        {"clientBundles": [{"filePath": "A.tsx", "chunks": "lib.js"}]},
        {"clientComponentPaths": "./Button"},
        {"route": 5},
    ],
)
def test_from_mapping_rejects_malformed_context(payload: object) -> None:
    with pytest.raises(InvalidRequest):
        AnalysisContext.from_mapping(payload)


def test_merge_prefers_target_values() -> None:
    shared = AnalysisContext(route="/shared", client_component_paths=("Shared",), extras={"a": 1})
    own = AnalysisContext(route="/own", extras={"b": 2})
    merged = merge_contexts(shared, own)
    assert merged is not None
    assert merged.route == "/own"
    assert merged.client_component_paths == ("Shared",)
    assert merged.extras == {"a": 1, "b": 2}
    assert merge_contexts(None, None) is None
    assert merge_contexts(shared, None) is shared


def test_sanitize_strips_route_config_from_non_route_files() -> None:
    context = AnalysisContext(
        route_config={"dynamic": "force-dynamic"}, client_component_paths=("Button",)
    )
    sanitized = sanitize_context(context, "components/SalesMetrics.tsx")
    assert sanitized is not None
    assert sanitized.route_config is None
    assert sanitized.client_component_paths == ("Button",)
    assert context.route_config == {"dynamic": "force-dynamic"}


def test_sanitize_keeps_route_config_for_nested_route_files() -> None:
    context = AnalysisContext(route_config={"revalidate": 60})
    assert sanitize_context(context, "app/reports/page.tsx") is context


def test_sanitize_returns_none_when_nothing_remains() -> None:
    context = AnalysisContext(route_config={"revalidate": 60})
    assert sanitize_context(context, "Chart.tsx") is None
