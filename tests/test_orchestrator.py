"""Tests for single- and multi-target orchestration."""

from __future__ import annotations

from typing import List

import pytest

from rscxray.errors import InvalidRequest
from rscxray.models import Diagnostic
from rscxray.orchestrator import Orchestrator
from rscxray.rules import ClientForbiddenImportRule, Rule

CLIENT_CODE = "'use client';\nimport fs from 'fs';\nexport default function W() { return null; }\n"
SHARED_BUNDLES = {
    "clientBundles": [
        {"filePath": "components/A.tsx", "chunks": ["lib.js"]},
        {"filePath": "components/B.tsx", "chunks": ["lib.js"]},
    ]
}
CODE_A = "'use client';\nimport lib from './lib.js';\n"
CODE_B = "'use client';\nimport lib from './lib.js';\nimport React from 'react';\n"


class ExplodingRule(Rule):
    rule_id = "exploding"

    def run(self, file, context) -> List[Diagnostic]:
        raise RuntimeError("boom")


class CountingRule(Rule):
    rule_id = "counting"

    def __init__(self) -> None:
        self.calls = 0

    def run(self, file, context) -> List[Diagnostic]:
        self.calls += 1
        return []


def test_analyze_single_keys_by_file_name(clock_factory) -> None:
    orchestrator = Orchestrator(clock=clock_factory())
    result = orchestrator.analyze_single({"code": CLIENT_CODE, "fileName": "components/Widget.tsx"})

    payload = result.to_dict()
    assert list(payload["diagnosticsByFile"]) == ["components/Widget.tsx"]
    assert [d["rule"] for d in payload["diagnostics"]] == ["client-forbidden-import"]
    assert payload["duration"] == pytest.approx(2.0)
    assert payload["durationsByFile"] == {"components/Widget.tsx": pytest.approx(2.0)}
    assert "client-forbidden-import" in payload["rulesExecuted"]
    # Server-only rules do not run for client components.
    assert "serialization-boundary-violation" not in payload["rulesExecuted"]
    assert payload["version"] == "0.6.0"


def test_analyze_single_expands_duplicate_dependencies(clock_factory) -> None:
    orchestrator = Orchestrator(clock=clock_factory())
    result = orchestrator.analyze_single(
        {"code": CODE_A, "fileName": "components/A.tsx", "context": SHARED_BUNDLES}
    )
    messages = [d.message for d in result.diagnostics if d.rule == "duplicate-dependencies"]
    assert messages == [
        "'./lib.js' is duplicated across multiple components. Consider extracting to a shared module."
    ]


def test_route_config_only_applies_to_route_segment_files(clock_factory) -> None:
    orchestrator = Orchestrator(clock=clock_factory(), max_workers=1)
    result = orchestrator.analyze_many(
        [
            {"code": "export default function Page() { return <main />; }\n", "fileName": "app/page.tsx"},
            {
                "code": "export default function Button() { return <button />; }\n",
                "fileName": "components/Button.tsx",
            },
        ],
        {"routeConfig": {"dynamic": "force-dynamic", "revalidate": 60}},
    )
    page = result.diagnostics_by_file["app/page.tsx"]
    assert [d.rule for d in page] == ["route-segment-config-conflict"]
    assert result.diagnostics_by_file["components/Button.tsx"] == []
    assert "route-segment-config-conflict" in result.rules_executed


def test_analyze_many_reports_per_import_and_cross_file_duplicates(clock_factory) -> None:
    orchestrator = Orchestrator(clock=clock_factory(), max_workers=1)
    result = orchestrator.analyze_many(
        [
            {"code": CODE_A, "fileName": "components/A.tsx"},
            {"code": CODE_B, "fileName": "components/B.tsx"},
        ],
        SHARED_BUNDLES,
    )

    expanded = "'./lib.js' is duplicated across multiple components. Consider extracting to a shared module."
    a = result.diagnostics_by_file["components/A.tsx"]
    b = result.diagnostics_by_file["components/B.tsx"]
    assert [d.rule for d in a] == ["duplicate-dependencies", "duplicate-dependencies"]
    assert [d.rule for d in b] == ["duplicate-dependencies", "duplicate-dependencies"]
    # The per-file rule is split per import; the detector names the sibling.
    assert a[0].message == expanded
    assert b[0].message == expanded
    assert a[0].loc.range.start == CODE_A.index("'./lib.js'")
    assert b[0].loc.range.start == CODE_B.index("'./lib.js'")
    assert "B.tsx" in a[1].message
    assert "A.tsx" in b[1].message
    assert result.rules_executed[-1] == "duplicate-dependencies"
    assert result.durations_by_file == {
        "components/A.tsx": pytest.approx(2.0),
        "components/B.tsx": pytest.approx(2.0),
    }
    assert result.duration == pytest.approx(4.0)


def test_analyze_many_is_deterministic(clock_factory) -> None:
    targets = [
        {"code": CODE_A, "fileName": "components/A.tsx"},
        {"code": CODE_B, "fileName": "components/B.tsx"},
        {"code": CLIENT_CODE, "fileName": "components/Widget.tsx"},
    ]
    first = Orchestrator(clock=clock_factory(), max_workers=1).analyze_many(targets, SHARED_BUNDLES)
    second = Orchestrator(clock=clock_factory(), max_workers=1).analyze_many(targets, SHARED_BUNDLES)
    assert first.to_dict() == second.to_dict()


def test_parallel_and_sequential_runs_agree_on_diagnostics() -> None:
    targets = [
        {"code": CODE_A, "fileName": "components/A.tsx"},
        {"code": CODE_B, "fileName": "components/B.tsx"},
        {"code": CLIENT_CODE, "fileName": "components/Widget.tsx"},
    ]
    sequential = Orchestrator(max_workers=1).analyze_many(targets, SHARED_BUNDLES)
    parallel = Orchestrator(max_workers=4).analyze_many(targets, SHARED_BUNDLES)
    assert sequential.to_dict()["diagnosticsByFile"] == parallel.to_dict()["diagnosticsByFile"]


def test_invalid_target_rejects_whole_batch() -> None:
    counting = CountingRule()
    orchestrator = Orchestrator(rules=[counting])
    with pytest.raises(InvalidRequest):
        orchestrator.analyze_many(
            [{"code": "export {};", "fileName": "a.tsx"}, {"fileName": "b.tsx"}]
        )
    assert counting.calls == 0


def test_faulting_rule_is_omitted_from_rules_executed(clock_factory) -> None:
    orchestrator = Orchestrator(rules=[ExplodingRule(), ClientForbiddenImportRule()], clock=clock_factory())
    result = orchestrator.analyze_single({"code": CLIENT_CODE, "fileName": "Widget.tsx"})
    assert result.rules_executed == ["client-forbidden-import"]
    assert len(result.diagnostics) == 1


def test_custom_file_key_buckets_diagnostics_by_location_basename(clock_factory) -> None:
    orchestrator = Orchestrator(clock=clock_factory(), max_workers=1)
    result = orchestrator.analyze_many(
        [{"code": CLIENT_CODE, "fileName": "components/Widget.tsx", "fileKey": "widget"}]
    )
    assert list(result.diagnostics_by_file) == ["widget", "Widget.tsx"]
    assert result.diagnostics_by_file["widget"] == []
    assert [d.rule for d in result.diagnostics_by_file["Widget.tsx"]] == ["client-forbidden-import"]
    assert result.durations_by_file == {"widget": 0.0, "Widget.tsx": pytest.approx(2.0)}
