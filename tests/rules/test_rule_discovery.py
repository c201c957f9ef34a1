"""Tests for rule discovery utilities."""

from __future__ import annotations

from types import SimpleNamespace
from typing import List

import pytest

from rscxray.config import BundleSizeConfig, RscXrayConfig, RuleConfig
from rscxray.context import AnalysisContext
from rscxray.models import Diagnostic
from rscxray.rules import (
    ClientComponentOversizedRule,
    ClientForbiddenImportRule,
    Rule,
    builtin_rule_ids,
    discover_rules,
)


class DummyRule(Rule):
    rule_id = "dummy"

    def run(self, file, context) -> List[Diagnostic]:  # pragma: no cover - unused
        return []


def test_discover_rules_returns_builtins_in_fixed_order() -> None:
    rules = discover_rules()
    assert [rule.rule_id for rule in rules] == builtin_rule_ids()
    assert builtin_rule_ids()[0] == "client-forbidden-import"
    assert "duplicate-dependencies" in builtin_rule_ids()


def test_discover_rules_respects_enabled_filter() -> None:
    rules = discover_rules(["client-forbidden-import"])
    assert len(rules) == 1
    assert isinstance(rules[0], ClientForbiddenImportRule)


def test_discover_rules_uses_config() -> None:
    config = RscXrayConfig(
        rules=RuleConfig(enabled=["client-component-oversized"]),
        bundle_size=BundleSizeConfig(threshold_bytes=1024),
    )
    rules = discover_rules(config=config)
    assert len(rules) == 1
    assert isinstance(rules[0], ClientComponentOversizedRule)
    assert rules[0].threshold_bytes == 1024


def test_discover_rules_loads_entry_points(monkeypatch) -> None:
    dummy_entry = SimpleNamespace(name="dummy", load=lambda: DummyRule)

    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "rscxray.rules":
                return self
            return []

    monkeypatch.setattr(
        "rscxray.rules.metadata.entry_points",
        lambda: DummyEntryPoints([dummy_entry]),
        raising=False,
    )

    rules = discover_rules(["dummy"])
    assert len(rules) == 1
    assert isinstance(rules[0], DummyRule)


def test_discover_rules_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError):
        discover_rules(["does-not-exist"])


def test_faulting_rule_is_captured(classified) -> None:
    class Exploding(Rule):
        rule_id = "exploding"

        def run(self, file, context: AnalysisContext | None) -> List[Diagnostic]:
            raise RuntimeError("boom")

    outcome = Exploding().evaluate(classified("page.tsx", "export {};\n"), None)
    assert not outcome.ok
    assert outcome.executed is False
    assert outcome.fault.error_type == "RuntimeError"
    assert outcome.fault.message == "boom"
