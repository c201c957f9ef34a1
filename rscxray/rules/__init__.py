"""Rule implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Optional, Sequence, Set

from ..config import RscXrayConfig
from .base import ClassifiedFile, Rule, RuleExecutionFault, RuleOutcome
from .bundle_size import ClientComponentOversizedRule
from .cache import CacheOpportunityRule
from .duplicates import DuplicateDependenciesRule
from .forbidden_imports import ClientForbiddenImportRule
from .route_config import RouteSegmentConfigRule
from .serialization import SerializationBoundaryRule
from .suspense import SuspenseBoundaryRule

_ENTRY_POINT_GROUP = "rscxray.rules"

RuleFactory = Callable[[RscXrayConfig], Rule]

_BUILTIN_FACTORIES: dict[str, RuleFactory] = {
    ClientForbiddenImportRule.rule_id: lambda config: ClientForbiddenImportRule(
        config.forbidden_modules
    ),
    SerializationBoundaryRule.rule_id: lambda config: SerializationBoundaryRule(),
    RouteSegmentConfigRule.rule_id: lambda config: RouteSegmentConfigRule(),
    ClientComponentOversizedRule.rule_id: lambda config: ClientComponentOversizedRule(
        config.bundle_size.threshold_bytes
    ),
    CacheOpportunityRule.rule_id: lambda config: CacheOpportunityRule(),
    SuspenseBoundaryRule.rule_id: lambda config: SuspenseBoundaryRule(),
    DuplicateDependenciesRule.rule_id: lambda config: DuplicateDependenciesRule(),
}


def builtin_rule_ids() -> List[str]:
    return list(_BUILTIN_FACTORIES)


def discover_rules(
    enabled: Sequence[str] | None = None, config: Optional[RscXrayConfig] = None
) -> List[Rule]:
    """Return instantiated rules in a fixed order, honoring optional enabled names."""

    config = config or RscXrayConfig()
    if enabled is None and config.rules.enabled:
        enabled = config.rules.enabled

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    rules: List[Rule] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Rule]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Rule):
            raise TypeError(f"Rule factory for '{name}' did not return a Rule instance")
        rules.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, builtin in _BUILTIN_FACTORIES.items():
        _add(name, lambda builtin=builtin: builtin(config))

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load rule entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Rule:
            return _coerce_rule(obj)

        _add(name, _factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown rules requested: {missing}")

    return rules


def _coerce_rule(obj: object) -> Rule:
    if isinstance(obj, Rule):
        return obj
    if isinstance(obj, type) and issubclass(obj, Rule):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Rule):
            return instance
    raise TypeError("Rule entry point must be a Rule subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CacheOpportunityRule",
    "ClassifiedFile",
    "ClientComponentOversizedRule",
    "ClientForbiddenImportRule",
    "DuplicateDependenciesRule",
    "RouteSegmentConfigRule",
    "Rule",
    "RuleExecutionFault",
    "RuleOutcome",
    "SerializationBoundaryRule",
    "SuspenseBoundaryRule",
    "builtin_rule_ids",
    "discover_rules",
]
