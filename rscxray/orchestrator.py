"""Analysis orchestration for single- and multi-target requests."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .aggregator import DiagnosticAggregator
from .classify import classify_source
from .config import RscXrayConfig
from .context import AnalysisContext, bundles_of, merge_contexts, sanitize_context
from .detector import AttributedDiagnostic, DuplicateDependencyDetector
from .errors import InvalidRequest
from .logging import get_logger
from .models import DEFAULT_VERSION, AggregateResult, AnalyzedTarget, Diagnostic, SourceTarget
from .rules import ClassifiedFile, Rule, discover_rules
from .rules.duplicates import RULE_ID as DUPLICATE_RULE_ID
from .syntax import SourceFile

TargetInput = Union[SourceTarget, Any]
ContextInput = Union[AnalysisContext, Any, None]


class Orchestrator:
    """Runs classification and the rule set per target, then detection and aggregation."""

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        config: Optional[RscXrayConfig] = None,
        detector: DuplicateDependencyDetector | None = None,
        aggregator: DiagnosticAggregator | None = None,
        clock: Callable[[], float] = time.perf_counter,
        max_workers: Optional[int] = None,
        version: str = DEFAULT_VERSION,
    ) -> None:
        self.config = config or RscXrayConfig()
        self.rules: List[Rule] = list(rules) if rules is not None else discover_rules(config=self.config)
        self.detector = detector or DuplicateDependencyDetector()
        self.aggregator = aggregator or DiagnosticAggregator()
        self.clock = clock
        self.max_workers = max_workers or self.config.analysis.max_workers
        self.version = version
        self.logger = get_logger("orchestrator")

    @property
    def rule_ids(self) -> List[str]:
        return [rule.rule_id for rule in self.rules]

    def analyze_one(
        self,
        target: SourceTarget,
        shared_context: Optional[AnalysisContext] = None,
    ) -> AnalyzedTarget:
        """Classify one target and run every applicable rule against it."""
        started = self.clock()
        context = sanitize_context(merge_contexts(shared_context, target.context), target.file_name)
        source = SourceFile(target.file_name, target.code)
        file = ClassifiedFile(
            file_name=target.file_name, source=source, kind=classify_source(source)
        )

        diagnostics: List[Diagnostic] = []
        executed: List[str] = []
        for rule in self.rules:
            outcome = rule.evaluate(file, context)
            if not outcome.ok:
                self.logger.debug("Skipping faulted rule %s for %s", rule.rule_id, target.file_name)
                continue
            if not outcome.executed:
                continue
            executed.append(outcome.rule)
            diagnostics.extend(outcome.diagnostics)

        duration = round((self.clock() - started) * 1000, 3)
        self.logger.debug(
            "Analyzed %s as %s: %d diagnostics in %.3fms",
            target.file_name,
            file.kind.value,
            len(diagnostics),
            duration,
        )
        return AnalyzedTarget(
            key=target.file_key,
            file_name=target.file_name,
            diagnostics=diagnostics,
            duration=duration,
            rules_executed=executed,
            version=self.version,
        )

    def analyze_single(
        self, target: TargetInput, shared_context: ContextInput = None
    ) -> AggregateResult:
        """Analyze one target and key the result by that target alone."""
        resolved = self._coerce_targets([target])[0]
        context = AnalysisContext.from_mapping(shared_context)
        analysis = self.analyze_one(resolved, context)
        return self.aggregator.single(analysis, resolved)

    def analyze_many(
        self, targets: Sequence[TargetInput], shared_context: ContextInput = None
    ) -> AggregateResult:
        """Analyze every target independently, detect shared chunks, and aggregate.

        The whole batch is rejected with ``InvalidRequest`` before any
        analysis when one target is structurally invalid.
        """
        resolved = self._coerce_targets(targets)
        context = AnalysisContext.from_mapping(shared_context)
        self.logger.info("Analyzing %d targets", len(resolved))

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            analyses = list(pool.map(lambda item: self.analyze_one(item, context), resolved))

        detected, detector_rules = self._run_detector(resolved, context)
        result = self.aggregator.aggregate(analyses, resolved, detected, extra_rules=detector_rules)
        self.logger.info(
            "Multi-target analysis complete: %d diagnostics across %d files",
            len(result.diagnostics),
            len(result.diagnostics_by_file),
        )
        return result

    def _run_detector(
        self, targets: Sequence[SourceTarget], context: Optional[AnalysisContext]
    ) -> Tuple[List[AttributedDiagnostic], List[str]]:
        if DUPLICATE_RULE_ID not in self.rule_ids:
            return [], []
        has_bundles = bool(bundles_of(context)) or any(bundles_of(t.context) for t in targets)
        if not has_bundles:
            return [], []
        try:
            detected = self.detector.detect(targets, context)
        except Exception:
            self.logger.exception("Duplicate-dependency detection failed; reporting no findings")
            return [], []
        return detected, [DUPLICATE_RULE_ID]

    @staticmethod
    def _coerce_targets(targets: Sequence[TargetInput]) -> List[SourceTarget]:
        if not isinstance(targets, Sequence) or isinstance(targets, (str, bytes)):
            raise InvalidRequest("analysisTargets must be a list")
        resolved: List[SourceTarget] = []
        for item in targets:
            if isinstance(item, SourceTarget):
                resolved.append(item)
            else:
                resolved.append(SourceTarget.from_mapping(item))
        return resolved


__all__ = ["Orchestrator"]
