"""Base classes for diagnostic rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..context import AnalysisContext
from ..logging import get_logger
from ..models import ComponentKind, Diagnostic, Location, Range
from ..syntax import SourceFile

_LOGGER = get_logger("rules")


@dataclass(frozen=True)
class ClassifiedFile:
    """A parsed source file together with its execution scope."""

    file_name: str
    source: SourceFile
    kind: ComponentKind

    @property
    def is_client(self) -> bool:
        return self.kind is ComponentKind.CLIENT


@dataclass(frozen=True)
class RuleExecutionFault:
    """Describes a rule that raised while evaluating a file."""

    rule: str
    file_name: str
    error_type: str
    message: str


@dataclass(frozen=True)
class RuleOutcome:
    """Either the diagnostics a rule produced or the fault that stopped it."""

    rule: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    fault: Optional[RuleExecutionFault] = None
    executed: bool = True

    @property
    def ok(self) -> bool:
        return self.fault is None


class Rule(ABC):
    """Contract for rules that turn a classified file into diagnostics."""

    rule_id: str = ""
    level: str = "warn"

    def applies(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> bool:
        """Return True when this rule should run for the file."""
        return True

    @abstractmethod
    def run(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> List[Diagnostic]:
        """Produce diagnostics for a single file."""

    def evaluate(self, file: ClassifiedFile, context: Optional[AnalysisContext]) -> RuleOutcome:
        """Run the rule when it applies and capture any exception as a fault value."""
        try:
            if not self.applies(file, context):
                return RuleOutcome(rule=self.rule_id, executed=False)
            diagnostics = list(self.run(file, context))
        except Exception as exc:
            _LOGGER.warning(
                "Rule %s failed on %s: %s", self.rule_id, file.file_name, exc, exc_info=True
            )
            return RuleOutcome(
                rule=self.rule_id,
                executed=False,
                fault=RuleExecutionFault(
                    rule=self.rule_id,
                    file_name=file.file_name,
                    error_type=type(exc).__name__,
                    message=str(exc),
                ),
            )
        return RuleOutcome(rule=self.rule_id, diagnostics=diagnostics)

    def diagnostic(
        self,
        file: ClassifiedFile,
        message: str,
        span: Optional[Range] = None,
        *,
        level: Optional[str] = None,
    ) -> Diagnostic:
        return Diagnostic(
            rule=self.rule_id,
            level=level or self.level,
            message=message,
            loc=Location(file=file.file_name, range=span),
        )
