# streamint/classify/classifier.py
"""
Priority-ordered stream classification.

This module provides:
1. ClassificationResult, the structured outcome of one request
2. Dispatch from a rule's type tag to its evaluator
3. StreamClassifier: validation + ordered evaluation + Common fallback
4. An evidence report listing every evaluator's verdict (diagnostics)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence

from streamint.errors import RegistryError
from streamint.reference.registry import StreamDefinition, StreamRegistry
from streamint.reference.subjects import SubjectStore
from streamint.rules import RuleMatch
from streamint.rules.arts import evaluate_arts
from streamint.rules.commerce import evaluate_commerce
from streamint.rules.definitions import StreamType
from streamint.rules.science import evaluate_biological_science, evaluate_physical_science
from streamint.rules.technology import evaluate_technology
from streamint.validate.input import ValidationErrorKind, validate_subject_ids

logger = logging.getLogger(__name__)

FALLBACK_RULE = "fallback"

EVALUATORS: Dict[StreamType, Callable[[FrozenSet[int], Any], RuleMatch]] = {
    StreamType.PHYSICAL_SCIENCE: evaluate_physical_science,
    StreamType.BIOLOGICAL_SCIENCE: evaluate_biological_science,
    StreamType.COMMERCE: evaluate_commerce,
    StreamType.ENGINEERING_TECHNOLOGY: evaluate_technology,
    StreamType.BIOSYSTEMS_TECHNOLOGY: evaluate_technology,
    StreamType.ARTS: evaluate_arts,
}


@dataclass
class ClassificationResult:
    """Outcome of classifying one subject triple."""
    valid: bool
    stream_id: Optional[int] = None
    stream_name: Optional[str] = None
    matched_rule: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    error_kind: Optional[ValidationErrorKind] = None

    @classmethod
    def invalid(cls, errors: List[str], kind: Optional[ValidationErrorKind] = None) -> "ClassificationResult":
        return cls(valid=False, errors=list(errors), error_kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "streamId": self.stream_id,
            "streamName": self.stream_name,
            "matchedRule": self.matched_rule,
            "errors": self.errors,
        }


def evaluate_definition(subject_ids: FrozenSet[int], definition: StreamDefinition) -> RuleMatch:
    """Run the evaluator that matches the definition's rule tag."""
    evaluator = EVALUATORS.get(definition.stream_type)
    if evaluator is None:
        raise RegistryError(f"No evaluator for stream type '{definition.stream_type.value}'")
    return evaluator(subject_ids, definition.rule)


class StreamClassifier:
    """Classifier bound to one registry snapshot and one subject store."""

    def __init__(self, registry: StreamRegistry, subjects: SubjectStore):
        self.registry = registry
        self.subjects = subjects

    def with_subjects(self, subjects: SubjectStore) -> "StreamClassifier":
        return StreamClassifier(self.registry, subjects)

    def match(self, subject_ids: Sequence[int]) -> ClassificationResult:
        """
        Classify an already-validated triple.

        First accepting stream in priority order wins; Common otherwise.
        """
        id_set = frozenset(subject_ids)

        for definition in self.registry.ordered():
            verdict = evaluate_definition(id_set, definition)
            if verdict.matches:
                logger.debug(
                    "Subjects %s matched %s via %s", sorted(id_set), definition.name, verdict.rule
                )
                return ClassificationResult(
                    valid=True,
                    stream_id=definition.id,
                    stream_name=definition.name,
                    matched_rule=verdict.rule,
                )

        fallback = self.registry.fallback
        logger.debug("Subjects %s matched no stream, falling back to %s", sorted(id_set), fallback.name)
        return ClassificationResult(
            valid=True,
            stream_id=fallback.id,
            stream_name=fallback.name,
            matched_rule=FALLBACK_RULE,
        )

    def classify(self, subject_ids: Sequence[Any]) -> ClassificationResult:
        """Validate, then classify. Invalid input never reaches the rule loop."""
        validation = validate_subject_ids(subject_ids, self.subjects)
        if not validation.ok:
            logger.debug("Rejected %r: %s", subject_ids, validation.errors)
            return ClassificationResult.invalid(validation.errors, validation.kind)
        return self.match(validation.subject_ids)

    def get_evidence_report(self, subject_ids: Sequence[Any]) -> Dict[str, Any]:
        """Every stream's verdict for the triple, in evaluation order, for audit."""
        result = self.classify(subject_ids)
        report: Dict[str, Any] = {"result": result.to_dict(), "evaluations": []}
        if not result.valid:
            return report

        id_set = frozenset(subject_ids)
        for definition in self.registry.ordered():
            verdict = evaluate_definition(id_set, definition)
            report["evaluations"].append({
                "stream_id": definition.id,
                "stream_name": definition.name,
                "priority": definition.priority,
                "matches": verdict.matches,
                "rule": verdict.rule,
                "reasons": verdict.reasons,
            })
        return report


def classify_subjects(
    subject_ids: Sequence[Any],
    registry: StreamRegistry,
    subjects: SubjectStore,
) -> ClassificationResult:
    """
    Convenience function to classify one triple against a registry snapshot.
    """
    return StreamClassifier(registry, subjects).classify(subject_ids)
