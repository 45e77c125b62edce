# streamint/classify/service.py
"""
StreamService: the engine's external interface.

Wires a subject store and a stream store to the classifier. The registry
is loaded fresh from the stream store on every call, so a stream edit is
visible on the next request without restarting anything.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from streamint.classify.batch import classify_batch
from streamint.classify.classifier import ClassificationResult, StreamClassifier
from streamint.reference.registry import StreamDefinition, StreamStore
from streamint.reference.subjects import Subject, SubjectStore

logger = logging.getLogger(__name__)


class StreamService:
    def __init__(self, subjects: SubjectStore, streams: StreamStore, batch_workers: int = 1):
        self.subjects = subjects
        self.streams = streams
        self.batch_workers = batch_workers

    def _classifier(self) -> StreamClassifier:
        return StreamClassifier(self.streams.load_registry(), self.subjects)

    def classify(self, subject_ids: Sequence[Any]) -> ClassificationResult:
        result = self._classifier().classify(subject_ids)
        if result.valid:
            logger.info(
                "Classified %s as %s (%s)", list(subject_ids), result.stream_name, result.matched_rule
            )
        return result

    def classify_batch(self, triples: Sequence[Any]) -> List[ClassificationResult]:
        return classify_batch(self._classifier(), triples, max_workers=self.batch_workers)

    def explain(self, subject_ids: Sequence[Any]) -> Dict[str, Any]:
        return self._classifier().get_evidence_report(subject_ids)

    def list_streams(self) -> List[Dict[str, Any]]:
        return [d.summary() for d in self.streams.load_registry().active()]

    def get_stream(self, stream_id: int) -> StreamDefinition:
        """Raises StreamNotFound for unknown or inactive ids."""
        return self.streams.load_registry().get(stream_id)

    def get_subjects_for_stream(self, stream_id: int) -> List[Subject]:
        """
        Subjects referenced anywhere in the stream's rule (active A/L only,
        sorted by name). Common references every classifiable subject.

        Raises:
            StreamNotFound: unknown or inactive stream id
        """
        definition = self.get_stream(stream_id)
        if definition.is_fallback:
            return self.subjects.list_classifiable_subjects()

        referenced = sorted(definition.rule.subject_ids())
        found = self.subjects.get_active_subjects(referenced)
        return sorted((s for s in found.values() if s.classifiable), key=lambda s: s.name)
