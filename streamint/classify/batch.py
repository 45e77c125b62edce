# streamint/classify/batch.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Sequence

from streamint.classify.classifier import ClassificationResult, StreamClassifier
from streamint.reference.subjects import InMemorySubjectStore
from streamint.validate.input import is_subject_id

logger = logging.getLogger(__name__)


def _referenced_ids(triples: Sequence[Any]) -> List[int]:
    referenced = set()
    for triple in triples:
        if isinstance(triple, (list, tuple)):
            referenced.update(v for v in triple if is_subject_id(v))
    return sorted(referenced)


def classify_batch(
    classifier: StreamClassifier,
    triples: Sequence[Any],
    max_workers: int = 1,
) -> List[ClassificationResult]:
    """
    Classify many triples, one independent result per item, in input order.

    Subjects for the whole batch are fetched once up front; after that every
    item runs against the same snapshot, so a bad item (wrong count, unknown
    id, duplicate) only affects its own result. A store outage while taking
    the snapshot raises ReferenceDataUnavailable for the batch as a whole.

    Args:
        classifier: classifier bound to the registry to use
        triples: subject id triples (malformed items are reported, not raised)
        max_workers: >1 evaluates items on a thread pool
    """
    if not triples:
        return []

    found = classifier.subjects.get_active_subjects(_referenced_ids(triples))
    snapshot = classifier.with_subjects(InMemorySubjectStore(found.values()))

    if max_workers > 1 and len(triples) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(snapshot.classify, triples))
    else:
        results = [snapshot.classify(t) for t in triples]

    logger.info(
        "Batch classified %d/%d combinations", sum(1 for r in results if r.valid), len(triples)
    )
    return results
