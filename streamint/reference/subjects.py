# streamint/reference/subjects.py
"""
Subject reference records and the read-only lookup the engine consumes.

Subjects are authored by the catalogue-management process; the engine
only ever reads them. Two store implementations exist:
- InMemorySubjectStore: a frozen snapshot (reference curriculum, tests)
- SqlSubjectStore (streamint.store.sql): the relational catalogue
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Iterable, List, Protocol, Sequence


class SubjectLevel(str, Enum):
    AL = "AL"  # Advanced Level, classifiable
    OL = "OL"  # Ordinary Level


@dataclass(frozen=True)
class Subject:
    id: int
    code: str
    name: str
    level: SubjectLevel = SubjectLevel.AL
    active: bool = True

    @property
    def classifiable(self) -> bool:
        return self.active and self.level == SubjectLevel.AL

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["level"] = self.level.value
        return data


class SubjectStore(Protocol):
    """Lookup contract for subject records."""

    def get_active_subjects(self, subject_ids: Sequence[int]) -> Dict[int, Subject]:
        """Return active subjects for the given ids, keyed by id. Unknown ids are omitted."""
        ...

    def list_classifiable_subjects(self) -> List[Subject]:
        """All active A/L subjects."""
        ...


class InMemorySubjectStore:
    """Subject store over an immutable snapshot."""

    def __init__(self, subjects: Iterable[Subject]):
        self._subjects: Dict[int, Subject] = {}
        for subject in subjects:
            if subject.id in self._subjects:
                raise ValueError(f"Duplicate subject id {subject.id}")
            self._subjects[subject.id] = subject

    def get_active_subjects(self, subject_ids: Sequence[int]) -> Dict[int, Subject]:
        found = {}
        for sid in subject_ids:
            subject = self._subjects.get(sid)
            if subject is not None and subject.active:
                found[sid] = subject
        return found

    def list_classifiable_subjects(self) -> List[Subject]:
        return sorted(
            (s for s in self._subjects.values() if s.classifiable),
            key=lambda s: s.name,
        )

    def __len__(self) -> int:
        return len(self._subjects)
