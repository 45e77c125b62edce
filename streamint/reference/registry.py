# streamint/reference/registry.py
"""
Stream definitions and the immutable, validated registry snapshot the
classifier iterates.

Invariants checked on construction:
- stream ids are unique
- priorities are unique among active definitions
- exactly one active Common definition, evaluated last
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from streamint.errors import RegistryError, StreamNotFound
from streamint.reference.subjects import SubjectStore
from streamint.rules.definitions import StreamRule, StreamType


@dataclass(frozen=True)
class StreamDefinition:
    id: int
    name: str
    priority: int
    rule: StreamRule
    active: bool = True
    description: Optional[str] = None

    @property
    def stream_type(self) -> StreamType:
        return self.rule.stream_type

    @property
    def is_fallback(self) -> bool:
        return self.stream_type == StreamType.COMMON

    def summary(self) -> Dict[str, Any]:
        """Public listing shape: no rule payload. The rule's own description wins when it has one."""
        description = getattr(self.rule, "description", None) or self.description
        return {"id": self.id, "name": self.name, "description": description}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
            "active": self.active,
            "description": self.description,
            "rule": self.rule.to_dict(),
        }


class StreamRegistry:
    """Read-only, priority-ordered collection of stream definitions."""

    def __init__(self, definitions: Iterable[StreamDefinition]):
        defs = list(definitions)

        seen_ids = set()
        for d in defs:
            if d.id in seen_ids:
                raise RegistryError(f"Duplicate stream id {d.id}")
            seen_ids.add(d.id)

        active = [d for d in defs if d.active]

        priorities: Dict[int, str] = {}
        for d in active:
            if d.priority in priorities:
                raise RegistryError(
                    f"Streams '{priorities[d.priority]}' and '{d.name}' share priority {d.priority}"
                )
            priorities[d.priority] = d.name

        fallbacks = [d for d in active if d.is_fallback]
        if len(fallbacks) != 1:
            raise RegistryError(f"Expected exactly one active Common stream, found {len(fallbacks)}")
        fallback = fallbacks[0]
        if any(d.priority > fallback.priority for d in active):
            raise RegistryError(f"Common stream '{fallback.name}' must carry the lowest evaluation priority")

        self._all: Dict[int, StreamDefinition] = {d.id: d for d in defs}
        self._ordered: Tuple[StreamDefinition, ...] = tuple(
            sorted((d for d in active if not d.is_fallback), key=lambda d: d.priority)
        )
        self._fallback = fallback

    @property
    def fallback(self) -> StreamDefinition:
        return self._fallback

    def ordered(self) -> Tuple[StreamDefinition, ...]:
        """Active, non-fallback definitions in evaluation order."""
        return self._ordered

    def active(self) -> List[StreamDefinition]:
        return sorted(self._ordered + (self._fallback,), key=lambda d: d.id)

    def get(self, stream_id: int) -> StreamDefinition:
        """
        Active stream by id.

        Raises:
            StreamNotFound: unknown or inactive id
        """
        d = self._all.get(stream_id)
        if d is None or not d.active:
            raise StreamNotFound(stream_id)
        return d

    def check_subjects(self, store: SubjectStore) -> List[str]:
        """
        Problems with subject references: ids that are unknown, inactive,
        or not A/L. Empty list means every rule references classifiable
        subjects.
        """
        problems = []
        for d in self.active():
            referenced = sorted(d.rule.subject_ids())
            found = store.get_active_subjects(referenced)
            for sid in referenced:
                subject = found.get(sid)
                if subject is None:
                    problems.append(f"{d.name}: subject {sid} unknown or inactive")
                elif not subject.classifiable:
                    problems.append(f"{d.name}: subject {sid} ({subject.name}) is not A/L")
        return problems

    def __len__(self) -> int:
        return len(self._all)


class StreamStore(Protocol):
    def load_registry(self) -> StreamRegistry:
        ...


class InMemoryStreamStore:
    def __init__(self, registry: StreamRegistry):
        self._registry = registry

    def load_registry(self) -> StreamRegistry:
        return self._registry
