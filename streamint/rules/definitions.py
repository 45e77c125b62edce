# streamint/rules/definitions.py
"""
Stream rule payloads as an explicit tagged union.

Each stream type has its own frozen dataclass; the `stream_type` tag picks
the evaluator. Payloads round-trip through plain JSON-compatible dicts
(`to_dict` / `rule_from_dict`) so they can be stored in the streams table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, Tuple, Union

from streamint.errors import RegistryError


class StreamType(str, Enum):
    PHYSICAL_SCIENCE = "physical_science"
    BIOLOGICAL_SCIENCE = "biological_science"
    COMMERCE = "commerce"
    ENGINEERING_TECHNOLOGY = "engineering_technology"
    BIOSYSTEMS_TECHNOLOGY = "biosystems_technology"
    ARTS = "arts"
    COMMON = "common"


TECHNOLOGY_TYPES = (StreamType.ENGINEERING_TECHNOLOGY, StreamType.BIOSYSTEMS_TECHNOLOGY)


def ids(values: Iterable[int]) -> FrozenSet[int]:
    return frozenset(int(v) for v in values)


def core_sets(mapping: Dict[str, Iterable[int]]) -> Tuple[Tuple[str, FrozenSet[int]], ...]:
    """Name -> subject ids as hashable pairs, sorted by name."""
    return tuple(sorted((name, ids(values)) for name, values in mapping.items()))


def _sorted(values: Iterable[int]) -> list:
    return sorted(values)


# =============================================================================
# SIMPLE STREAM RULES
# =============================================================================

@dataclass(frozen=True)
class PhysicalScienceRule:
    allowed_subjects: FrozenSet[int]

    stream_type: ClassVar[StreamType] = StreamType.PHYSICAL_SCIENCE

    def subject_ids(self) -> FrozenSet[int]:
        return self.allowed_subjects

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.stream_type.value, "allowed_subjects": _sorted(self.allowed_subjects)}


@dataclass(frozen=True)
class BiologicalScienceRule:
    required: FrozenSet[int]
    options: FrozenSet[int]

    stream_type: ClassVar[StreamType] = StreamType.BIOLOGICAL_SCIENCE

    def subject_ids(self) -> FrozenSet[int]:
        return self.required | self.options

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.stream_type.value,
            "required": _sorted(self.required),
            "options": _sorted(self.options),
        }


@dataclass(frozen=True)
class CommerceRule:
    core: FrozenSet[int]
    supporting: FrozenSet[int]

    stream_type: ClassVar[StreamType] = StreamType.COMMERCE

    def subject_ids(self) -> FrozenSet[int]:
        return self.core | self.supporting

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.stream_type.value,
            "core": _sorted(self.core),
            "supporting": _sorted(self.supporting),
        }


@dataclass(frozen=True)
class TechnologyRule:
    """Shared shape of the Engineering and Biosystems Technology rules."""
    required: FrozenSet[int]
    options: FrozenSet[int]
    stream_type: StreamType = StreamType.ENGINEERING_TECHNOLOGY

    def __post_init__(self):
        if self.stream_type not in TECHNOLOGY_TYPES:
            raise RegistryError(f"TechnologyRule cannot carry type '{self.stream_type}'")

    def subject_ids(self) -> FrozenSet[int]:
        return self.required | self.options

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.stream_type.value,
            "required": _sorted(self.required),
            "options": _sorted(self.options),
        }


@dataclass(frozen=True)
class CommonRule:
    description: str = "Any three-subject combination that does not fulfill criteria for other streams"

    stream_type: ClassVar[StreamType] = StreamType.COMMON

    def subject_ids(self) -> FrozenSet[int]:
        return frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.stream_type.value, "description": self.description}


# =============================================================================
# ARTS RULE (baskets + constraints)
# =============================================================================

@dataclass(frozen=True)
class Basket:
    name: str
    subjects: FrozenSet[int]
    min_required: int = 0
    max_allowed: int = 3

    def count(self, subject_ids: FrozenSet[int]) -> int:
        return len(subject_ids & self.subjects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "subjects": _sorted(self.subjects),
            "min_required": self.min_required,
            "max_allowed": self.max_allowed,
        }


@dataclass(frozen=True)
class Exclusion:
    """Selecting any of `if_selected` forbids every subject in `then_exclude`."""
    if_selected: FrozenSet[int]
    then_exclude: FrozenSet[int]

    def violated_by(self, subject_ids: FrozenSet[int]) -> bool:
        return bool(subject_ids & self.if_selected) and bool(subject_ids & self.then_exclude)

    def to_dict(self) -> Dict[str, Any]:
        return {"if": _sorted(self.if_selected), "then_exclude": _sorted(self.then_exclude)}


@dataclass(frozen=True)
class ExclusiveBasket(Basket):
    exclusions: Tuple[Exclusion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["exclusions"] = [e.to_dict() for e in self.exclusions]
        return data


@dataclass(frozen=True)
class AreaConstraint:
    area: str
    subjects: FrozenSet[int]
    max_from_area: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"area": self.area, "subjects": _sorted(self.subjects), "max_from_area": self.max_from_area}


@dataclass(frozen=True)
class AreaBasket(Basket):
    areas: Tuple[AreaConstraint, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["area_constraints"] = [a.to_dict() for a in self.areas]
        return data


@dataclass(frozen=True)
class LanguageBasket:
    name: str
    national: FrozenSet[int]
    classical: FrozenSet[int]
    foreign: FrozenSet[int]
    max_per_group: int = 2
    max_allowed: int = 2

    @property
    def subjects(self) -> FrozenSet[int]:
        return self.national | self.classical | self.foreign

    def groups(self) -> Dict[str, FrozenSet[int]]:
        return {"national": self.national, "classical": self.classical, "foreign": self.foreign}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "national": _sorted(self.national),
            "classical": _sorted(self.classical),
            "foreign": _sorted(self.foreign),
            "max_per_group": self.max_per_group,
            "max_allowed": self.max_allowed,
        }


@dataclass(frozen=True)
class RejectionGroup:
    """
    Subjects whose joint presence marks a triple as belonging to another stream.

    Satisfied when every anchor is present and at least `min_count` of the
    triple fall in `anchors | subjects`.
    """
    name: str
    subjects: FrozenSet[int]
    min_count: int = 2
    anchors: FrozenSet[int] = frozenset()

    def satisfied_by(self, subject_ids: FrozenSet[int]) -> bool:
        if not self.anchors <= subject_ids:
            return False
        return len(subject_ids & (self.anchors | self.subjects)) >= self.min_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "subjects": _sorted(self.subjects),
            "min_count": self.min_count,
            "anchors": _sorted(self.anchors),
        }


@dataclass(frozen=True)
class ArtsRule:
    basket1: Basket
    basket2: ExclusiveBasket
    basket3: AreaBasket
    languages: LanguageBasket
    rejections: Tuple[RejectionGroup, ...] = ()
    # (stream name, core subject ids) pairs; build with core_sets()
    residual_cores: Tuple[Tuple[str, FrozenSet[int]], ...] = ()

    stream_type: ClassVar[StreamType] = StreamType.ARTS

    @property
    def arts_subjects(self) -> FrozenSet[int]:
        """Every subject that sits in some Arts basket."""
        return self.basket1.subjects | self.basket2.subjects | self.basket3.subjects | self.languages.subjects

    def subject_ids(self) -> FrozenSet[int]:
        return self.arts_subjects

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.stream_type.value,
            "baskets": {
                "basket1": self.basket1.to_dict(),
                "basket2": self.basket2.to_dict(),
                "basket3": self.basket3.to_dict(),
                "languages": self.languages.to_dict(),
            },
            "rejections": [r.to_dict() for r in self.rejections],
            "residual_cores": {k: _sorted(v) for k, v in self.residual_cores},
        }


StreamRule = Union[
    PhysicalScienceRule,
    BiologicalScienceRule,
    CommerceRule,
    TechnologyRule,
    ArtsRule,
    CommonRule,
]


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

def _basket(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": data.get("name", ""),
        "subjects": ids(data.get("subjects", [])),
        "min_required": int(data.get("min_required", 0)),
        "max_allowed": int(data.get("max_allowed", 3)),
    }


def _arts_from_dict(payload: Dict[str, Any]) -> ArtsRule:
    baskets = payload["baskets"]
    b2 = baskets["basket2"]
    b3 = baskets["basket3"]
    lang = baskets["languages"]
    return ArtsRule(
        basket1=Basket(**_basket(baskets["basket1"])),
        basket2=ExclusiveBasket(
            **_basket(b2),
            exclusions=tuple(
                Exclusion(if_selected=ids(e["if"]), then_exclude=ids(e["then_exclude"]))
                for e in b2.get("exclusions", [])
            ),
        ),
        basket3=AreaBasket(
            **_basket(b3),
            areas=tuple(
                AreaConstraint(
                    area=a["area"],
                    subjects=ids(a["subjects"]),
                    max_from_area=int(a.get("max_from_area", 1)),
                )
                for a in b3.get("area_constraints", [])
            ),
        ),
        languages=LanguageBasket(
            name=lang.get("name", "Languages"),
            national=ids(lang.get("national", [])),
            classical=ids(lang.get("classical", [])),
            foreign=ids(lang.get("foreign", [])),
            max_per_group=int(lang.get("max_per_group", 2)),
            max_allowed=int(lang.get("max_allowed", 2)),
        ),
        rejections=tuple(
            RejectionGroup(
                name=r["name"],
                subjects=ids(r["subjects"]),
                min_count=int(r.get("min_count", 2)),
                anchors=ids(r.get("anchors", [])),
            )
            for r in payload.get("rejections", [])
        ),
        residual_cores=core_sets(payload.get("residual_cores", {})),
    )


def rule_from_dict(payload: Dict[str, Any]) -> StreamRule:
    """
    Build a typed rule from its stored payload.

    Raises:
        RegistryError: unknown type tag or a malformed payload
    """
    try:
        stream_type = StreamType(payload["type"])
    except (KeyError, TypeError, ValueError) as e:
        raise RegistryError(f"Unknown or missing stream rule type in {payload!r}") from e

    try:
        if stream_type == StreamType.PHYSICAL_SCIENCE:
            return PhysicalScienceRule(allowed_subjects=ids(payload["allowed_subjects"]))
        if stream_type == StreamType.BIOLOGICAL_SCIENCE:
            return BiologicalScienceRule(required=ids(payload["required"]), options=ids(payload["options"]))
        if stream_type == StreamType.COMMERCE:
            return CommerceRule(core=ids(payload["core"]), supporting=ids(payload["supporting"]))
        if stream_type in TECHNOLOGY_TYPES:
            return TechnologyRule(
                required=ids(payload["required"]),
                options=ids(payload["options"]),
                stream_type=stream_type,
            )
        if stream_type == StreamType.ARTS:
            return _arts_from_dict(payload)
        return CommonRule(description=payload.get("description") or CommonRule.description)
    except (KeyError, TypeError, ValueError) as e:
        raise RegistryError(f"Malformed '{stream_type.value}' rule payload: {e}") from e
