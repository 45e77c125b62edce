# streamint/reference/curriculum.py
"""
Reference A/L curriculum: the subject catalogue and the seven stream
definitions the platform ships with.

Subject ids follow the catalogue insertion order (1..63). Stream ids and
basket contents match the production stream table; priorities encode the
evaluation order (specific sciences and technology first, then Commerce,
then Arts, Common last).
"""

from __future__ import annotations

from typing import List

from streamint.reference.registry import StreamDefinition, StreamRegistry
from streamint.reference.subjects import InMemorySubjectStore, Subject, SubjectLevel
from streamint.rules.definitions import (
    AreaBasket,
    AreaConstraint,
    ArtsRule,
    Basket,
    BiologicalScienceRule,
    CommerceRule,
    CommonRule,
    Exclusion,
    ExclusiveBasket,
    LanguageBasket,
    PhysicalScienceRule,
    RejectionGroup,
    StreamType,
    TechnologyRule,
    core_sets,
    ids,
)


# =============================================================================
# SUBJECTS
# =============================================================================

_AL_SUBJECTS = [
    ("01", "Physics"),
    ("02", "Chemistry"),
    ("07", "Mathematics"),
    ("08", "Agricultural Science"),
    ("09", "Biology"),
    ("10", "Combined Mathematics"),
    ("11", "Higher Mathematics"),
    ("12", "Common General Test"),
    ("13", "General English"),
    ("14", "Civil Technology"),
    ("15", "Mechanical Technology"),
    ("16", "Electrical, Electronic and Information Technology"),
    ("17", "Food Technology"),
    ("18", "Agro Technology"),
    ("19", "Bio Resource Technology"),
    ("20", "Information & Communication Technology"),
    ("21", "Economics"),
    ("22", "Geography"),
    ("23", "Political Science"),
    ("24", "Logic and Scientific Method"),
    ("25A", "History of Sri Lanka & India"),
    ("25B", "History of Sri Lanka & Europe"),
    ("25C", "History of Sri Lanka & Modern World"),
    ("28", "Home Economics"),
    ("29", "Communication & Media Studies"),
    ("31", "Business Statistics"),
    ("32", "Business Studies"),
    ("33", "Accounting"),
    ("41", "Buddhism"),
    ("42", "Hinduism"),
    ("43", "Christianity"),
    ("44", "Islam"),
    ("45", "Buddhist Civilization"),
    ("46", "Hindu Civilization"),
    ("47", "Islam Civilization"),
    ("48", "Greek and Roman Civilization"),
    ("49", "Christian Civilization"),
    ("51", "Art"),
    ("52", "Dancing (Indigenous)"),
    ("53", "Dancing (Bharatha)"),
    ("54", "Oriental Music"),
    ("55", "Carnatic Music"),
    ("56", "Western Music"),
    ("57", "Drama and Theatre (Sinhala)"),
    ("58", "Drama and Theatre (Tamil)"),
    ("59", "Drama and Theatre (English)"),
    ("65", "Engineering Technology"),
    ("66", "Bio Systems Technology"),
    ("67", "Science for Technology"),
    ("71", "Sinhala"),
    ("72", "Tamil"),
    ("73", "English"),
    ("74", "Pali"),
    ("75", "Sanskrit"),
    ("78", "Arabic"),
    ("79", "Malay"),
    ("81", "French"),
    ("82", "German"),
    ("83", "Russian"),
    ("84", "Hindi"),
    ("86", "Chinese"),
    ("87", "Japanese"),
    ("88", "Korean"),
]

REFERENCE_SUBJECTS: List[Subject] = [
    Subject(id=i, code=code, name=name, level=SubjectLevel.AL)
    for i, (code, name) in enumerate(_AL_SUBJECTS, start=1)
]


# =============================================================================
# BASKETS
# =============================================================================

# Arts
SOCIAL_SCIENCES = ids([17, 18, 21, 22, 23, 24, 4, 25, 16, 28, 26, 19, 20, 10, 12, 14, 11, 13, 15])
RELIGIONS_CIVILIZATIONS = ids([29, 33, 30, 34, 31, 37, 32, 35, 36])
AESTHETICS = ids([38, 39, 40, 41, 42, 43, 44, 45, 46])
NATIONAL_LANGUAGES = ids([50, 51, 52])
CLASSICAL_LANGUAGES = ids([55, 53, 54])
FOREIGN_LANGUAGES = ids([61, 57, 58, 60, 62, 56, 59, 63])

# Commerce
CORE_COMMERCE = ids([27, 17, 28])
SUPPORTING_COMMERCE = ids([4, 18, 26, 58, 6, 3, 21, 22, 23, 19, 52, 20, 57, 16])

# Sciences
BIOLOGY = ids([5])
BIOLOGY_OPTIONS = ids([1, 2, 3, 4])
PHYSICAL_SCIENCES = ids([7, 6, 1, 2])

# Technology
ENGINEERING_TECH_CORE = ids([47, 49])
BIOSYSTEMS_TECH_CORE = ids([48, 49])
TECHNOLOGY_OPTIONS = ids([17, 18, 24, 52, 25, 16, 38, 27, 4, 28, 3])

# Subjects that mark a combination as belonging to another stream when
# they turn up together in a would-be Arts triple.
# TODO: have the curriculum board confirm these groups; they paper over
# basket overlap rather than encode a published rule.
RECOGNIZED_PHYSICAL_SCIENCES = PHYSICAL_SCIENCES | ids([3])
RECOGNIZED_TECHNOLOGY = ENGINEERING_TECH_CORE | BIOSYSTEMS_TECH_CORE

ARTS_REJECTIONS = (
    RejectionGroup(name="physical_sciences", subjects=RECOGNIZED_PHYSICAL_SCIENCES),
    RejectionGroup(name="core_commerce", subjects=CORE_COMMERCE),
    RejectionGroup(name="technology", subjects=RECOGNIZED_TECHNOLOGY),
    RejectionGroup(name="biology_with_science", subjects=BIOLOGY_OPTIONS, anchors=BIOLOGY),
)

ARTS_RESIDUAL_CORES = core_sets({
    "Physical Science Stream": RECOGNIZED_PHYSICAL_SCIENCES,
    "Biological Science Stream": BIOLOGY,
    "Commerce Stream": CORE_COMMERCE,
    "Technology Streams": RECOGNIZED_TECHNOLOGY,
})


# =============================================================================
# STREAMS
# =============================================================================

ARTS_RULE = ArtsRule(
    basket1=Basket(
        name="Social Sciences / Applied Social Studies",
        subjects=SOCIAL_SCIENCES,
        min_required=1,
        max_allowed=3,
    ),
    basket2=ExclusiveBasket(
        name="Religions and Civilizations",
        subjects=RELIGIONS_CIVILIZATIONS,
        max_allowed=2,
        exclusions=(
            Exclusion(if_selected=ids([29]), then_exclude=ids([33])),
            Exclusion(if_selected=ids([30]), then_exclude=ids([34])),
            Exclusion(if_selected=ids([31]), then_exclude=ids([37])),
            Exclusion(if_selected=ids([32]), then_exclude=ids([35])),
        ),
    ),
    basket3=AreaBasket(
        name="Aesthetic Studies",
        subjects=AESTHETICS,
        max_allowed=2,
        areas=(
            AreaConstraint(area="dancing", subjects=ids([39, 40])),
            AreaConstraint(area="music", subjects=ids([41, 42, 43])),
            AreaConstraint(area="drama", subjects=ids([44, 45, 46])),
        ),
    ),
    languages=LanguageBasket(
        name="Languages",
        national=NATIONAL_LANGUAGES,
        classical=CLASSICAL_LANGUAGES,
        foreign=FOREIGN_LANGUAGES,
        max_per_group=2,
        max_allowed=2,
    ),
    rejections=ARTS_REJECTIONS,
    residual_cores=ARTS_RESIDUAL_CORES,
)

REFERENCE_STREAMS: List[StreamDefinition] = [
    StreamDefinition(id=1, name="Arts Stream", priority=60, rule=ARTS_RULE),
    StreamDefinition(
        id=2,
        name="Commerce Stream",
        priority=50,
        rule=CommerceRule(core=CORE_COMMERCE, supporting=SUPPORTING_COMMERCE),
    ),
    StreamDefinition(
        id=3,
        name="Biological Science Stream",
        priority=20,
        rule=BiologicalScienceRule(required=BIOLOGY, options=BIOLOGY_OPTIONS),
    ),
    StreamDefinition(
        id=4,
        name="Physical Science Stream",
        priority=10,
        rule=PhysicalScienceRule(allowed_subjects=PHYSICAL_SCIENCES),
    ),
    StreamDefinition(
        id=5,
        name="Engineering Technology Stream",
        priority=30,
        rule=TechnologyRule(
            required=ENGINEERING_TECH_CORE,
            options=TECHNOLOGY_OPTIONS,
            stream_type=StreamType.ENGINEERING_TECHNOLOGY,
        ),
    ),
    StreamDefinition(
        id=6,
        name="Bio Systems Technology Stream",
        priority=40,
        rule=TechnologyRule(
            required=BIOSYSTEMS_TECH_CORE,
            options=TECHNOLOGY_OPTIONS,
            stream_type=StreamType.BIOSYSTEMS_TECHNOLOGY,
        ),
    ),
    StreamDefinition(
        id=7,
        name="Common",
        priority=100,
        rule=CommonRule(),
        description="Default stream for combinations not matching other criteria",
    ),
]


def reference_subject_store() -> InMemorySubjectStore:
    return InMemorySubjectStore(REFERENCE_SUBJECTS)


def reference_registry() -> StreamRegistry:
    return StreamRegistry(REFERENCE_STREAMS)
