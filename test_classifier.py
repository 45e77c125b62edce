"""
Tests for validation, priority-ordered classification, the registry and
batch classification, all against the reference curriculum held in memory.
"""

import itertools
import random

import pytest

from streamint.classify.batch import classify_batch
from streamint.classify.classifier import EVALUATORS, FALLBACK_RULE, StreamClassifier, classify_subjects
from streamint.classify.service import StreamService
from streamint.errors import RegistryError, StreamNotFound
from streamint.reference.curriculum import (
    REFERENCE_STREAMS,
    REFERENCE_SUBJECTS,
    reference_registry,
    reference_subject_store,
)
from streamint.reference.registry import InMemoryStreamStore, StreamDefinition, StreamRegistry
from streamint.reference.subjects import InMemorySubjectStore, Subject, SubjectLevel
from streamint.rules.definitions import CommerceRule, CommonRule, PhysicalScienceRule, ids
from streamint.validate.input import ValidationErrorKind, validate_subject_ids


PHYSICAL = "Physical Science Stream"
BIOLOGICAL = "Biological Science Stream"
COMMERCE = "Commerce Stream"
ENGINEERING = "Engineering Technology Stream"
BIOSYSTEMS = "Bio Systems Technology Stream"
ARTS = "Arts Stream"
COMMON = "Common"


@pytest.fixture
def classifier():
    return StreamClassifier(reference_registry(), reference_subject_store())


class CountingSubjectStore(InMemorySubjectStore):
    """Records every lookup so tests can see how often the store is hit."""

    def __init__(self, subjects):
        super().__init__(subjects)
        self.calls = []

    def get_active_subjects(self, subject_ids):
        self.calls.append(list(subject_ids))
        return super().get_active_subjects(subject_ids)


# =============================================================================
# CLASSIFICATION SCENARIOS
# =============================================================================

@pytest.mark.parametrize("triple, stream, tag", [
    ([6, 1, 2], PHYSICAL, "three_physical_sciences"),
    ([7, 1, 2], PHYSICAL, "three_physical_sciences"),
    ([7, 6, 1], PHYSICAL, "three_physical_sciences"),
    ([5, 2, 1], BIOLOGICAL, "biology_plus_two_sciences"),
    ([5, 2, 3], BIOLOGICAL, "biology_plus_two_sciences"),
    ([5, 4, 2], BIOLOGICAL, "biology_plus_two_sciences"),
    ([27, 17, 28], COMMERCE, "all_from_core_commerce"),
    ([17, 28, 18], COMMERCE, "two_core_one_supporting"),
    ([27, 17, 6], COMMERCE, "two_core_one_supporting"),
    ([47, 49, 17], ENGINEERING, "engineering_tech_combination"),
    ([48, 49, 3], BIOSYSTEMS, "biosystems_tech_combination"),
    ([50, 51, 52], ARTS, "three_national_languages"),
    ([50, 53, 54], ARTS, "national_plus_classical_languages"),
    ([50, 57, 29], ARTS, "two_languages_one_religion_aesthetic"),
    ([18, 21, 23], ARTS, "standard_arts_combination"),
    ([17, 18, 29], ARTS, "standard_arts_combination"),
    ([23, 38, 41], ARTS, "standard_arts_combination"),
    ([1, 17, 29], COMMON, FALLBACK_RULE),
    ([2, 27, 38], COMMON, FALLBACK_RULE),
    ([5, 17, 57], COMMON, FALLBACK_RULE),
    ([38, 41, 39], COMMON, FALLBACK_RULE),
    ([17, 1, 29], COMMON, FALLBACK_RULE),
    ([3, 4, 16], COMMON, FALLBACK_RULE),
    ([17, 5, 1], COMMON, FALLBACK_RULE),
])
def test_reference_scenarios(classifier, triple, stream, tag):
    res = classifier.classify(triple)
    assert res.valid, res.errors
    assert res.stream_name == stream
    assert res.matched_rule == tag
    assert res.errors == []


def test_result_dict_shape(classifier):
    data = classifier.classify([6, 1, 2]).to_dict()
    assert data == {
        "valid": True,
        "streamId": 4,
        "streamName": PHYSICAL,
        "matchedRule": "three_physical_sciences",
        "errors": [],
    }


def test_order_of_ids_does_not_matter(classifier):
    expected = classifier.classify([17, 28, 18])
    for perm in itertools.permutations([17, 28, 18]):
        res = classifier.classify(list(perm))
        assert (res.stream_id, res.matched_rule) == (expected.stream_id, expected.matched_rule)


def test_same_input_same_answer(classifier):
    first = classifier.classify([23, 38, 41])
    for _ in range(5):
        assert classifier.classify([23, 38, 41]) == first


def test_every_valid_triple_gets_exactly_one_stream(classifier):
    rng = random.Random(7)
    all_ids = [s.id for s in REFERENCE_SUBJECTS]
    active_ids = {d.id for d in reference_registry().active()}

    for _ in range(300):
        triple = rng.sample(all_ids, 3)
        res = classifier.classify(triple)
        assert res.valid
        assert res.stream_id in active_ids
        assert res.matched_rule


def test_convenience_function():
    res = classify_subjects([27, 17, 28], reference_registry(), reference_subject_store())
    assert res.stream_name == COMMERCE


# =============================================================================
# VALIDATION
# =============================================================================

@pytest.mark.parametrize("triple, kind", [
    ([1, 2], ValidationErrorKind.MALFORMED_INPUT),
    ([1, 2, 3, 4], ValidationErrorKind.MALFORMED_INPUT),
    ([], ValidationErrorKind.MALFORMED_INPUT),
    ([1, "2", 3], ValidationErrorKind.MALFORMED_INPUT),
    ([1, 2, -3], ValidationErrorKind.MALFORMED_INPUT),
    ([1, True, 3], ValidationErrorKind.MALFORMED_INPUT),
    ([1, 1, 2], ValidationErrorKind.DUPLICATE_SUBJECT),
    ([9999, 9998, 9997], ValidationErrorKind.UNKNOWN_OR_INACTIVE_SUBJECT),
])
def test_invalid_inputs(classifier, triple, kind):
    res = classifier.classify(triple)
    assert not res.valid
    assert res.error_kind == kind
    assert res.stream_id is None
    assert res.stream_name is None
    assert res.matched_rule is None
    assert len(res.errors) == 1


@pytest.mark.parametrize("triple", [
    [1, 2],
    [1, 2, 3, 4],
    [1, 1, 2],
    [9999, 9998, 9997],
    [1, 2, 101],    # inactive
    [1, 2, 100],    # O/L
])
def test_invalid_input_never_reaches_evaluators(monkeypatch, triple):
    calls = []

    def recording(evaluator):
        def wrapped(subject_ids, rule):
            calls.append(sorted(subject_ids))
            return evaluator(subject_ids, rule)
        return wrapped

    for stream_type, evaluator in list(EVALUATORS.items()):
        monkeypatch.setitem(EVALUATORS, stream_type, recording(evaluator))

    subjects = list(REFERENCE_SUBJECTS) + [
        Subject(id=100, code="OL1", name="O/L Science", level=SubjectLevel.OL),
        Subject(id=101, code="X01", name="Retired Subject", active=False),
    ]
    classifier = StreamClassifier(reference_registry(), InMemorySubjectStore(subjects))

    assert not classifier.classify(triple).valid
    assert calls == []

    # the recorder does see a valid triple
    assert classifier.classify([6, 1, 2]).valid
    assert calls == [[1, 2, 6]]


def test_non_list_input(classifier):
    res = classifier.classify("6,1,2")
    assert not res.valid
    assert res.error_kind == ValidationErrorKind.MALFORMED_INPUT


def test_validation_messages(classifier):
    assert classifier.classify([1, 1, 2]).errors == ["All 3 subjects must be different"]
    assert classifier.classify([1, 2, 9999]).errors == [
        "Subject(s) with ID(s) 9999 not found or inactive"
    ]
    assert "Exactly 3 subjects" in classifier.classify([1, 2]).errors[0]


def test_inactive_and_ordinary_level_subjects():
    subjects = list(REFERENCE_SUBJECTS) + [
        Subject(id=100, code="OL1", name="O/L Science", level=SubjectLevel.OL),
        Subject(id=101, code="X01", name="Retired Subject", active=False),
    ]
    classifier = StreamClassifier(reference_registry(), InMemorySubjectStore(subjects))

    res = classifier.classify([1, 2, 100])
    assert res.error_kind == ValidationErrorKind.WRONG_LEVEL
    assert res.errors == ["Found non-A/L: O/L Science"]

    res = classifier.classify([1, 2, 101])
    assert res.error_kind == ValidationErrorKind.UNKNOWN_OR_INACTIVE_SUBJECT


def test_validation_resolves_subjects_in_request_order():
    validation = validate_subject_ids([6, 1, 2], reference_subject_store())
    assert validation.ok
    assert [s.name for s in validation.subjects] == ["Combined Mathematics", "Physics", "Chemistry"]


# =============================================================================
# REGISTRY
# =============================================================================

def common(id=9, priority=100, active=True):
    return StreamDefinition(id=id, name="Common", priority=priority, rule=CommonRule(), active=active)


def test_first_accepting_stream_wins():
    shared = ids([1, 2, 3])
    physical = StreamDefinition(id=1, name="Physical", priority=10, rule=PhysicalScienceRule(shared))
    commerce = StreamDefinition(id=2, name="Commerce", priority=20, rule=CommerceRule(shared, ids([])))
    store = reference_subject_store()

    res = StreamClassifier(StreamRegistry([physical, commerce, common()]), store).classify([1, 2, 3])
    assert res.stream_name == "Physical"

    commerce_first = StreamDefinition(id=2, name="Commerce", priority=5, rule=CommerceRule(shared, ids([])))
    res = StreamClassifier(StreamRegistry([physical, commerce_first, common()]), store).classify([1, 2, 3])
    assert res.stream_name == "Commerce"


def test_inactive_streams_are_skipped():
    shared = ids([1, 2, 3])
    physical = StreamDefinition(
        id=1, name="Physical", priority=10, rule=PhysicalScienceRule(shared), active=False
    )
    registry = StreamRegistry([physical, common()])
    res = StreamClassifier(registry, reference_subject_store()).classify([1, 2, 3])
    assert res.stream_name == "Common"
    assert res.matched_rule == FALLBACK_RULE

    with pytest.raises(StreamNotFound):
        registry.get(1)


def test_registry_orders_by_priority():
    names = [d.name for d in reference_registry().ordered()]
    assert names == [PHYSICAL, BIOLOGICAL, ENGINEERING, BIOSYSTEMS, COMMERCE, ARTS]
    assert reference_registry().fallback.name == COMMON


def test_duplicate_stream_id_rejected():
    physical = StreamDefinition(id=9, name="Physical", priority=10, rule=PhysicalScienceRule(ids([1])))
    with pytest.raises(RegistryError):
        StreamRegistry([physical, common(id=9)])


def test_shared_active_priority_rejected():
    a = StreamDefinition(id=1, name="A", priority=10, rule=PhysicalScienceRule(ids([1])))
    b = StreamDefinition(id=2, name="B", priority=10, rule=PhysicalScienceRule(ids([2])))
    with pytest.raises(RegistryError):
        StreamRegistry([a, b, common()])


def test_inactive_stream_may_share_priority():
    a = StreamDefinition(id=1, name="A", priority=10, rule=PhysicalScienceRule(ids([1])))
    b = StreamDefinition(id=2, name="B", priority=10, rule=PhysicalScienceRule(ids([2])), active=False)
    assert len(StreamRegistry([a, b, common()])) == 3


@pytest.mark.parametrize("fallbacks", [
    [],
    [common(id=9), common(id=10, priority=101)],
    [common(active=False)],
])
def test_exactly_one_active_common_required(fallbacks):
    a = StreamDefinition(id=1, name="A", priority=10, rule=PhysicalScienceRule(ids([1])))
    with pytest.raises(RegistryError):
        StreamRegistry([a] + fallbacks)


def test_common_must_be_evaluated_last():
    a = StreamDefinition(id=1, name="A", priority=200, rule=PhysicalScienceRule(ids([1])))
    with pytest.raises(RegistryError):
        StreamRegistry([a, common(priority=100)])


def test_reference_streams_reference_classifiable_subjects():
    assert reference_registry().check_subjects(reference_subject_store()) == []


# =============================================================================
# BATCH
# =============================================================================

def test_batch_keeps_input_order_and_isolates_failures(classifier):
    triples = [[6, 1, 2], [1, 2], [27, 17, 28], [9999, 9998, 9997], "oops", [1, 1, 2], [50, 51, 52]]
    results = classify_batch(classifier, triples)

    assert len(results) == len(triples)
    assert [r.valid for r in results] == [True, False, True, False, False, False, True]
    assert results[0].stream_name == PHYSICAL
    assert results[2].stream_name == COMMERCE
    assert results[6].stream_name == ARTS
    assert results[5].error_kind == ValidationErrorKind.DUPLICATE_SUBJECT


def test_batch_matches_single_classification(classifier):
    rng = random.Random(11)
    all_ids = [s.id for s in REFERENCE_SUBJECTS]
    triples = [rng.sample(all_ids, 3) for _ in range(50)]

    sequential = classify_batch(classifier, triples)
    threaded = classify_batch(classifier, triples, max_workers=4)

    assert sequential == threaded
    assert sequential == [classifier.classify(t) for t in triples]


def test_batch_reads_subjects_once():
    store = CountingSubjectStore(REFERENCE_SUBJECTS)
    classifier = StreamClassifier(reference_registry(), store)

    classify_batch(classifier, [[6, 1, 2], [5, 2, 1], [27, 17, 28]], max_workers=2)
    assert store.calls == [[1, 2, 5, 6, 17, 27, 28]]


def test_empty_batch(classifier):
    assert classify_batch(classifier, []) == []


# =============================================================================
# SERVICE
# =============================================================================

@pytest.fixture
def service():
    return StreamService(
        subjects=reference_subject_store(),
        streams=InMemoryStreamStore(reference_registry()),
        batch_workers=2,
    )


def test_service_lists_active_streams_by_id(service):
    listing = service.list_streams()
    assert [s["id"] for s in listing] == [1, 2, 3, 4, 5, 6, 7]
    assert set(listing[0]) == {"id", "name", "description"}

    descriptions = {s["id"]: s["description"] for s in listing}
    assert descriptions[7] == CommonRule().description
    assert descriptions[2] is None


def test_service_stream_lookup(service):
    assert service.get_stream(2).name == COMMERCE
    with pytest.raises(StreamNotFound):
        service.get_stream(42)


def test_service_subjects_for_stream(service):
    physical = service.get_subjects_for_stream(4)
    assert [s.name for s in physical] == ["Chemistry", "Combined Mathematics", "Higher Mathematics", "Physics"]

    common_subjects = service.get_subjects_for_stream(7)
    assert len(common_subjects) == len(REFERENCE_SUBJECTS)
    names = [s.name for s in common_subjects]
    assert names == sorted(names)


def test_service_explain(service):
    report = service.explain([27, 17, 6])
    assert report["result"]["streamName"] == COMMERCE
    verdicts = {e["stream_name"]: e["matches"] for e in report["evaluations"]}
    assert verdicts[COMMERCE] is True
    assert verdicts[PHYSICAL] is False
    assert len(report["evaluations"]) == len(REFERENCE_STREAMS) - 1


def test_service_explain_invalid(service):
    report = service.explain([1, 1, 2])
    assert report["result"]["valid"] is False
    assert report["evaluations"] == []


def test_service_batch(service):
    results = service.classify_batch([[6, 1, 2], [1, 2]])
    assert [r.valid for r in results] == [True, False]
