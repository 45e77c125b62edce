"""
Tests for the per-stream rule evaluators.

Most cases use the reference curriculum rules; a few use small hand-built
rules to pin down the arithmetic of a single evaluator.
"""

import pytest

from streamint.errors import RegistryError
from streamint.reference.curriculum import ARTS_RULE, REFERENCE_STREAMS
from streamint.rules.arts import check_exceptions, evaluate_arts
from streamint.rules.commerce import evaluate_commerce
from streamint.rules.definitions import (
    BiologicalScienceRule,
    CommerceRule,
    PhysicalScienceRule,
    StreamType,
    TechnologyRule,
    ids,
    rule_from_dict,
)
from streamint.rules.science import evaluate_biological_science, evaluate_physical_science
from streamint.rules.technology import evaluate_technology


RULES = {d.stream_type: d.rule for d in REFERENCE_STREAMS}


# =============================================================================
# SCIENCE / COMMERCE / TECHNOLOGY
# =============================================================================

def test_physical_science_needs_three_allowed():
    rule = RULES[StreamType.PHYSICAL_SCIENCE]
    match = evaluate_physical_science(ids([6, 1, 2]), rule)
    assert match.matches
    assert match.rule == "three_physical_sciences"

    assert not evaluate_physical_science(ids([6, 1, 5]), rule).matches


def test_biological_science_requires_biology():
    rule = RULES[StreamType.BIOLOGICAL_SCIENCE]
    assert evaluate_biological_science(ids([5, 2, 1]), rule).rule == "biology_plus_two_sciences"
    assert evaluate_biological_science(ids([5, 4, 2]), rule).matches
    # no biology
    assert not evaluate_biological_science(ids([1, 2, 3]), rule).matches
    # only one option
    assert not evaluate_biological_science(ids([5, 2, 17]), rule).matches


def test_biological_science_small_rule():
    rule = BiologicalScienceRule(required=ids([5]), options=ids([1, 2]))
    match = evaluate_biological_science(ids([5, 1, 2]), rule)
    assert match.matches
    assert match.reasons["options"] == [1, 2]
    assert not evaluate_biological_science(ids([5, 1, 3]), rule).matches


def test_commerce_all_core():
    rule = RULES[StreamType.COMMERCE]
    match = evaluate_commerce(ids([27, 17, 28]), rule)
    assert match.matches
    assert match.rule == "all_from_core_commerce"


def test_commerce_two_core_one_supporting():
    rule = RULES[StreamType.COMMERCE]
    assert evaluate_commerce(ids([17, 28, 18]), rule).rule == "two_core_one_supporting"
    assert evaluate_commerce(ids([27, 17, 6]), rule).rule == "two_core_one_supporting"
    # second core subject missing
    assert not evaluate_commerce(ids([27, 18, 6]), rule).matches
    # third subject outside both baskets
    assert not evaluate_commerce(ids([27, 17, 29]), rule).matches


def test_commerce_small_rule():
    rule = CommerceRule(core=ids([1, 2, 3]), supporting=ids([4]))
    assert evaluate_commerce(ids([1, 2, 4]), rule).matches
    assert not evaluate_commerce(ids([1, 4, 5]), rule).matches


def test_engineering_and_biosystems_tags():
    eng = RULES[StreamType.ENGINEERING_TECHNOLOGY]
    bio = RULES[StreamType.BIOSYSTEMS_TECHNOLOGY]

    assert evaluate_technology(ids([47, 49, 17]), eng).rule == "engineering_tech_combination"
    assert evaluate_technology(ids([48, 49, 3]), bio).rule == "biosystems_tech_combination"
    # biosystems subject does not satisfy engineering
    assert not evaluate_technology(ids([48, 49, 3]), eng).matches


def test_technology_needs_an_option():
    rule = TechnologyRule(required=ids([47, 49]), options=ids([17]))
    assert not evaluate_technology(ids([47, 49, 29]), rule).matches
    assert not evaluate_technology(ids([47, 17, 29]), rule).matches


def test_technology_rule_rejects_foreign_tag():
    with pytest.raises(RegistryError):
        TechnologyRule(required=ids([1]), options=ids([2]), stream_type=StreamType.ARTS)


def test_physical_rule_reports_matched_subjects():
    rule = PhysicalScienceRule(allowed_subjects=ids([1, 2, 6, 7]))
    match = evaluate_physical_science(ids([1, 2, 29]), rule)
    assert not match.matches
    assert match.reasons["matched"] == [1, 2]


# =============================================================================
# ARTS
# =============================================================================

@pytest.mark.parametrize("triple, tag", [
    ([50, 51, 52], "three_national_languages"),
    ([50, 53, 54], "national_plus_classical_languages"),
    ([51, 52, 55], "national_plus_classical_languages"),
    ([50, 57, 29], "two_languages_one_religion_aesthetic"),
    ([52, 61, 38], "two_languages_one_religion_aesthetic"),
])
def test_arts_exceptions(triple, tag):
    match = evaluate_arts(ids(triple), ARTS_RULE)
    assert match.matches
    assert match.rule == tag
    assert match.reasons["step"] == "exception"


def test_classical_only_is_not_an_exception():
    assert check_exceptions(ids([53, 54, 55]), ARTS_RULE) is None


@pytest.mark.parametrize("triple", [
    [18, 21, 23],   # three social sciences
    [17, 18, 29],   # two social + religion
    [23, 38, 41],   # social + two aesthetics
    [19, 29, 38],   # social + religion + aesthetic
    [18, 50, 57],   # social + two languages
])
def test_standard_arts_combinations(triple):
    match = evaluate_arts(ids(triple), ARTS_RULE)
    assert match.matches, match.reasons
    assert match.rule == "standard_arts_combination"


@pytest.mark.parametrize("triple, group", [
    ([1, 2, 18], "physical_sciences"),
    ([17, 28, 29], "core_commerce"),
    ([47, 48, 18], "technology"),
    ([5, 1, 17], "biology_with_science"),
])
def test_hard_rejection(triple, group):
    match = evaluate_arts(ids(triple), ARTS_RULE)
    assert not match.matches
    assert match.reasons["step"] == "hard_rejection"
    assert match.reasons["group"] == group


def test_single_social_science_in_mixed_triple_rejected():
    match = evaluate_arts(ids([1, 17, 29]), ARTS_RULE)
    assert not match.matches
    assert match.reasons["step"] == "basket_accounting"


def test_too_few_arts_subjects_rejected():
    match = evaluate_arts(ids([2, 27, 38]), ARTS_RULE)
    assert not match.matches
    assert match.reasons["counts"]["any"] == 1


def test_aesthetics_without_social_science_rejected():
    match = evaluate_arts(ids([38, 41, 39]), ARTS_RULE)
    assert not match.matches
    assert match.reasons["step"] == "basket_accounting"


@pytest.mark.parametrize("triple", [
    [18, 29, 33],   # Buddhism excludes Buddhist Civilization
    [18, 41, 42],   # two music subjects
    [18, 39, 40],   # two dancing subjects
])
def test_constraint_violations(triple):
    match = evaluate_arts(ids(triple), ARTS_RULE)
    assert not match.matches
    assert match.reasons["step"] == "constraints"


def test_two_foreign_languages_within_caps():
    assert evaluate_arts(ids([18, 57, 58]), ARTS_RULE).matches


def test_residual_core_subject_rejected():
    # Mathematics is a recognised science subject, not an Arts remainder
    match = evaluate_arts(ids([3, 4, 16]), ARTS_RULE)
    assert not match.matches
    assert match.reasons["step"] == "residual"
    assert match.reasons["subjects"] == [3]


def test_residual_non_core_subject_allowed():
    # General English sits outside every basket but is no stream's core subject
    match = evaluate_arts(ids([18, 21, 9]), ARTS_RULE)
    assert match.matches


# =============================================================================
# PAYLOADS
# =============================================================================

def test_reference_rules_survive_payload_round_trip():
    for definition in REFERENCE_STREAMS:
        assert rule_from_dict(definition.rule.to_dict()) == definition.rule


@pytest.mark.parametrize("payload", [
    {"type": "astronomy"},
    {},
    {"type": "commerce", "core": [1, 2]},
])
def test_bad_payloads_raise(payload):
    with pytest.raises(RegistryError):
        rule_from_dict(payload)


def test_stream_definitions_are_hashable():
    assert len({d for d in REFERENCE_STREAMS}) == len(REFERENCE_STREAMS)
    assert hash(ARTS_RULE) == hash(rule_from_dict(ARTS_RULE.to_dict()))
