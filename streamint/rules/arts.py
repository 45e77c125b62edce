# streamint/rules/arts.py
"""
Arts stream evaluation.

Arts is the most permissive stream, so it is evaluated after every
specific stream and guarded by several layers of checks:

1. Language exceptions (match immediately)
2. Hard rejection of combinations that clearly belong to another stream
3. Basket accounting (how much of the triple is actually Arts)
4. Basket constraints (exclusions, area caps, language caps)
5. Residual-subject check against other streams' core subjects

Every rejection reports the step that failed under reasons["step"].
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from . import RuleMatch, accept, reject
from .definitions import ArtsRule


STANDARD_RULE = "standard_arts_combination"


def check_exceptions(subject_ids: FrozenSet[int], rule: ArtsRule) -> Optional[str]:
    """Return the exception tag the triple satisfies, if any."""
    langs = rule.languages
    national = subject_ids & langs.national
    classical = subject_ids & langs.classical

    if subject_ids == langs.national:
        return "three_national_languages"

    if national and classical and len(national) + len(classical) == 3:
        return "national_plus_classical_languages"

    languages = subject_ids & langs.subjects
    others = subject_ids & (rule.basket2.subjects | rule.basket3.subjects)
    if len(languages) == 2 and len(others) == 1:
        return "two_languages_one_religion_aesthetic"

    return None


def basket_counts(subject_ids: FrozenSet[int], rule: ArtsRule) -> Dict[str, int]:
    return {
        "basket1": rule.basket1.count(subject_ids),
        "basket2": rule.basket2.count(subject_ids),
        "basket3": rule.basket3.count(subject_ids),
        "languages": len(subject_ids & rule.languages.subjects),
        "any": len(subject_ids & rule.arts_subjects),
    }


def constraint_violation(subject_ids: FrozenSet[int], rule: ArtsRule) -> Optional[str]:
    """First basket constraint the triple breaks, or None."""
    b2 = rule.basket2
    if b2.count(subject_ids) > b2.max_allowed:
        return f"{b2.name}: more than {b2.max_allowed} subjects"
    for exclusion in b2.exclusions:
        if exclusion.violated_by(subject_ids):
            return (
                f"{b2.name}: {sorted(subject_ids & exclusion.if_selected)} "
                f"excludes {sorted(subject_ids & exclusion.then_exclude)}"
            )

    b3 = rule.basket3
    if b3.count(subject_ids) > b3.max_allowed:
        return f"{b3.name}: more than {b3.max_allowed} subjects"
    for area in b3.areas:
        if len(subject_ids & area.subjects) > area.max_from_area:
            return f"{b3.name}: more than {area.max_from_area} from {area.area}"

    langs = rule.languages
    for group, members in langs.groups().items():
        if len(subject_ids & members) > langs.max_per_group:
            return f"{langs.name}: more than {langs.max_per_group} {group} languages"
    if len(subject_ids & langs.subjects) > langs.max_allowed:
        return f"{langs.name}: more than {langs.max_allowed} languages"

    return None


def evaluate_arts(subject_ids: FrozenSet[int], rule: ArtsRule) -> RuleMatch:
    """
    Decide whether a triple is a genuine Arts combination.

    Returns the exception tag when a language exception applies, otherwise
    "standard_arts_combination" once every check has passed.
    """
    # 1) Exceptions
    exception = check_exceptions(subject_ids, rule)
    if exception:
        return accept(exception, step="exception")

    # 2) Hard rejection
    for group in rule.rejections:
        if group.satisfied_by(subject_ids):
            return reject(step="hard_rejection", group=group.name)

    # 3) Basket accounting
    counts = basket_counts(subject_ids, rule)
    if counts["any"] < 2:
        return reject(step="basket_accounting", counts=counts, detail="fewer than two Arts subjects")
    if counts["basket1"] < rule.basket1.min_required:
        return reject(step="basket_accounting", counts=counts, detail=f"{rule.basket1.name} below minimum")
    if counts["basket1"] == 1 and counts["any"] < 3:
        return reject(
            step="basket_accounting",
            counts=counts,
            detail="single social science subject in a mixed combination",
        )

    # 4) Constraints
    violation = constraint_violation(subject_ids, rule)
    if violation:
        return reject(step="constraints", counts=counts, detail=violation)

    # 5) Residual subjects
    residual = subject_ids - rule.arts_subjects
    for stream_name, core in rule.residual_cores:
        claimed = residual & core
        if claimed:
            return reject(step="residual", counts=counts, stream=stream_name, subjects=sorted(claimed))

    return accept(STANDARD_RULE, step="standard", counts=counts)
