# streamint/rules/science.py

from __future__ import annotations

from typing import FrozenSet

from . import RuleMatch, accept, reject
from .definitions import BiologicalScienceRule, PhysicalScienceRule


def evaluate_physical_science(subject_ids: FrozenSet[int], rule: PhysicalScienceRule) -> RuleMatch:
    """
    Physical Science: every subject comes from the allowed set
    (Combined/Higher Mathematics, Physics, Chemistry).
    """
    matched = subject_ids & rule.allowed_subjects

    if len(matched) == 3:
        return accept("three_physical_sciences", matched=sorted(matched))
    return reject(matched=sorted(matched))


def evaluate_biological_science(subject_ids: FrozenSet[int], rule: BiologicalScienceRule) -> RuleMatch:
    """
    Biological Science: all required subjects (Biology) plus at least two
    options, with nothing else in the triple.
    """
    has_required = rule.required <= subject_ids
    options = subject_ids & rule.options

    reasons = {
        "has_required": has_required,
        "options": sorted(options),
    }

    # len(required) + len(options) == 3 keeps a fourth source out of the count
    if has_required and len(options) >= 2 and len(rule.required) + len(options) == 3:
        return accept("biology_plus_two_sciences", **reasons)
    return reject(**reasons)
