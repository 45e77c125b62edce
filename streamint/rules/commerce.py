# streamint/rules/commerce.py

from __future__ import annotations

from typing import FrozenSet

from . import RuleMatch, accept, reject
from .definitions import CommerceRule


def evaluate_commerce(subject_ids: FrozenSet[int], rule: CommerceRule) -> RuleMatch:
    """
    Commerce stream.

    - all three from the core basket (Business Studies, Economics, Accounting)
    - or at least two core subjects with the rest from the supporting basket
    """
    core = subject_ids & rule.core
    supporting = subject_ids & rule.supporting

    reasons = {
        "core": sorted(core),
        "supporting": sorted(supporting),
    }

    if len(core) == 3:
        return accept("all_from_core_commerce", **reasons)

    if len(core) >= 2 and len(supporting) >= 1 and len(core | supporting) == 3:
        return accept("two_core_one_supporting", **reasons)

    return reject(**reasons)
