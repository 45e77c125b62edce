# streamint/rules/technology.py

from __future__ import annotations

from typing import FrozenSet

from . import RuleMatch, accept, reject
from .definitions import StreamType, TechnologyRule


RULE_TAGS = {
    StreamType.ENGINEERING_TECHNOLOGY: "engineering_tech_combination",
    StreamType.BIOSYSTEMS_TECHNOLOGY: "biosystems_tech_combination",
}


def evaluate_technology(subject_ids: FrozenSet[int], rule: TechnologyRule) -> RuleMatch:
    """
    Engineering / Biosystems Technology: both required subjects (the
    technology subject and Science for Technology) plus one option.
    """
    has_required = rule.required <= subject_ids
    options = subject_ids & rule.options
    matched = rule.required | options

    reasons = {
        "has_required": has_required,
        "options": sorted(options),
    }

    if has_required and len(options) >= 1 and len(matched) == 3:
        return accept(RULE_TAGS[rule.stream_type], **reasons)
    return reject(**reasons)
