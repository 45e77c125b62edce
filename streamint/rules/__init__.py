# streamint/rules/__init__.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RuleMatch:
    matches: bool
    rule: Optional[str] = None
    reasons: Dict[str, Any] = field(default_factory=dict)


def accept(rule: str, **reasons: Any) -> RuleMatch:
    return RuleMatch(matches=True, rule=rule, reasons=reasons)


def reject(**reasons: Any) -> RuleMatch:
    return RuleMatch(matches=False, reasons=reasons)
