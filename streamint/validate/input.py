# streamint/validate/input.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from streamint.reference.subjects import Subject, SubjectLevel, SubjectStore


REQUIRED_SUBJECTS = 3


class ValidationErrorKind(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    DUPLICATE_SUBJECT = "duplicate_subject"
    UNKNOWN_OR_INACTIVE_SUBJECT = "unknown_or_inactive_subject"
    WRONG_LEVEL = "wrong_level"


@dataclass
class InputValidation:
    ok: bool
    subject_ids: Tuple[int, ...] = ()
    subjects: Tuple[Subject, ...] = ()
    kind: Optional[ValidationErrorKind] = None
    errors: List[str] = field(default_factory=list)


def _fail(kind: ValidationErrorKind, message: str) -> InputValidation:
    return InputValidation(ok=False, kind=kind, errors=[message])


def is_subject_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_subject_ids(subject_ids: Sequence[Any], store: SubjectStore) -> InputValidation:
    """
    Structural and referential validation of a classification request.

    Checks, in order, stopping at the first failing kind:
    - exactly three positive integer ids
    - no duplicates
    - every id resolves to an active subject
    - every subject is A/L

    ReferenceDataUnavailable from the store propagates; it is not a
    validation failure.

    Returns:
        InputValidation with the resolved subjects (in request order) when ok
    """
    if not isinstance(subject_ids, (list, tuple)) or len(subject_ids) != REQUIRED_SUBJECTS:
        received = len(subject_ids) if isinstance(subject_ids, (list, tuple)) else type(subject_ids).__name__
        return _fail(
            ValidationErrorKind.MALFORMED_INPUT,
            f"Exactly {REQUIRED_SUBJECTS} subjects must be provided (received {received})",
        )

    for position, value in enumerate(subject_ids):
        if not is_subject_id(value):
            return _fail(
                ValidationErrorKind.MALFORMED_INPUT,
                f"Invalid subject ID at position {position}: {value!r}. Must be a positive integer.",
            )

    ids = tuple(subject_ids)
    if len(set(ids)) != REQUIRED_SUBJECTS:
        return _fail(ValidationErrorKind.DUPLICATE_SUBJECT, "All 3 subjects must be different")

    found = store.get_active_subjects(ids)
    missing = [sid for sid in ids if sid not in found]
    if missing:
        return _fail(
            ValidationErrorKind.UNKNOWN_OR_INACTIVE_SUBJECT,
            f"Subject(s) with ID(s) {', '.join(str(m) for m in missing)} not found or inactive",
        )

    subjects = tuple(found[sid] for sid in ids)
    wrong_level = [s for s in subjects if s.level != SubjectLevel.AL]
    if wrong_level:
        return _fail(
            ValidationErrorKind.WRONG_LEVEL,
            f"Found non-A/L: {', '.join(s.name for s in wrong_level)}",
        )

    return InputValidation(ok=True, subject_ids=ids, subjects=subjects)
