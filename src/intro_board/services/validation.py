"""Admission checks applied to submissions before they are persisted."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from intro_board.core.errors import ValidationError, ValidationErrorKind


@dataclass(frozen=True)
class AdmissionPolicy:
    """Configurable admission rules.

    Deployments disagree on the age floor and intro length, and some drop the
    nickname entirely, so all of these are configuration points.
    """

    min_age: int = 16
    max_intro_len: int = 200
    banned_words: Sequence[str] = ()
    require_nickname: bool = True
    require_contact: bool = False


@dataclass(frozen=True)
class SubmissionCandidate:
    """Raw fields received from a submitter.

    Only these fields are read. Anything else a client sends (status, report
    counts, ids) never reaches the store.
    """

    nickname: str | None = ""
    age: Any = None
    contact: str | None = ""
    intro: str | None = ""
    agree: bool | None = False


@dataclass(frozen=True)
class ValidatedPost:
    """Normalized submission ready for persistence."""

    nickname: str
    age: int
    contact: str
    intro: str


@dataclass(frozen=True)
class ValidationOutcome:
    post: ValidatedPost | None = None
    error: ValidationError | None = field(default=None)


def parse_age(value: Any) -> int | None:
    """Return `value` as an int, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def contains_banned(text: str, banned_words: Sequence[str]) -> bool:
    """Case-insensitive substring screen against the block-list.

    Deliberately naive; this is a minimum filter, not a content-safety system.
    """
    lowered = text.lower()
    return any(word and word.lower() in lowered for word in banned_words)


def _fail(kind: ValidationErrorKind, message: str, field_name: str) -> ValidationOutcome:
    return ValidationOutcome(error=ValidationError(kind=kind, message=message, field=field_name))


def validate_submission(
    candidate: SubmissionCandidate,
    policy: AdmissionPolicy,
) -> ValidationOutcome:
    """Check a candidate against the admission rules.

    Rules are checked in a fixed order and the first failure wins:
    age, required fields, intro length, banned terms, consent.

    Args:
        candidate: Raw submission fields.
        policy: Admission rules to apply.

    Returns:
        An outcome holding either the normalized post or the first error.
    """
    age = parse_age(candidate.age)
    if age is None or age < policy.min_age:
        return _fail(
            ValidationErrorKind.AGE_TOO_LOW,
            f"You must be at least {policy.min_age} years old to post",
            "age",
        )

    nickname = (candidate.nickname or "").strip()
    if policy.require_nickname and not nickname:
        return _fail(ValidationErrorKind.MISSING_FIELD, "Please enter a nickname", "nickname")

    contact = (candidate.contact or "").strip()
    if policy.require_contact and not contact:
        return _fail(ValidationErrorKind.MISSING_FIELD, "Please enter a contact", "contact")

    intro = (candidate.intro or "").strip()
    if not intro or len(intro) > policy.max_intro_len:
        return _fail(
            ValidationErrorKind.INTRO_INVALID,
            f"Your intro must be between 1 and {policy.max_intro_len} characters",
            "intro",
        )

    if contains_banned(intro, policy.banned_words):
        return _fail(
            ValidationErrorKind.BANNED_CONTENT,
            "Your intro contains words that are not allowed, please edit it",
            "intro",
        )

    if candidate.agree is not True:
        return _fail(
            ValidationErrorKind.CONSENT_REQUIRED,
            "Please read and accept the board rules",
            "agree",
        )

    return ValidationOutcome(
        post=ValidatedPost(nickname=nickname, age=age, contact=contact, intro=intro),
    )
