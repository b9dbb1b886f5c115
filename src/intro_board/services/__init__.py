# src/intro_board/services/__init__.py
"""Business logic services for the Intro Board application.

Only dependency-free services are re-exported here; import the engine from
`intro_board.services.moderation` directly.
"""

from .validation import AdmissionPolicy, SubmissionCandidate, validate_submission
from .access import AccessGate
from .identity import AuthSession, Identity, IdentityProvider, LocalIdentityProvider
from .throttle import SubmissionThrottle

__all__ = [
    "AdmissionPolicy",
    "SubmissionCandidate",
    "validate_submission",
    "AccessGate",
    "AuthSession",
    "Identity",
    "IdentityProvider",
    "LocalIdentityProvider",
    "SubmissionThrottle",
]
