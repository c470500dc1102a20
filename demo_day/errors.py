# errors.py
"""
Domain errors raised by the judging services.

Every error carries a message that can be shown to the end user as is.
Storage-level errors (``IntegrityError`` and friends) are not wrapped.
"""


class JudgingError(Exception):
    """Base class for all judging / prize workflow failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotAuthorized(JudgingError):
    """Caller is not the required admin (or supplied a wrong access code)."""


class InvalidReference(JudgingError):
    """Team, prize, judge or event does not belong to the stated event."""


class NotAJudge(InvalidReference):
    """Caller has no judge membership for the event."""


class Locked(JudgingError):
    """Mutation attempted while the event's scoring lock is engaged."""


class UnsupportedForMode(JudgingError):
    """Feature invoked on an appreciation-only event."""


class InvalidPrizeConfig(JudgingError):
    """Prize definition failed validation."""


class IneligibleSelection(JudgingError):
    """Team selected a prize it cannot receive."""


class SubmissionClosed(JudgingError):
    """Prize selection window has ended."""


class ScoringNotLocked(JudgingError):
    """Winners were set before scoring was locked."""


class NotASubmittedCandidate(JudgingError):
    """Winner is not drawn from the prize's submissions."""


__all__ = [
    "JudgingError",
    "NotAuthorized",
    "InvalidReference",
    "NotAJudge",
    "Locked",
    "UnsupportedForMode",
    "InvalidPrizeConfig",
    "IneligibleSelection",
    "SubmissionClosed",
    "ScoringNotLocked",
    "NotASubmittedCandidate",
]
