from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Classification attached to every account-level failure."""

    AUTHENTICATION = "authentication"
    NAVIGATION = "navigation"
    TARGET_NOT_FOUND = "target_not_found"
    VALIDATION = "validation"
    SUBMISSION = "submission"
    LEDGER = "ledger"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorProfile:
    code: str
    category: str
    retryable: bool


_PROFILES: dict[ErrorKind, ErrorProfile] = {
    ErrorKind.AUTHENTICATION: ErrorProfile("AUTH_001", "Authentication", retryable=False),
    ErrorKind.NAVIGATION: ErrorProfile("NAV_001", "Navigation", retryable=True),
    ErrorKind.TARGET_NOT_FOUND: ErrorProfile("BIZ_001", "Business Logic", retryable=False),
    ErrorKind.VALIDATION: ErrorProfile("VAL_001", "Validation", retryable=False),
    ErrorKind.SUBMISSION: ErrorProfile("FORM_001", "Form", retryable=True),
    ErrorKind.LEDGER: ErrorProfile("LED_001", "Ledger", retryable=False),
    ErrorKind.UNKNOWN: ErrorProfile("UNK_000", "Unknown", retryable=False),
}


def profile_for(kind: ErrorKind) -> ErrorProfile:
    return _PROFILES[kind]


class AutomationError(Exception):
    """Base for every classified failure raised by workflows and adapters."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def message(self) -> str:
        return str(self)

    @property
    def code(self) -> str:
        return profile_for(self.kind).code

    @property
    def retryable(self) -> bool:
        return profile_for(self.kind).retryable


class AuthenticationError(AutomationError):
    kind = ErrorKind.AUTHENTICATION


class NavigationTimeout(AutomationError):
    """A bounded wait expired before the remote page reached the expected state."""

    kind = ErrorKind.NAVIGATION


class TargetNotFoundError(AutomationError):
    """The configured issue is absent or not currently actionable."""

    kind = ErrorKind.TARGET_NOT_FOUND


class FormValidationError(AutomationError):
    kind = ErrorKind.VALIDATION


class SubmissionError(AutomationError):
    kind = ErrorKind.SUBMISSION


class LedgerError(AutomationError):
    kind = ErrorKind.LEDGER


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AutomationError):
        return exc.kind
    return ErrorKind.UNKNOWN


__all__ = [
    "ErrorKind",
    "ErrorProfile",
    "profile_for",
    "classify",
    "AutomationError",
    "AuthenticationError",
    "NavigationTimeout",
    "TargetNotFoundError",
    "FormValidationError",
    "SubmissionError",
    "LedgerError",
]
