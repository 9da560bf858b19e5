"""
Outcome types for two-factor authentication.

Each verification phase settles with exactly one verifier outcome:

- Accepted: the phase proved the principal's identity
- Rejected: the proof was invalid (a legitimate authentication failure)
- Errored: the verifier hit an unexpected fault

The secondary phase may also settle with SecretResolved, which hands the
strategy the TOTP secret to validate the submitted code against.

An attempt ends with exactly one terminal outcome (Success, Failure or
InternalError), delivered to the host through an AuthenticationReporter.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Union


# ============================================
# Verifier Outcomes
# ============================================

@dataclass(frozen=True)
class Accepted:
    """Phase accepted; carries the authenticated principal."""
    principal: Any


@dataclass(frozen=True)
class Rejected:
    """Phase rejected the proof; reason is optional display text or payload."""
    reason: Any = None


@dataclass(frozen=True)
class Errored:
    """Verifier signalled or raised an unexpected fault."""
    cause: Any


@dataclass(frozen=True)
class SecretResolved:
    """Secondary verifier produced the principal's TOTP secret."""
    secret: Any
    reference_time: Any = None


VerifierOutcome = Union[Accepted, Rejected, Errored, SecretResolved]


# ============================================
# Terminal Outcomes
# ============================================

class FailureKind(str, Enum):
    """Why an attempt was refused."""
    MISSING_CREDENTIALS = "missing_credentials"
    REJECTED_CREDENTIALS = "rejected_credentials"


@dataclass(frozen=True)
class Success:
    """Both phases (or phase 1 alone, when TOTP is skipped) passed."""
    principal: Any


@dataclass(frozen=True)
class Failure:
    """Attempt refused; message is safe to show to the user."""
    message: Any
    kind: FailureKind = FailureKind.REJECTED_CREDENTIALS


@dataclass(frozen=True)
class InternalError:
    """Attempt aborted by a fault; cause is for operators, not users."""
    cause: Any


TerminalOutcome = Union[Success, Failure, InternalError]


# ============================================
# Host Reporting
# ============================================

class AuthenticationReporter(Protocol):
    """Host-side sink for the terminal outcome of an attempt."""

    def report_success(self, principal: Any) -> None:
        ...

    def report_failure(self, message: Any) -> None:
        ...

    def report_error(self, cause: Any) -> None:
        ...


def deliver(outcome: TerminalOutcome, reporter: Optional[AuthenticationReporter]) -> None:
    """
    Hand a terminal outcome to the matching reporter method.

    Args:
        outcome: Terminal outcome of an attempt.
        reporter: Host reporter; nothing happens when None.

    Raises:
        TypeError: If outcome is not a terminal outcome.
    """
    if reporter is None:
        return

    if isinstance(outcome, Success):
        reporter.report_success(outcome.principal)
    elif isinstance(outcome, Failure):
        reporter.report_failure(outcome.message)
    elif isinstance(outcome, InternalError):
        reporter.report_error(outcome.cause)
    else:
        raise TypeError(f"Not a terminal outcome: {outcome!r}")
