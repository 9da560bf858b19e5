"""
Two-factor (password + TOTP) authentication strategy.

An attempt runs two phases strictly in sequence:
1. Primary verifier checks username and password -> principal
2. Secondary verifier resolves the principal's TOTP secret, and the
   submitted code is validated against it

Verifiers are supplied by the host. They receive a ``done`` completion as
their last argument and settle it exactly once, either passport-style
(``done(error, principal, info)`` / ``done(error, secret, reference_time)``)
or through its explicit methods. Coroutine functions are awaited, and may
return an outcome variant instead of calling ``done``.
"""
import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Optional, Tuple, Type, Union

from .errors import ConfigurationError
from .lookup import lookup
from .mfa import DEFAULT_WINDOW, verify_totp
from .outcomes import (
    Accepted,
    AuthenticationReporter,
    Errored,
    Failure,
    FailureKind,
    InternalError,
    Rejected,
    SecretResolved,
    Success,
    TerminalOutcome,
    VerifierOutcome,
    deliver,
)

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Missing credentials"
AUTH_FAILED = "Invalid username or password"

TotpValidator = Callable[[Any, Any, int, Any], bool]


# ============================================
# Options
# ============================================

@dataclass(frozen=True)
class StrategyOptions:
    """
    Construction-time strategy configuration.

    Attributes:
        skip_totp_verification: Finish after the password phase.
        username_field: Field path of the username in body/query.
        password_field: Field path of the password in body/query.
        code_field: Field path of the TOTP code in body/query.
        window: TOTP steps accepted before/after the reference time.
        pass_request_to_callbacks: Give verifiers the request as first argument.
        bad_request_message: Default failure text override.
    """
    skip_totp_verification: bool = False
    username_field: str = "username"
    password_field: str = "password"
    code_field: str = "code"
    window: int = DEFAULT_WINDOW
    pass_request_to_callbacks: bool = False
    bad_request_message: Any = None

    def __post_init__(self):
        for name in ("username_field", "password_field", "code_field"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(f"{name} must be a non-empty string")
        if isinstance(self.window, bool) or not isinstance(self.window, int) or self.window < 0:
            raise ConfigurationError("window must be a non-negative integer")

    @classmethod
    def from_mapping(cls, values: Mapping) -> "StrategyOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown strategy options: {', '.join(sorted(unknown))}")
        return cls(**values)


@dataclass(frozen=True)
class AuthenticateOptions:
    """Per-call overrides, merged over the strategy defaults."""
    bad_request_message: Any = None

    def merged_over(self, defaults: "AuthenticateOptions") -> "AuthenticateOptions":
        overrides = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(defaults, **overrides)


@dataclass(frozen=True)
class Credentials:
    """Values extracted from a single authentication request."""
    username: Optional[Any] = None
    password: Optional[Any] = None
    code: Optional[Any] = None


# ============================================
# Phase Completions
# ============================================

class _PhaseCompletion:
    """Settles one verification phase with a single verifier outcome."""

    phase = "verification"
    accepts: Tuple[Type, ...] = (Errored,)

    def __init__(self):
        self._loop = asyncio.get_running_loop()
        self._future = self._loop.create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, outcome: VerifierOutcome) -> None:
        """Settle with an explicit outcome; safe to call from other threads."""
        if not isinstance(outcome, self.accepts):
            raise TypeError(f"{self.phase} phase cannot settle with {outcome!r}")

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._resolve(outcome)
        else:
            self._loop.call_soon_threadsafe(self._resolve, outcome)

    def _resolve(self, outcome: VerifierOutcome) -> None:
        if self._future.done():
            logger.warning(
                f"{self.phase} verifier completed more than once; "
                f"ignoring {type(outcome).__name__}"
            )
            return
        self._future.set_result(outcome)

    def error(self, cause: Any) -> None:
        self.settle(Errored(cause))

    async def wait(self) -> VerifierOutcome:
        return await self._future


class PrimaryCompletion(_PhaseCompletion):
    """``done`` handed to the username/password verifier."""

    phase = "primary"
    accepts = (Accepted, Rejected, Errored)

    def __call__(self, error: Any = None, principal: Any = None, info: Any = None) -> None:
        if error:
            self.error(error)
        elif principal is None or principal is False:
            self.reject(info)
        else:
            self.accept(principal)

    def accept(self, principal: Any) -> None:
        self.settle(Accepted(principal))

    def reject(self, reason: Any = None) -> None:
        self.settle(Rejected(reason))


class SecondaryCompletion(_PhaseCompletion):
    """``done`` handed to the TOTP secret verifier."""

    phase = "secondary"
    accepts = (SecretResolved, Rejected, Errored)

    def __call__(self, error: Any = None, secret: Any = None, reference_time: Any = None) -> None:
        if error:
            self.error(error)
        else:
            self.resolve(secret, reference_time)

    def resolve(self, secret: Any, reference_time: Any = None) -> None:
        self.settle(SecretResolved(secret, reference_time))

    def reject(self, reason: Any = None) -> None:
        self.settle(Rejected(reason))


# ============================================
# Strategy
# ============================================

class TwoFactorStrategy:
    """
    Password + TOTP authentication strategy.

    The strategy holds only immutable configuration; concurrent
    authenticate() calls share nothing.

    Example:
        strategy = TwoFactorStrategy(check_password, load_totp_secret)
        outcome = await strategy.authenticate(request, reporter)
    """

    name = "2fa-totp"

    def __init__(
        self,
        verify_password: Callable,
        verify_totp_code: Optional[Callable] = None,
        options: Union[StrategyOptions, Mapping, None] = None,
        *,
        totp_validator: TotpValidator = verify_totp,
    ):
        if options is None:
            options = StrategyOptions()
        elif isinstance(options, Mapping):
            options = StrategyOptions.from_mapping(options)

        if not callable(verify_password):
            raise ConfigurationError(
                "Two-factor strategy requires a username and password verification callback"
            )
        if not options.skip_totp_verification and not callable(verify_totp_code):
            raise ConfigurationError(
                "Two-factor strategy requires a TOTP code verification callback"
            )

        self.options = options
        self._verify_password = verify_password
        self._verify_totp_code = verify_totp_code
        self._totp_validator = totp_validator
        self._defaults = AuthenticateOptions(bad_request_message=options.bad_request_message)

    def extract_credentials(self, request: Any) -> Credentials:
        """Pull username, password and code from the request body, then its query."""
        containers = [_request_part(request, "body"), _request_part(request, "query")]

        def first(path: str) -> Optional[Any]:
            for container in containers:
                value = lookup(container, path)
                if value is not None:
                    return value
            return None

        return Credentials(
            username=first(self.options.username_field),
            password=first(self.options.password_field),
            code=first(self.options.code_field),
        )

    async def authenticate(
        self,
        request: Any,
        reporter: Optional[AuthenticationReporter] = None,
        options: Optional[AuthenticateOptions] = None,
    ) -> TerminalOutcome:
        """
        Run one authentication attempt to its terminal outcome.

        Args:
            request: Host request exposing ``body`` and ``query`` payloads.
            reporter: Receives exactly one report for the attempt.
            options: Per-call overrides (e.g. bad_request_message).

        Returns:
            Success, Failure or InternalError.
        """
        call_options = (options or AuthenticateOptions()).merged_over(self._defaults)
        credentials = self.extract_credentials(request)

        if not credentials.username or not credentials.password:
            outcome = Failure(
                call_options.bad_request_message or MISSING_CREDENTIALS,
                FailureKind.MISSING_CREDENTIALS,
            )
        else:
            outcome = await self._run(request, credentials, call_options)

        _log_outcome(outcome, credentials.username)
        deliver(outcome, reporter)
        return outcome

    async def _run(
        self,
        request: Any,
        credentials: Credentials,
        call_options: AuthenticateOptions,
    ) -> TerminalOutcome:
        first = await self._invoke(
            self._verify_password,
            self._arguments(request, credentials.username, credentials.password),
            PrimaryCompletion(),
        )
        if isinstance(first, Errored):
            return InternalError(first.cause)
        if isinstance(first, Rejected):
            return Failure(first.reason or AUTH_FAILED)

        principal = first.principal
        if self.options.skip_totp_verification:
            return Success(principal)

        second = await self._invoke(
            self._verify_totp_code,
            self._arguments(request, principal),
            SecondaryCompletion(),
        )
        if isinstance(second, Errored):
            return InternalError(second.cause)
        if isinstance(second, Rejected):
            # Only the generic message leaves this phase
            logger.debug(f"Discarding secondary rejection reason: {second.reason!r}")
            return Failure(call_options.bad_request_message or AUTH_FAILED)

        try:
            valid = self._totp_validator(
                credentials.code,
                second.secret,
                self.options.window,
                second.reference_time,
            )
        except Exception as e:
            return InternalError(e)

        if valid:
            return Success(principal)
        return Failure(call_options.bad_request_message or AUTH_FAILED)

    def _arguments(self, request: Any, *args: Any) -> Tuple[Any, ...]:
        if self.options.pass_request_to_callbacks:
            return (request, *args)
        return args

    async def _invoke(
        self,
        verifier: Callable,
        args: Tuple[Any, ...],
        completion: _PhaseCompletion,
    ) -> VerifierOutcome:
        try:
            result = verifier(*args, completion)
            if inspect.isawaitable(result):
                result = await result
            if isinstance(result, completion.accepts):
                completion.settle(result)
        except Exception as e:
            if completion.settled:
                logger.warning(f"{completion.phase} verifier raised after completing: {e}")
            else:
                completion.error(e)

        return await completion.wait()


def _request_part(request: Any, name: str) -> Any:
    if request is None:
        return None
    if isinstance(request, Mapping):
        return request.get(name)
    return getattr(request, name, None)


def _log_outcome(outcome: TerminalOutcome, username: Any) -> None:
    if isinstance(outcome, Success):
        logger.info(f"Two-factor authentication succeeded for {username}")
    elif isinstance(outcome, Failure):
        logger.warning(f"Two-factor authentication failed ({outcome.kind.value}) for {username}")
    else:
        logger.error(f"Two-factor authentication error for {username}: {outcome.cause}")
