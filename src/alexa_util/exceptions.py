"""Exception hierarchy for alexa-util.

All exceptions inherit from :class:`AlexaUtilError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`alexa_util.exit_codes`.
The top-level error handler in :func:`alexa_util.app.main` catches
``AlexaUtilError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    AlexaUtilError                    (exit 1)
    +-- InvalidUsageError             (exit 2)
    +-- ConfigError                   (exit 1)
    +-- AuthError                     (exit 3)
    |   +-- AuthorizationError        (exit 3)
    |   +-- ProfileNotValidError      (exit 3)
    +-- ContractViolationError        (exit 8)
    |   +-- UnrecognizedErrorCodeError
    +-- StoreError                    (exit 9)
    |   +-- StoreCorruptError
    |   +-- ProfileAlreadyExistsError
    |   +-- ProfileNotFoundError      (exit 4)
    +-- NotFoundError                 (exit 4)
    +-- ServerError                   (exit 5)
    +-- ConnectionError_              (exit 6)

The authorization server reports failures as a string ``error`` field.
Those strings are decoded into :class:`AuthorizationErrorCode` as soon as a
response is classified, so nothing past the protocol client ever compares
raw error strings.
"""

from __future__ import annotations

import enum
from typing import Optional

from alexa_util.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_CONTRACT_VIOLATION,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_STORE_ERROR,
)


class AlexaUtilError(Exception):
    """Base exception for all alexa-util errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`alexa_util.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AlexaUtilError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(AlexaUtilError):
    """Raised for configuration problems (invalid settings JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class NotFoundError(AlexaUtilError):
    """Raised when the Skill Management API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(AlexaUtilError):
    """Raised when the Skill Management API returns an error status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(AlexaUtilError):
    """Raised on network-level failures talking to the Skill Management API.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


# --- Authorization ---


class AuthorizationErrorCode(enum.Enum):
    """Closed set of outcomes the device-flow client can fail with.

    The first ten members mirror the OAuth2 ``error`` strings the
    authorization server sends. ``TRANSPORT_FAILURE`` and
    ``MALFORMED_RESPONSE`` wrap failures that happen before a response can
    be classified at all.
    """

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    ACCESS_DENIED = "access_denied"
    UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
    INVALID_SCOPE = "invalid_scope"
    SERVER_ERROR = "server_error"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"
    AUTHORIZATION_PENDING = "authorization_pending"
    SLOW_DOWN = "slow_down"
    EXPIRED_TOKEN = "expired_token"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"

    @classmethod
    def from_wire(cls, value: str) -> AuthorizationErrorCode:
        """Decode a server ``error`` string.

        Raises:
            UnrecognizedErrorCodeError: If *value* is not one of the
                protocol error codes. The transport-level members are never
                produced from the wire.
        """
        try:
            code = cls(value)
        except ValueError:
            raise UnrecognizedErrorCodeError(value) from None
        if code in (cls.TRANSPORT_FAILURE, cls.MALFORMED_RESPONSE):
            raise UnrecognizedErrorCodeError(value)
        return code

    @property
    def retryable(self) -> bool:
        """Whether a polling loop should keep going after this outcome."""
        return self in (
            AuthorizationErrorCode.AUTHORIZATION_PENDING,
            AuthorizationErrorCode.SLOW_DOWN,
        )


_CODE_MESSAGES: dict[AuthorizationErrorCode, str] = {
    AuthorizationErrorCode.INVALID_REQUEST: (
        "The request is missing a required parameter, has an invalid value, "
        "or is otherwise improperly formed."
    ),
    AuthorizationErrorCode.UNAUTHORIZED_CLIENT: (
        "The client is not authorized to request an authorization code."
    ),
    AuthorizationErrorCode.ACCESS_DENIED: (
        "The resource owner or authorization server denied this request."
    ),
    AuthorizationErrorCode.UNSUPPORTED_RESPONSE_TYPE: (
        "The request specified an unsupported response type."
    ),
    AuthorizationErrorCode.INVALID_SCOPE: "The client requested the wrong scope.",
    AuthorizationErrorCode.SERVER_ERROR: (
        "The authorization server encountered an unexpected error."
    ),
    AuthorizationErrorCode.TEMPORARILY_UNAVAILABLE: (
        "The authorization server is currently unavailable due to a temporary "
        "overload or scheduled maintenance."
    ),
    AuthorizationErrorCode.AUTHORIZATION_PENDING: (
        "The user has not yet entered their user code at the verification URL."
    ),
    AuthorizationErrorCode.SLOW_DOWN: (
        "The device is polling too quickly. Make token requests only as "
        "frequently as indicated by the interval in the code pair response."
    ),
    AuthorizationErrorCode.EXPIRED_TOKEN: (
        "The device code has expired. Start a new device authorization."
    ),
    AuthorizationErrorCode.TRANSPORT_FAILURE: "Failed to make the request.",
    AuthorizationErrorCode.MALFORMED_RESPONSE: "Failed to parse the response.",
}


class AuthError(AlexaUtilError):
    """Raised when authentication fails or no usable credential is available."""

    exit_code = EXIT_AUTH_FAILURE


class AuthorizationError(AuthError):
    """A device-flow operation ended with a member of :class:`AuthorizationErrorCode`.

    Args:
        code: The classified outcome.
        description: Optional ``error_description`` sent by the server, or
            the underlying transport/decoder message.

    Example::

        try:
            client.poll(pair.user_code, pair.device_code)
        except AuthorizationError as exc:
            if exc.code is AuthorizationErrorCode.AUTHORIZATION_PENDING:
                ...
    """

    def __init__(self, code: AuthorizationErrorCode, description: Optional[str] = None):
        message = _CODE_MESSAGES[code]
        if description:
            message = f"{message} ({description})"
        super().__init__(message)
        self.code = code
        self.description = description

    @property
    def retryable(self) -> bool:
        return self.code.retryable


class ProfileNotValidError(AuthError):
    """Raised when a profile is uninitialized or expired and cannot be refreshed."""

    def __init__(self, name: str, reason: str = "not initialized or expired"):
        super().__init__(f"Profile '{name}' is not valid: {reason}")
        self.profile_name = name


# --- Contract violations ---


class ContractViolationError(AlexaUtilError):
    """Raised when the authorization server sends a response of unknown shape.

    This never happens against a conforming server. It is reported to the
    operator instead of being retried or guessed at.
    """

    exit_code = EXIT_CONTRACT_VIOLATION


class UnrecognizedErrorCodeError(ContractViolationError):
    """Raised when an error response carries an ``error`` string outside the taxonomy."""

    def __init__(self, error_code: str):
        super().__init__(f"Unrecognized authorization error code: {error_code!r}")
        self.error_code = error_code


# --- Credential store ---


class StoreError(AlexaUtilError):
    """Raised when the credential store cannot be read or written."""

    exit_code = EXIT_STORE_ERROR


class StoreCorruptError(StoreError):
    """Raised when the credential store file exists but cannot be deserialised."""


class ProfileAlreadyExistsError(StoreError):
    """Raised when adding a profile whose name is already taken."""

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' already exists")
        self.profile_name = name


class ProfileNotFoundError(StoreError):
    """Raised when a named profile is not present in the store."""

    exit_code = EXIT_NOT_FOUND

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' not found")
        self.profile_name = name
