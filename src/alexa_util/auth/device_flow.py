"""Protocol client for the OAuth2 Device Authorization Grant (:rfc:`8628`).

Implements the three network operations of the Login with Amazon device
flow:

    1. :meth:`DeviceFlowClient.initiate` -- POST to
       ``/auth/o2/create/codepair`` to obtain a ``device_code`` +
       ``user_code`` pair.
    2. :meth:`DeviceFlowClient.poll` -- one token exchange attempt against
       ``/auth/o2/token`` for a pending device authorization.
    3. :meth:`DeviceFlowClient.refresh` -- exchange a refresh token for a
       new access/refresh pair.

Each operation performs exactly one request and classifies the outcome
with :func:`classify_response`. Polling loops, sleeping and persistence are
the caller's business (see :mod:`alexa_util.auth.orchestrator`). Transport
failures are never retried here.

See Also:
    :class:`~alexa_util.exceptions.AuthorizationErrorCode` for the closed
    set of failure outcomes.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from alexa_util.exceptions import (
    AuthorizationError,
    AuthorizationErrorCode,
    ContractViolationError,
)
from alexa_util.models import CodePair, ErrorResponse, TokenResult

logger = logging.getLogger(__name__)

AUTH_BASE_URL = "https://api.amazon.com"
CODEPAIR_PATH = "/auth/o2/create/codepair"
TOKEN_PATH = "/auth/o2/token"

_FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
    "Accept": "application/json",
}

SuccessT = TypeVar("SuccessT", bound=BaseModel)


def classify_response(body: Any, success_model: type[SuccessT]) -> SuccessT:
    """Classify a decoded JSON body as an error envelope or a success shape.

    The error envelope is tried first, so a body carrying an ``error``
    field is never mistaken for a success.

    Args:
        body: The decoded JSON body.
        success_model: The Pydantic model the operation expects on success.

    Returns:
        The validated success model.

    Raises:
        AuthorizationError: If *body* is an error envelope with a known code.
        UnrecognizedErrorCodeError: If *body* is an error envelope whose
            code is outside the taxonomy.
        ContractViolationError: If *body* matches neither shape.
    """
    try:
        error_response = ErrorResponse.model_validate(body)
    except ValidationError:
        pass
    else:
        code = AuthorizationErrorCode.from_wire(error_response.error)
        raise AuthorizationError(code, error_response.error_description)

    try:
        return success_model.model_validate(body)
    except ValidationError as exc:
        raise ContractViolationError(
            f"Unexpected response from authorization server "
            f"(expected {success_model.__name__}): {body!r}"
        ) from exc


class DeviceFlowClient:
    """Single-attempt client for the device authorization and token endpoints.

    Args:
        base_url: Authorization server base URL.
        http: Optional pre-configured :class:`httpx.Client`. When omitted
            the client creates (and owns) one with the transport's default
            timeout.

    Example::

        with DeviceFlowClient() as client:
            pair = client.initiate("amzn1.application-oa2-client.abc")
            tokens = client.poll(pair.user_code, pair.device_code)
    """

    def __init__(
        self,
        base_url: str = AUTH_BASE_URL,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client()

    @property
    def base_url(self) -> str:
        return self._base_url

    def initiate(self, client_id: str) -> CodePair:
        """Request a new device/user code pair.

        Args:
            client_id: The Login with Amazon security profile client ID.

        Returns:
            The :class:`~alexa_util.models.CodePair` to present to the user.

        Raises:
            AuthorizationError: On a protocol error, transport failure, or
                non-JSON body.
            ContractViolationError: If the body matches no known shape.
        """
        body = self._post(
            CODEPAIR_PATH,
            {
                "client_id": client_id,
                "response_type": "device_code",
                "scope": "profile",
            },
        )
        return classify_response(body, CodePair)

    def poll(self, user_code: str, device_code: str) -> TokenResult:
        """Attempt one token exchange for a pending device authorization.

        ``AUTHORIZATION_PENDING`` and ``SLOW_DOWN`` are expected outcomes
        while the user has not acted yet; they arrive as
        :class:`~alexa_util.exceptions.AuthorizationError` with
        :attr:`~AuthorizationError.retryable` set.

        Raises:
            AuthorizationError: On any error response or transport failure.
            ContractViolationError: If the body matches no known shape.
        """
        body = self._post(
            TOKEN_PATH,
            {
                "grant_type": "device_code",
                "device_code": device_code,
                "user_code": user_code,
            },
        )
        return classify_response(body, TokenResult)

    def refresh(self, client_id: str, refresh_token: str) -> TokenResult:
        """Exchange a refresh token for a new access/refresh token pair.

        Raises:
            AuthorizationError: On any error response or transport failure.
            ContractViolationError: If the body matches no known shape.
        """
        body = self._post(
            TOKEN_PATH,
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": client_id,
            },
        )
        return classify_response(body, TokenResult)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> DeviceFlowClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _post(self, path: str, data: dict[str, str]) -> Any:
        """POST a form to *path* and return the decoded JSON body."""
        url = f"{self._base_url}{path}"
        logger.debug("POST %s", url)
        try:
            response = self._http.post(url, data=data, headers=_FORM_HEADERS)
        except httpx.HTTPError as exc:
            raise AuthorizationError(
                AuthorizationErrorCode.TRANSPORT_FAILURE, str(exc)
            ) from exc

        logger.debug("POST %s -> %s", url, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise AuthorizationError(
                AuthorizationErrorCode.MALFORMED_RESPONSE, str(exc)
            ) from exc
