"""Synchronous client for the Alexa Skill Management API.

This module provides :class:`SkillClient`, a thin wrapper over
:class:`httpx.Client` that

- resolves the ``Authorization`` header through a
  :class:`~alexa_util.auth.gate.TokenGate` before any request is sent, so
  an invalid profile fails without network traffic;
- maps error status codes and transport failures onto the
  :mod:`alexa_util.exceptions` hierarchy.

No retries are performed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from alexa_util.auth.gate import TokenGate
from alexa_util.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from alexa_util.models import ExportSkillPackageResponse, SkillStage

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.amazonalexa.com"


class SkillClient:
    """Skill Management API client authenticated per profile.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        gate: Validity gate that supplies bearer tokens.
        base_url: Skill Management API base URL.
        transport: Optional :mod:`httpx` transport, mainly for tests.

    Example::

        with SkillClient(gate) as client:
            export = client.export_skill_package("dev", skill_id, SkillStage.DEVELOPMENT)
    """

    def __init__(
        self,
        gate: TokenGate,
        base_url: str = API_BASE_URL,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._gate = gate
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> SkillClient:
        self._client = httpx.Client(base_url=self._base_url, transport=self._transport)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def export_skill_package(
        self,
        profile_name: str,
        skill_id: str,
        stage: SkillStage,
    ) -> ExportSkillPackageResponse:
        """Request an export of a skill package.

        Args:
            profile_name: Profile whose credential authorizes the call.
            skill_id: The skill to export.
            stage: Skill stage to export.

        Returns:
            The export location and ID. The location is taken from the
            ``Location`` header, falling back to a ``location`` body field.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
            ProfileNotValidError: If the profile has no usable credential.
            AuthError: On HTTP 401 / 403.
            NotFoundError: On HTTP 404.
            ServerError: On any other error status, or a success response
                without a location.
            ConnectionError_: On network / timeout errors.
        """
        path = f"/v1/skills/{skill_id}/stages/{SkillStage(stage).value}/exports"
        response = self._request("POST", path, profile_name)

        body = _json_or_empty(response)
        location = response.headers.get("Location") or body.get("location")
        if not location:
            raise ServerError(
                f"Export accepted with HTTP {response.status_code} but no location was returned"
            )
        export_id = body.get("export_id") or body.get("exportId") or location.rstrip("/").rsplit("/", 1)[-1]
        return ExportSkillPackageResponse(location=location, export_id=export_id)

    def _request(self, method: str, path: str, profile_name: str) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers = {
            "Accept": "application/json",
            "Authorization": self._gate.authorization_header(profile_name),
        }
        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            response = self._client.request(method, path, headers=headers)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Request to {self._base_url} failed: {exc}") from exc

        _map_response_error(response)
        return response


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    detail = _json_or_empty(response)
    msg = detail.get("message") or detail.get("error") or response.text[:200]
    full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)
