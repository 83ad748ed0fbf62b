"""Tests for the Skill Management API client."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import httpx
import pytest

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.gate import TokenGate
from alexa_util.client.skill_client import SkillClient
from alexa_util.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    ProfileNotValidError,
    ServerError,
)
from alexa_util.models import Profile, SkillStage, utcnow


SKILL_ID = "amzn1.ask.skill.1234"
EXPORT_PATH = f"/v1/skills/{SKILL_ID}/stages/development/exports"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Recorder:
    def __init__(self, response: httpx.Response | None = None, exc: Exception | None = None) -> None:
        self.response = response
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        assert self.response is not None
        return self.response


def _gate(store: CredentialStore, **fields: Any) -> TokenGate:
    defaults: dict[str, Any] = {
        "access_token": "Atza|abc",
        "refresh_token": "Atzr|abc",
        "expires_at": utcnow() + timedelta(hours=1),
    }
    defaults.update(fields)
    store.add_profile(Profile(name="dev", **defaults))
    return TokenGate(store)


def _export(gate: TokenGate, recorder: _Recorder, stage: SkillStage = SkillStage.DEVELOPMENT):
    with SkillClient(gate, base_url="https://smapi.test", transport=httpx.MockTransport(recorder)) as client:
        return client.export_skill_package("dev", SKILL_ID, stage)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestExportSkillPackage:
    def test_location_from_header(self, store: CredentialStore) -> None:
        location = f"/v1/skills/exports/{SKILL_ID}/amzn1.ask-package.export.42"
        recorder = _Recorder(httpx.Response(202, headers={"Location": location}))

        result = _export(_gate(store), recorder)

        assert result.location == location
        assert result.export_id == "amzn1.ask-package.export.42"

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == EXPORT_PATH
        assert request.headers["Authorization"] == "Bearer Atza|abc"

    def test_live_stage_in_path(self, store: CredentialStore) -> None:
        recorder = _Recorder(httpx.Response(202, headers={"Location": "/exports/x"}))
        _export(_gate(store), recorder, SkillStage.LIVE)
        assert recorder.requests[0].url.path == f"/v1/skills/{SKILL_ID}/stages/live/exports"

    def test_location_and_id_from_body(self, store: CredentialStore) -> None:
        recorder = _Recorder(
            httpx.Response(202, json={"location": "https://smapi.test/exports/e1", "exportId": "e1-id"})
        )
        result = _export(_gate(store), recorder)
        assert result.location == "https://smapi.test/exports/e1"
        assert result.export_id == "e1-id"

    def test_missing_location(self, store: CredentialStore) -> None:
        recorder = _Recorder(httpx.Response(202))
        with pytest.raises(ServerError, match="no location"):
            _export(_gate(store), recorder)

    def test_invalid_profile_sends_nothing(self, store: CredentialStore) -> None:
        recorder = _Recorder(httpx.Response(202, headers={"Location": "/exports/x"}))
        gate = _gate(store, expires_at=utcnow() - timedelta(seconds=1))

        with pytest.raises(ProfileNotValidError):
            _export(gate, recorder)
        assert recorder.requests == []


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status, exc_type",
        [
            (401, AuthError),
            (403, AuthError),
            (404, NotFoundError),
            (429, ServerError),
            (500, ServerError),
        ],
    )
    def test_status_codes(self, store: CredentialStore, status: int, exc_type: type) -> None:
        recorder = _Recorder(httpx.Response(status, json={"message": "nope"}))
        with pytest.raises(exc_type, match="nope"):
            _export(_gate(store), recorder)

    def test_error_without_body(self, store: CredentialStore) -> None:
        recorder = _Recorder(httpx.Response(502))
        with pytest.raises(ServerError, match="HTTP 502"):
            _export(_gate(store), recorder)

    def test_connection_error(self, store: CredentialStore) -> None:
        recorder = _Recorder(exc=httpx.ConnectError("refused"))
        with pytest.raises(ConnectionError_):
            _export(_gate(store), recorder)
