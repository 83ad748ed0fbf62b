"""Canonical Pydantic models shared across all alexa-util modules.

The models fall into three groups:

**Persisted models** -- serialised as JSON in the user's config directory:
    :class:`Profile`, :class:`StoreDocument`, and :class:`Settings`.

**Device-flow exchange models** -- decoded from authorization server
responses and never persisted as such:
    :class:`CodePair`, :class:`TokenResult`, and :class:`ErrorResponse`.

**Skill Management API models**:
    :class:`SkillStage` and :class:`ExportSkillPackageResponse`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

DEFAULT_TOKEN_TYPE = "Bearer"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Profiles ---


class Profile(BaseModel):
    """A named credential record for one authorized identity.

    Profiles are immutable; the credential store replaces a profile as a
    whole whenever its tokens change, so the access token, refresh token
    and expiry are always set or cleared together.

    ``expires_at`` is kept at one-second resolution and is serialised as
    integer seconds since the epoch.

    Example::

        profile = Profile(name="dev")
        assert not profile.is_initialized()
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique profile name")
    vendor_id: Optional[str] = Field(
        default=None, description="Alexa developer vendor ID"
    )
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = DEFAULT_TOKEN_TYPE
    expires_at: Optional[datetime] = Field(
        default=None, description="Absolute UTC expiry of the access token"
    )

    @field_validator("expires_at", mode="before")
    @classmethod
    def _parse_expires_at(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        return value

    @field_validator("expires_at")
    @classmethod
    def _truncate_expires_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    @field_serializer("expires_at")
    def _serialize_expires_at(self, value: Optional[datetime]) -> Optional[int]:
        if value is None:
            return None
        return int(value.timestamp())

    def is_initialized(self) -> bool:
        """Return ``True`` once the profile has received tokens."""
        return self.access_token is not None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` if the profile is initialized and not yet expired.

        Args:
            now: Reference time. Defaults to the current UTC time.
        """
        if not self.is_initialized() or self.expires_at is None:
            return False
        return self.expires_at > (now or utcnow())

    def seconds_remaining(self, now: Optional[datetime] = None) -> Optional[int]:
        """Seconds until expiry (negative once expired), or ``None`` if uninitialized."""
        if self.expires_at is None:
            return None
        return int((self.expires_at - (now or utcnow())).total_seconds())

    def authorization_header(self) -> str:
        """Return the ``Authorization`` header value for this profile's token.

        The scheme is always ``Bearer``; servers report ``token_type`` in
        varying case.
        """
        if self.access_token is None:
            raise ValueError(f"Profile '{self.name}' has no access token")
        return f"Bearer {self.access_token}"

    def with_tokens(
        self,
        access_token: str,
        refresh_token: str,
        expires_in: int,
        vendor_id: Optional[str] = None,
        token_type: str = DEFAULT_TOKEN_TYPE,
        now: Optional[datetime] = None,
    ) -> Profile:
        """Return a copy holding a fresh set of tokens.

        ``expires_at`` becomes ``now + expires_in``. The vendor ID is kept
        when *vendor_id* is ``None``.
        """
        expires_at = (now or utcnow()) + timedelta(seconds=expires_in)
        return Profile(
            name=self.name,
            vendor_id=vendor_id if vendor_id is not None else self.vendor_id,
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=token_type or DEFAULT_TOKEN_TYPE,
            expires_at=expires_at,
        )


class StoreDocument(BaseModel):
    """On-disk shape of the credential store file."""

    profiles: list[Profile] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> StoreDocument:
        seen: set[str] = set()
        for profile in self.profiles:
            if profile.name in seen:
                raise ValueError(f"duplicate profile name '{profile.name}'")
            seen.add(profile.name)
        return self


# --- Settings ---


class Settings(BaseModel):
    """User settings stored in ``settings.json`` in the config directory.

    Attributes:
        client_id_source: Where to read the Login with Amazon client ID
            from (``env:VAR``, ``file:/path`` or ``prompt``).
        auto_refresh: Refresh expired profiles transparently before use.
        default_profile: Profile used when ``--profile`` is not given.
        auth_base_url: Authorization server base URL.
        api_base_url: Skill Management API base URL.
    """

    client_id_source: Optional[str] = None
    auto_refresh: bool = True
    default_profile: Optional[str] = None
    auth_base_url: str = "https://api.amazon.com"
    api_base_url: str = "https://api.amazonalexa.com"


# --- Device flow ---


class ErrorResponse(BaseModel):
    """Error envelope returned by both authorization endpoints."""

    error: str
    error_description: Optional[str] = None


class CodePair(BaseModel):
    """Successful response from the device authorization endpoint.

    ``expires_in`` and ``interval`` are relative, in seconds.
    """

    user_code: str
    device_code: str
    verification_uri: str
    expires_in: int
    interval: int


class TokenResult(BaseModel):
    """Successful response from the token endpoint."""

    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int


# --- Skill Management API ---


class SkillStage(str, enum.Enum):
    """Skill stage addressed by the Skill Management API."""

    DEVELOPMENT = "development"
    LIVE = "live"


class ExportSkillPackageResponse(BaseModel):
    """Result of requesting a skill package export."""

    location: str
    export_id: str
