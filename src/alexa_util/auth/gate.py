"""Validity gate in front of every bearer-token consumer.

:class:`TokenGate` turns a profile name into a usable credential, or fails
before any API call is attempted:

- unknown profile -> :class:`~alexa_util.exceptions.ProfileNotFoundError`
- valid profile -> returned as is
- invalid profile without auto-refresh -> ``ProfileNotValidError``, no
  network call
- expired profile with a refresh token and auto-refresh enabled -> one
  refresh exchange, tokens stored, refreshed profile returned
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.device_flow import DeviceFlowClient
from alexa_util.exceptions import ConfigError, ProfileNotFoundError, ProfileNotValidError
from alexa_util.models import Profile

logger = logging.getLogger(__name__)


class TokenGate:
    """Hand out credentials only for valid profiles.

    Args:
        store: The credential store to read and update.
        client: Protocol client used for refreshes. Required when
            *auto_refresh* is enabled.
        client_id: Login with Amazon client ID sent with refresh requests,
            or a zero-argument callable returning it. A callable is invoked
            on the first refresh only and its result is reused.
        auto_refresh: Refresh expired profiles transparently.

    Example::

        gate = TokenGate(store, client, client_id, auto_refresh=True)
        headers = {"Authorization": gate.authorization_header("dev")}
    """

    def __init__(
        self,
        store: CredentialStore,
        client: Optional[DeviceFlowClient] = None,
        client_id: Union[str, Callable[[], Optional[str]], None] = None,
        auto_refresh: bool = False,
    ) -> None:
        self._store = store
        self._client = client
        self._client_id = client_id
        self._auto_refresh = auto_refresh

    @property
    def auto_refresh(self) -> bool:
        return self._auto_refresh

    def require_valid(self, name: str) -> Profile:
        """Return a valid profile, refreshing it first when allowed.

        Raises:
            ProfileNotFoundError: If *name* is not in the store.
            ProfileNotValidError: If the profile is uninitialized, has no
                refresh token, or is expired while auto-refresh is off.
            ConfigError: If a refresh is needed but no client or client ID
                is configured.
            AuthorizationError: If the refresh exchange fails.
            ContractViolationError: If the refresh response has an unknown
                shape.
            StoreError: If the refreshed tokens cannot be persisted.
        """
        profile = self._store.get_profile(name)
        if profile is None:
            raise ProfileNotFoundError(name)
        if profile.is_valid():
            return profile

        if not profile.is_initialized():
            raise ProfileNotValidError(name, "not initialized, run 'alexa-util auth login'")
        if not profile.refresh_token:
            raise ProfileNotValidError(name, "expired and no refresh token is stored")
        if not self._auto_refresh:
            raise ProfileNotValidError(name, "access token expired")

        return self.refresh(name)

    def refresh(self, name: str) -> Profile:
        """Exchange the stored refresh token for new tokens, regardless of expiry.

        Raises:
            ProfileNotFoundError: If *name* is not in the store.
            ProfileNotValidError: If the profile has no refresh token.
            ConfigError: If no client or client ID is configured.
        """
        profile = self._store.get_profile(name)
        if profile is None:
            raise ProfileNotFoundError(name)
        if not profile.refresh_token:
            raise ProfileNotValidError(name, "no refresh token is stored")
        client_id = self._resolve_client_id()
        if self._client is None or not client_id:
            raise ConfigError(
                "Refreshing a profile requires a client ID. Pass --client-id, "
                "set ALEXA_UTIL_CLIENT_ID, or configure client_id_source."
            )

        logger.debug("Refreshing tokens for profile '%s'", name)
        tokens = self._client.refresh(client_id, profile.refresh_token)
        return self._store.update_profile_tokens(
            name,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
            token_type=tokens.token_type,
        )

    def _resolve_client_id(self) -> Optional[str]:
        if callable(self._client_id):
            self._client_id = self._client_id()
        return self._client_id

    def authorization_header(self, name: str) -> str:
        """Return ``"Bearer <access_token>"`` for a valid profile."""
        return self.require_valid(name).authorization_header()
