"""Device-flow state machine.

:class:`AuthOrchestrator` drives one end-to-end device authorization for a
named profile::

    IDLE -> CODE_ISSUED -> POLLING -> AUTHORIZED
                                   -> EXPIRED
                                   -> FAILED

1. Request a code pair and hand it to the ``on_code_issued`` callback,
   which shows the user code and verification URI to the operator.
2. Poll the token endpoint no more often than the server's ``interval``.
   ``authorization_pending`` keeps polling, ``slow_down`` adds
   :data:`SLOW_DOWN_INCREMENT` seconds to the interval.
3. Stop at the code's ``expires_in`` deadline even if the server has not
   reported ``expired_token`` yet.
4. On success, store the tokens in the profile.

Expired and failed flows persist nothing. One orchestrator runs one flow at
a time; separate profiles can be authorized by separate orchestrators
without sharing state.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.device_flow import DeviceFlowClient
from alexa_util.exceptions import (
    AlexaUtilError,
    AuthorizationError,
    AuthorizationErrorCode,
    ProfileNotFoundError,
)
from alexa_util.models import CodePair, Profile, TokenResult

logger = logging.getLogger(__name__)

SLOW_DOWN_INCREMENT = 5
"""Seconds added to the polling interval each time the server answers ``slow_down``."""

MIN_POLL_INTERVAL = 1
"""Lower bound on the polling interval, whatever the server declares."""


class FlowState(str, enum.Enum):
    """States of a device authorization flow."""

    IDLE = "idle"
    CODE_ISSUED = "code_issued"
    POLLING = "polling"
    AUTHORIZED = "authorized"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (FlowState.AUTHORIZED, FlowState.EXPIRED, FlowState.FAILED)


@dataclass
class FlowOutcome:
    """Result of :meth:`AuthOrchestrator.login`.

    Attributes:
        state: ``AUTHORIZED`` or ``EXPIRED``. Failed flows raise instead.
        profile: The updated profile when authorized.
        attempts: Number of token exchange attempts made.
        code_pair: The code pair issued for this flow.
    """

    state: FlowState
    profile: Optional[Profile] = None
    attempts: int = 0
    code_pair: Optional[CodePair] = None

    @property
    def authorized(self) -> bool:
        return self.state is FlowState.AUTHORIZED


class AuthOrchestrator:
    """Run the device authorization flow and persist its tokens.

    Args:
        store: Credential store holding the target profile.
        client: Protocol client for the authorization server.
        on_code_issued: Called once with the issued
            :class:`~alexa_util.models.CodePair` so the user code and
            verification URI can be shown to the operator.
        sleep: Function used to wait between polls.
        clock: Monotonic clock in seconds, used for the expiry deadline.
    """

    def __init__(
        self,
        store: CredentialStore,
        client: DeviceFlowClient,
        on_code_issued: Optional[Callable[[CodePair], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._client = client
        self._on_code_issued = on_code_issued
        self._sleep = sleep
        self._clock = clock
        self._state = FlowState.IDLE

    @property
    def state(self) -> FlowState:
        """Current state of the most recent flow."""
        return self._state

    def login(
        self,
        profile_name: str,
        client_id: str,
        vendor_id: Optional[str] = None,
    ) -> FlowOutcome:
        """Authorize *profile_name* through the device flow.

        Args:
            profile_name: Existing profile that receives the tokens.
            client_id: Login with Amazon client ID.
            vendor_id: Optional vendor ID to record with the tokens.

        Returns:
            A :class:`FlowOutcome` in state ``AUTHORIZED`` or ``EXPIRED``.

        Raises:
            ProfileNotFoundError: If the profile does not exist. Raised
                before any network call.
            AuthorizationError: For any non-retryable protocol or
                transport error. The state is ``FAILED``.
            ContractViolationError: If the server sends a response of
                unknown shape. The state is ``FAILED``.
            StoreError: If the tokens cannot be persisted. The state is
                ``FAILED``.
        """
        if self._store.get_profile(profile_name) is None:
            raise ProfileNotFoundError(profile_name)

        self._state = FlowState.IDLE
        try:
            code_pair = self._client.initiate(client_id)
        except AlexaUtilError:
            self._state = FlowState.FAILED
            raise

        issued_at = self._clock()
        self._state = FlowState.CODE_ISSUED
        logger.debug(
            "Code pair issued for '%s' (expires in %ss, interval %ss)",
            profile_name,
            code_pair.expires_in,
            code_pair.interval,
        )
        if self._on_code_issued is not None:
            try:
                self._on_code_issued(code_pair)
            except Exception:
                self._state = FlowState.FAILED
                raise

        try:
            tokens, attempts = self._poll_until_done(code_pair, issued_at)
        except AlexaUtilError:
            self._state = FlowState.FAILED
            raise

        if tokens is None:
            self._state = FlowState.EXPIRED
            logger.info("Device code for '%s' expired after %d attempts", profile_name, attempts)
            return FlowOutcome(
                state=FlowState.EXPIRED, attempts=attempts, code_pair=code_pair
            )

        try:
            profile = self._store.update_profile_tokens(
                profile_name,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_in=tokens.expires_in,
                vendor_id=vendor_id,
                token_type=tokens.token_type,
            )
        except AlexaUtilError:
            self._state = FlowState.FAILED
            raise

        self._state = FlowState.AUTHORIZED
        logger.info("Profile '%s' authorized after %d attempts", profile_name, attempts)
        return FlowOutcome(
            state=FlowState.AUTHORIZED,
            profile=profile,
            attempts=attempts,
            code_pair=code_pair,
        )

    def _poll_until_done(
        self, code_pair: CodePair, issued_at: float
    ) -> tuple[Optional[TokenResult], int]:
        """Poll until tokens arrive or the code expires.

        Returns:
            ``(tokens, attempts)``; *tokens* is ``None`` when the code
            expired.
        """
        self._state = FlowState.POLLING
        deadline = issued_at + code_pair.expires_in
        interval = max(code_pair.interval, MIN_POLL_INTERVAL)
        attempts = 0

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                return None, attempts
            self._sleep(min(interval, remaining))
            if self._clock() >= deadline:
                return None, attempts

            attempts += 1
            try:
                return self._client.poll(code_pair.user_code, code_pair.device_code), attempts
            except AuthorizationError as exc:
                if exc.code is AuthorizationErrorCode.AUTHORIZATION_PENDING:
                    continue
                if exc.code is AuthorizationErrorCode.SLOW_DOWN:
                    interval += SLOW_DOWN_INCREMENT
                    logger.debug("Server asked to slow down; polling every %ss", interval)
                    continue
                if exc.code is AuthorizationErrorCode.EXPIRED_TOKEN:
                    return None, attempts
                raise
