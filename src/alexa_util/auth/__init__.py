"""Credential lifecycle for alexa-util profiles.

This package issues, stores and refreshes Login with Amazon tokens using
the OAuth2 Device Authorization Grant.

The main entry points are:

- :class:`CredentialStore` -- file-backed registry of named profiles.
- :class:`DeviceFlowClient` -- single-attempt calls to the device
  authorization and token endpoints.
- :class:`AuthOrchestrator` -- the polling state machine that authorizes a
  profile end to end.
- :class:`TokenGate` -- validity check (with optional refresh) in front of
  every API call.

Typical usage::

    from alexa_util.auth import AuthOrchestrator, CredentialStore, DeviceFlowClient

    store = CredentialStore.load_or_create()
    with DeviceFlowClient() as client:
        outcome = AuthOrchestrator(store, client, on_code_issued=show).login("dev", client_id)
"""

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.device_flow import DeviceFlowClient
from alexa_util.auth.gate import TokenGate
from alexa_util.auth.orchestrator import AuthOrchestrator, FlowOutcome, FlowState

__all__ = [
    "AuthOrchestrator",
    "CredentialStore",
    "DeviceFlowClient",
    "FlowOutcome",
    "FlowState",
    "TokenGate",
]
