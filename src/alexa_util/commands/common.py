"""Helpers shared by the command modules."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, NoReturn, Optional

import typer

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.device_flow import DeviceFlowClient
from alexa_util.auth.gate import TokenGate
from alexa_util.config import load_settings, resolve_client_id
from alexa_util.exceptions import AlexaUtilError
from alexa_util.models import Settings
from alexa_util.output import error, suggest


def fail(exc: AlexaUtilError, hint: Optional[str] = None) -> NoReturn:
    """Report *exc* on stderr and exit with its exit code."""
    error(str(exc))
    if hint:
        suggest(hint)
    raise typer.Exit(code=exc.exit_code)


def make_device_client(settings: Settings) -> DeviceFlowClient:
    """Build the protocol client for the configured authorization server."""
    return DeviceFlowClient(base_url=settings.auth_base_url)


@contextmanager
def open_store() -> Iterator[CredentialStore]:
    """Open the credential store for the duration of a command."""
    store = CredentialStore.load_or_create()
    try:
        yield store
    finally:
        store.close()


@contextmanager
def open_gate(
    store: CredentialStore,
    cli_client_id: Optional[str] = None,
    auto_refresh: Optional[bool] = None,
) -> Iterator[TokenGate]:
    """Yield a :class:`TokenGate` wired to the configured client ID and refresh policy.

    The client ID is resolved only when the gate actually refreshes, so a
    valid profile never triggers a prompt or a failing credential source.

    Args:
        store: The open credential store.
        cli_client_id: ``--client-id`` value, if given.
        auto_refresh: Overrides ``settings.auto_refresh`` when not ``None``.
    """
    settings = load_settings()
    refresh = settings.auto_refresh if auto_refresh is None else auto_refresh
    with make_device_client(settings) as client:
        yield TokenGate(
            store,
            client,
            lambda: resolve_client_id(cli_client_id, settings),
            auto_refresh=refresh,
        )
