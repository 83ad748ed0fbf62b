"""Auth commands -- obtain, refresh and inspect profile credentials.

Provides the ``alexa-util auth`` sub-command group:

* ``login`` runs the device authorization flow and stores the tokens.
* ``refresh`` exchanges the stored refresh token for new tokens.
* ``status`` reports whether a profile is usable.
* ``token`` prints the ``Authorization`` header value for scripts.

Typical workflow::

    alexa-util auth login dev --client-id amzn1.application-oa2-client.abc
    alexa-util auth status dev
    curl -H "Authorization: $(alexa-util auth token dev)" ...
"""

from __future__ import annotations

from typing import Optional

import typer

from alexa_util.commands.common import fail, make_device_client, open_gate, open_store
from alexa_util.exceptions import (
    AlexaUtilError,
    AuthError,
    InvalidUsageError,
    ProfileNotFoundError,
)
from alexa_util.exit_codes import EXIT_AUTH_FAILURE
from alexa_util.models import CodePair
from alexa_util.output import get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)

_CLIENT_ID_OPTION = typer.Option(
    None,
    "--client-id",
    help="Login with Amazon client ID (overrides ALEXA_UTIL_CLIENT_ID and settings).",
)


def _show_code_pair(code_pair: CodePair) -> None:
    get_output().user_code(
        code_pair.verification_uri, code_pair.user_code, code_pair.expires_in
    )


@auth_app.command("login")
def auth_login(
    profile_name: str = typer.Argument(help="Profile to authorize."),
    client_id: Optional[str] = _CLIENT_ID_OPTION,
    vendor_id: Optional[str] = typer.Option(
        None, "--vendor-id", help="Vendor ID to record with the tokens."
    ),
) -> None:
    """Authorize a profile with the device flow.

    Prints a verification URL and user code, then waits until the code is
    entered in a browser on any device, the user denies access, or the code
    expires.

    Raises:
        typer.Exit: With code 3 if the code expires or authorization fails,
            code 4 if the profile does not exist, code 2 if no client ID is
            configured.

    Example::

        alexa-util auth login dev --client-id amzn1.application-oa2-client.abc
    """
    from alexa_util.auth.orchestrator import AuthOrchestrator
    from alexa_util.config import load_settings, resolve_client_id

    try:
        settings = load_settings()
        resolved_client_id = resolve_client_id(client_id, settings)
        if not resolved_client_id:
            raise InvalidUsageError(
                "No client ID configured. Pass --client-id, set "
                "ALEXA_UTIL_CLIENT_ID, or run 'alexa-util config set client_id_source env:VAR'."
            )

        with open_store() as store, make_device_client(settings) as client:
            orchestrator = AuthOrchestrator(store, client, on_code_issued=_show_code_pair)
            outcome = orchestrator.login(profile_name, resolved_client_id, vendor_id=vendor_id)
    except ProfileNotFoundError as exc:
        fail(exc, f"Create it first: alexa-util profile add {profile_name}")
    except AlexaUtilError as exc:
        fail(exc)

    if not outcome.authorized:
        get_output().error("The device code expired before authorization completed.")
        suggest(f"Start over: alexa-util auth login {profile_name}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    success(f'Profile "{profile_name}" authorized.')


@auth_app.command("refresh")
def auth_refresh(
    profile_name: str = typer.Argument(help="Profile to refresh."),
    client_id: Optional[str] = _CLIENT_ID_OPTION,
) -> None:
    """Exchange the stored refresh token for new tokens.

    Example::

        alexa-util auth refresh dev
    """
    try:
        with open_store() as store, open_gate(store, client_id, auto_refresh=True) as gate:
            profile = gate.refresh(profile_name)
    except AlexaUtilError as exc:
        fail(exc)

    success(f'Profile "{profile_name}" refreshed (expires {profile.expires_at.isoformat()}).')


@auth_app.command("status")
def auth_status(
    profile_name: str = typer.Argument(help="Profile to check."),
) -> None:
    """Report whether a profile holds a usable credential.

    Exits with code 3 when the profile is uninitialized or expired, so the
    command can be used in scripts.

    Example::

        alexa-util auth status dev || alexa-util auth refresh dev
    """
    try:
        with open_store() as store:
            profile = store.get_profile(profile_name)
    except AlexaUtilError as exc:
        fail(exc)

    if profile is None:
        fail(ProfileNotFoundError(profile_name))

    if not profile.is_initialized():
        info(f'Profile "{profile_name}" is not initialized.')
        suggest(f"Authorize it: alexa-util auth login {profile_name}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    remaining = profile.seconds_remaining() or 0
    if not profile.is_valid():
        info(f'Profile "{profile_name}" expired {-remaining}s ago.')
        suggest(f"Refresh it: alexa-util auth refresh {profile_name}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    success(f'Profile "{profile_name}" is valid for another {remaining}s.')


@auth_app.command("token")
def auth_token(
    profile_name: str = typer.Argument(help="Profile whose token to print."),
    client_id: Optional[str] = _CLIENT_ID_OPTION,
    no_refresh: bool = typer.Option(
        False, "--no-refresh", help="Fail instead of refreshing an expired token."
    ),
) -> None:
    """Print the ``Authorization`` header value for a valid profile.

    Refreshes an expired profile first when auto-refresh is enabled in
    settings, unless ``--no-refresh`` is given.

    Example::

        alexa-util auth token dev
    """
    try:
        with open_store() as store, open_gate(
            store, client_id, auto_refresh=False if no_refresh else None
        ) as gate:
            header = gate.authorization_header(profile_name)
    except AuthError as exc:
        fail(exc, f"Authorize it: alexa-util auth login {profile_name}")
    except AlexaUtilError as exc:
        fail(exc)

    get_output().print_data(header)
