"""Profile commands -- register and inspect credential profiles.

Provides the ``alexa-util profile`` sub-command group. A profile starts
empty (name only) and receives tokens from ``alexa-util auth login``.

Typical workflow::

    alexa-util profile add dev --default
    alexa-util auth login dev
    alexa-util profile list
"""

from __future__ import annotations

from typing import Optional

import typer

from alexa_util.commands.common import fail, open_store
from alexa_util.exceptions import AlexaUtilError, ProfileNotFoundError
from alexa_util.models import Profile
from alexa_util.output import get_output, info, success, suggest


profile_app = typer.Typer(no_args_is_help=True)


def _status(profile: Profile) -> str:
    if not profile.is_initialized():
        return "uninitialized"
    return "valid" if profile.is_valid() else "expired"


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Name of the new profile."),
    vendor_id: Optional[str] = typer.Option(
        None, "--vendor-id", help="Alexa developer vendor ID."
    ),
    default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Register an empty profile.

    Example::

        alexa-util profile add dev --vendor-id M1ABCDEF
    """
    from alexa_util.config import load_settings, save_settings

    try:
        with open_store() as store:
            store.add_profile(Profile(name=name, vendor_id=vendor_id))
        if default:
            settings = load_settings()
            settings.default_profile = name
            save_settings(settings)
    except AlexaUtilError as exc:
        fail(exc)

    success(f'Profile "{name}" created.')
    suggest(f"Authorize it: alexa-util auth login {name}")


@profile_app.command("list")
def profile_list() -> None:
    """List all profiles with their credential status.

    Example::

        alexa-util profile list
        alexa-util --json profile list
    """
    try:
        with open_store() as store:
            profiles = store.profiles
    except AlexaUtilError as exc:
        fail(exc)

    if not profiles:
        info("No profiles configured.")
        suggest("Create one: alexa-util profile add <name>")
        return

    rows = [
        [
            p.name,
            p.vendor_id or "-",
            _status(p),
            p.expires_at.isoformat() if p.expires_at else "-",
        ]
        for p in profiles
    ]
    get_output().print_table(
        ["Profile", "Vendor ID", "Status", "Expires At"], rows, title="Profiles"
    )


@profile_app.command("show")
def profile_show(
    name: str = typer.Argument(help="Profile to show."),
) -> None:
    """Show one profile. Tokens are truncated.

    Example::

        alexa-util profile show dev
    """
    try:
        with open_store() as store:
            profile = store.get_profile(name)
    except AlexaUtilError as exc:
        fail(exc)

    if profile is None:
        fail(ProfileNotFoundError(name), "List profiles: alexa-util profile list")

    get_output().print_record(
        {
            "Profile": profile.name,
            "Vendor ID": profile.vendor_id,
            "Token Type": profile.token_type,
            "Access Token": _truncate(profile.access_token),
            "Refresh Token": _truncate(profile.refresh_token),
            "Expires At": profile.expires_at.isoformat() if profile.expires_at else None,
            "Status": _status(profile),
        },
        title="Profile",
    )


@profile_app.command("remove")
def profile_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile to remove."),
) -> None:
    """Delete a profile and its tokens.

    Asks for confirmation unless ``--force`` is active.

    Example::

        alexa-util --force profile remove dev
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f'Remove profile "{name}" and its tokens?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    try:
        with open_store() as store:
            store.remove_profile(name)
    except AlexaUtilError as exc:
        fail(exc)

    success(f'Profile "{name}" removed.')


def _truncate(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value[:8] + "..." if len(value) > 8 else value
