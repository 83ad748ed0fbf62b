"""Skill commands -- call the Skill Management API with a profile's credential."""

from __future__ import annotations

from typing import Optional

import typer

from alexa_util.commands.common import fail, open_gate, open_store
from alexa_util.exceptions import AlexaUtilError
from alexa_util.models import SkillStage
from alexa_util.output import get_output, success


skill_app = typer.Typer(no_args_is_help=True)


@skill_app.command("export")
def skill_export(
    ctx: typer.Context,
    skill_id: str = typer.Argument(help="Skill ID, e.g. amzn1.ask.skill.1234."),
    stage: SkillStage = typer.Option(
        SkillStage.DEVELOPMENT, "--stage", "-s", help="Skill stage to export."
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile to authenticate with."
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Client ID used if the token must be refreshed."
    ),
) -> None:
    """Request a skill package export.

    The profile is checked (and refreshed, when auto-refresh is enabled)
    before the request is sent. Prints the export location and ID.

    Example::

        alexa-util skill export amzn1.ask.skill.1234 --stage live -p dev
    """
    from alexa_util.client import SkillClient
    from alexa_util.config import load_settings, resolve_profile_name

    cli_profile = profile or (ctx.obj.get("profile") if ctx.obj else None)
    try:
        settings = load_settings()
        profile_name = resolve_profile_name(cli_profile, settings)
        with open_store() as store, open_gate(store, client_id) as gate:
            with SkillClient(gate, base_url=settings.api_base_url) as client:
                export = client.export_skill_package(profile_name, skill_id, stage)
    except AlexaUtilError as exc:
        fail(exc)

    success(f"Export of {skill_id} ({stage.value}) requested.")
    get_output().print_record(
        {"export_id": export.export_id, "location": export.location},
        title="Skill Package Export",
    )
