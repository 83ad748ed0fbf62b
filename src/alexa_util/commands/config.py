"""Config commands -- view and modify user settings.

Provides the ``alexa-util config`` sub-command group for reading and
updating :class:`~alexa_util.models.Settings`: the client ID source, the
auto-refresh policy, the default profile and the endpoint base URLs.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from alexa_util.commands.common import fail
from alexa_util.exceptions import AlexaUtilError, InvalidUsageError
from alexa_util.output import get_output, info, success


config_app = typer.Typer(no_args_is_help=True)

_UNSET_VALUES = ("", "none", "null")


@config_app.command("show")
def config_show() -> None:
    """Show current settings.

    Example::

        alexa-util config show
        alexa-util --json config show
    """
    from alexa_util.config import get_config_dir, load_settings

    try:
        settings = load_settings()
    except AlexaUtilError as exc:
        fail(exc)

    info(f"Config directory: {get_config_dir()}")
    get_output().print_record(settings.model_dump(mode="json"), title="Settings")


@config_app.command("path")
def config_path() -> None:
    """Print the credential store path.

    Example::

        alexa-util config path
    """
    from alexa_util.config import get_store_path

    get_output().print_data(str(get_store_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'auto_refresh'."),
    value: str = typer.Argument(help="Value to set ('none' clears optional settings)."),
) -> None:
    """Set a setting.

    Booleans accept ``true/false``, ``1/0`` and ``yes/no``. The updated
    settings are validated before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value invalid.

    Example::

        alexa-util config set client_id_source env:LWA_CLIENT_ID
        alexa-util config set auto_refresh false
        alexa-util config set default_profile dev
    """
    from alexa_util.config import load_settings, save_settings
    from alexa_util.models import Settings

    try:
        settings = load_settings()
        data = settings.model_dump(mode="json")
        if key not in data:
            raise InvalidUsageError(
                f"Unknown setting: {key}. Known settings: {', '.join(sorted(data))}"
            )

        coerced = _coerce(key, value, data[key])
        data[key] = coerced
        try:
            new_settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid value for {key}: {exc}") from exc
        save_settings(new_settings)
    except AlexaUtilError as exc:
        fail(exc)

    success(f"Set {key} = {coerced}")


def _coerce(key: str, value: str, current: Any) -> Any:
    if isinstance(current, bool):
        lowered = value.lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        raise InvalidUsageError(f"Expected boolean for {key}, got: {value}")
    if value.lower() in _UNSET_VALUES and key in ("client_id_source", "default_profile"):
        return None
    return value
