"""Typer application factory and CLI entry point for alexa-util.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``profile``, ``auth``, ``skill``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands, and
invokes the Typer app. :class:`~alexa_util.exceptions.AlexaUtilError`
instances exit with their own code; any other exception is written to a
crash log under the data directory.

See Also:
    :mod:`alexa_util.config`: Settings and precedence resolution.
    :mod:`alexa_util.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from alexa_util import __version__
from alexa_util.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="alexa-util",
    help="Manage Login with Amazon credentials for the Alexa Skill Management API.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"alexa-util {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~alexa_util.output.OutputManager` and
    logging from CLI flags, and stores shared options (``profile``,
    ``force``) in the Typer context so that sub-commands can read them via
    ``ctx.obj``.
    """
    from alexa_util.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.configure_logging()

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def register_commands() -> None:
    """Attach the built-in sub-command groups to :data:`app`.

    Safe to call more than once.
    """
    from alexa_util.commands.auth import auth_app
    from alexa_util.commands.config import config_app
    from alexa_util.commands.profile import profile_app
    from alexa_util.commands.skill import skill_app

    registered = {info.name for info in app.registered_groups}
    for sub_app, name, help_text in (
        (profile_app, "profile", "Credential profile management."),
        (auth_app, "auth", "Device-flow authorization and tokens."),
        (skill_app, "skill", "Skill Management API calls."),
        (config_app, "config", "Settings management."),
    ):
        if name not in registered:
            app.add_typer(sub_app, name=name, help=help_text)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly, including mid-poll."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from alexa_util.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``alexa-util`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from alexa_util.exceptions import AlexaUtilError
        from alexa_util.output import error

        if isinstance(exc, AlexaUtilError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
