"""Built-in CLI sub-commands for alexa-util.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~alexa_util.commands.profile` -- register, list and remove profiles.
* :mod:`~alexa_util.commands.auth` -- device-flow login, refresh, status
  and token output.
* :mod:`~alexa_util.commands.skill` -- Skill Management API calls.
* :mod:`~alexa_util.commands.config` -- view and modify user settings.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :func:`alexa_util.app.main`.
"""
