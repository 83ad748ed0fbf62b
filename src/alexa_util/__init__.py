"""alexa-util -- Login with Amazon device-flow credentials for the Alexa Skill Management API.

This package keeps named *profiles* of OAuth2 tokens on disk, obtains them
with the Device Authorization Grant, refreshes them when they expire, and
uses them to call the Skill Management API.

Typical workflow::

    alexa-util profile add dev
    alexa-util auth login dev --client-id amzn1.application-oa2-client.abc
    alexa-util skill export amzn1.ask.skill.123 --profile dev

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware paths, settings, and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting and logging setup with Rich.
"""

__version__ = "0.1.0"
