"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for alexa-util:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.alexa-util/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Credential store location** -- :func:`get_store_path` names the single
  JSON file backing :class:`~alexa_util.auth.credential_store.CredentialStore`.
* **Settings** -- A :class:`~alexa_util.models.Settings` JSON file storing
  the client ID source, the auto-refresh policy and default profile.
* **Precedence resolution** -- :func:`resolve_profile_name` and
  :func:`resolve_client_id` merge CLI flags, environment variables and
  settings.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts.

All file writes go through :func:`atomic_write`.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from alexa_util.exceptions import ConfigError, InvalidUsageError
from alexa_util.models import Settings

_APP_NAME = "alexa-util"
_STORE_FILENAME = "profiles.json"
_SETTINGS_FILENAME = "settings.json"

ENV_PROFILE = "ALEXA_UTIL_PROFILE"
ENV_CLIENT_ID = "ALEXA_UTIL_CLIENT_ID"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/alexa-util/`` (default
    ``~/.config/alexa-util/``). On macOS/Windows: ``~/.alexa-util/``.

    The directory is not created here; writers create it on first write.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/alexa-util/`` (default
    ``~/.local/share/alexa-util/``). On macOS/Windows: ``~/.alexa-util/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_store_path() -> Path:
    """Path of the credential store file (``<config_dir>/profiles.json``)."""
    return get_config_dir() / _STORE_FILENAME


def get_settings_path() -> Path:
    """Path of the settings file (``<config_dir>/settings.json``)."""
    return get_config_dir() / _SETTINGS_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Parent directories
    are created as needed. When *mode* is given the permissions are applied
    to the temp file before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        # Includes KeyboardInterrupt: never leave a stray temp file behind.
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def load_settings() -> Settings:
    """Load user settings from the config directory.

    Returns:
        The deserialised :class:`~alexa_util.models.Settings`. A default
        instance is returned when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = get_settings_path()
    if not path.is_file():
        return Settings()
    try:
        text = path.read_text(encoding="utf-8")
        return Settings.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist user settings atomically.

    Raises:
        ConfigError: If the settings file cannot be written.
    """
    path = get_settings_path()
    data = settings.model_dump(mode="json")
    try:
        atomic_write(path, json.dumps(data, indent=2) + "\n")
    except OSError as exc:
        raise ConfigError(f"Cannot write settings at {path}: {exc}") from exc


# --- Precedence resolution ---


def resolve_profile_name(
    cli_profile: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Resolve the active profile name.

    Precedence (high to low):
        1. ``--profile`` flag
        2. ``ALEXA_UTIL_PROFILE`` environment variable
        3. ``default_profile`` in settings

    Raises:
        InvalidUsageError: If no profile name can be determined.
    """
    if cli_profile:
        return cli_profile
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        return env_profile
    if settings is None:
        settings = load_settings()
    if settings.default_profile:
        return settings.default_profile
    raise InvalidUsageError(
        f"No profile selected. Pass --profile, set {ENV_PROFILE}, "
        "or run 'alexa-util config set default_profile <name>'."
    )


def resolve_client_id(
    cli_client_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """Resolve the Login with Amazon client ID.

    Precedence (high to low):
        1. ``--client-id`` flag (a literal value)
        2. ``ALEXA_UTIL_CLIENT_ID`` environment variable
        3. ``client_id_source`` in settings, via :func:`resolve_credential`

    Returns:
        The client ID, or ``None`` when none is configured.
    """
    if cli_client_id:
        return cli_client_id
    env_client_id = os.environ.get(ENV_CLIENT_ID)
    if env_client_id:
        return env_client_id
    if settings is None:
        settings = load_settings()
    if settings.client_id_source:
        return resolve_credential(settings.client_id_source)
    return None


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter client ID: ")

    raise ConfigError(f"Unknown credential source format: {source}")
