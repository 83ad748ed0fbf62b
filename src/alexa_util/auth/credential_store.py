"""File-backed registry of named credential profiles.

All profiles live in one JSON document, by default
``~/.config/alexa-util/profiles.json`` (XDG) or the platform-equivalent
directory::

    {
      "profiles": [
        {
          "name": "dev",
          "vendor_id": "M1ABCDEF",
          "access_token": "Atza|...",
          "refresh_token": "Atzr|...",
          "token_type": "Bearer",
          "expires_at": 1767225600
        }
      ]
    }

The in-memory list is the working copy and the file is the durable copy.
Every mutation writes through before returning. Files are written
atomically with ``0o600`` permissions.

Concurrent writers from separate processes are not coordinated: the last
writer wins.

See Also:
    :class:`~alexa_util.auth.orchestrator.AuthOrchestrator` -- fills
    profiles with tokens from the device flow.
    :class:`~alexa_util.auth.gate.TokenGate` -- checks validity before use.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from alexa_util.config import atomic_write, get_store_path
from alexa_util.exceptions import (
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    StoreCorruptError,
    StoreError,
)
from alexa_util.models import DEFAULT_TOKEN_TYPE, Profile, StoreDocument

logger = logging.getLogger(__name__)


class CredentialStore:
    """Ordered, name-unique collection of :class:`~alexa_util.models.Profile`.

    Create instances with :meth:`load_or_create` rather than calling the
    constructor directly. The store is passed explicitly to whatever needs
    it; tests construct one over a temporary path.

    The store is also a context manager. Leaving the block calls
    :meth:`close`, which flushes the current state as a best-effort guard
    when this instance has mutated the store. Mutations do not rely on it:
    they are persisted immediately. A store that was only read is never
    rewritten on close.

    Args:
        path: The JSON file backing this store.
        profiles: Initial profile list.

    Example::

        with CredentialStore.load_or_create() as store:
            store.add_profile(Profile(name="dev"))
            assert store.get_profile("dev") is not None
    """

    def __init__(self, path: Path, profiles: Optional[list[Profile]] = None) -> None:
        self._path = path
        self._profiles: list[Profile] = list(profiles or [])
        self._closed = False
        self._mutated = False

    @classmethod
    def load_or_create(cls, path: Optional[Path] = None) -> CredentialStore:
        """Open the store at *path*, creating an empty one if it does not exist.

        Args:
            path: Store file location. Defaults to
                :func:`~alexa_util.config.get_store_path`.

        Returns:
            The loaded store. A freshly created store is persisted before
            this returns.

        Raises:
            StoreError: If the file exists but cannot be read, or an empty
                store cannot be written.
            StoreCorruptError: If the file contains invalid JSON or does not
                match the store schema.
        """
        path = path or get_store_path()
        if not path.exists():
            logger.debug("Creating empty credential store at %s", path)
            store = cls(path)
            store.save()
            return store
        return cls(path, _read_document(path).profiles)

    @property
    def path(self) -> Path:
        """The filesystem path of the store file."""
        return self._path

    @property
    def profiles(self) -> tuple[Profile, ...]:
        """Snapshot of all profiles in insertion order."""
        return tuple(self._profiles)

    def names(self) -> list[str]:
        return [p.name for p in self._profiles]

    def get_profile(self, name: str) -> Optional[Profile]:
        """Look up a profile by exact, case-sensitive name."""
        for profile in self._profiles:
            if profile.name == name:
                return profile
        return None

    def add_profile(self, profile: Profile) -> None:
        """Append *profile* and persist.

        Raises:
            ProfileAlreadyExistsError: If a profile with the same name
                exists. The store is left unchanged.
            StoreError: If the store cannot be written. The profile is not
                kept in memory either.
        """
        if self.get_profile(profile.name) is not None:
            raise ProfileAlreadyExistsError(profile.name)

        self._profiles.append(profile)
        try:
            self.save()
        except StoreError:
            self._profiles.pop()
            raise
        self._mutated = True
        logger.debug("Added profile '%s'", profile.name)

    def update_profile_tokens(
        self,
        name: str,
        access_token: str,
        refresh_token: str,
        expires_in: int,
        vendor_id: Optional[str] = None,
        token_type: str = DEFAULT_TOKEN_TYPE,
    ) -> Profile:
        """Replace a profile's tokens and persist.

        The access token, refresh token, token type and expiry are written
        together; ``expires_at`` becomes now plus *expires_in* seconds.
        *vendor_id* replaces the stored vendor ID when given.

        Returns:
            The updated profile.

        Raises:
            ProfileNotFoundError: If *name* is not in the store.
            StoreError: If the store cannot be written. The previous
                profile is restored in memory.
        """
        index = self._index_of(name)
        previous = self._profiles[index]
        updated = previous.with_tokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
            vendor_id=vendor_id,
            token_type=token_type,
        )

        self._profiles[index] = updated
        try:
            self.save()
        except StoreError:
            self._profiles[index] = previous
            raise
        self._mutated = True
        logger.debug("Stored new tokens for profile '%s' (expires %s)", name, updated.expires_at)
        return updated

    def remove_profile(self, name: str) -> Profile:
        """Delete a profile and persist.

        Raises:
            ProfileNotFoundError: If *name* is not in the store.
        """
        index = self._index_of(name)
        removed = self._profiles.pop(index)
        try:
            self.save()
        except StoreError:
            self._profiles.insert(index, removed)
            raise
        self._mutated = True
        logger.debug("Removed profile '%s'", name)
        return removed

    def save(self) -> None:
        """Write the full profile list to disk atomically with ``0o600`` permissions.

        Raises:
            StoreError: If the file cannot be written.
        """
        document = StoreDocument(profiles=list(self._profiles))
        text = json.dumps(document.model_dump(mode="json"), indent=2) + "\n"
        try:
            atomic_write(self._path, text, mode=0o600)
        except OSError as exc:
            raise StoreError(f"Cannot write credential store {self._path}: {exc}") from exc

    def reload(self) -> None:
        """Replace the in-memory profiles with the file's contents.

        Raises:
            StoreError: If the file cannot be read.
            StoreCorruptError: If the file cannot be deserialised.
        """
        self._profiles = list(_read_document(self._path).profiles)

    def close(self) -> None:
        """Flush the store one last time if it was mutated. Failures are logged, not raised."""
        if self._closed:
            return
        self._closed = True
        if not self._mutated:
            return
        try:
            self.save()
        except StoreError as exc:
            logger.warning("Failed to write credential store on close: %s", exc)

    def __enter__(self) -> CredentialStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, name: object) -> bool:
        return any(p.name == name for p in self._profiles)

    def _index_of(self, name: str) -> int:
        for index, profile in enumerate(self._profiles):
            if profile.name == name:
                return index
        raise ProfileNotFoundError(name)


def _read_document(path: Path) -> StoreDocument:
    """Read and validate the store file at *path*."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise StoreError(f"Cannot read credential store {path}: {exc}") from exc
    try:
        return StoreDocument.model_validate(json.loads(raw.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        raise StoreCorruptError(f"Invalid credential store at {path}: {exc}") from exc
