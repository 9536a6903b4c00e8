"""
Credential directory for the WhatsApp session.

The directory holds the multi-file auth state written by the session client.
Its layout is owned by the client library; this module only creates it,
checks for it, and deletes it as a unit.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """Disk error while opening or wiping the credential directory."""
    pass


class CredentialStore:
    """
    Opaque multi-file auth-state directory.

    Disk work runs in a worker thread so the event loop is never blocked.

    Example:
        store = CredentialStore(Path("./auth_data"))
        path = await store.open()      # load-or-create
        ...
        await store.wipe()             # forces a fresh QR pairing
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        """Return True if a credential directory is present on disk."""
        return self._path.is_dir()

    async def open(self) -> Path:
        """
        Load-or-create the credential directory.

        Returns:
            The directory path to hand to the session client.

        Raises:
            CredentialStoreError: If the directory cannot be created.
        """
        try:
            await asyncio.to_thread(self._path.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise CredentialStoreError(
                f"cannot open credential directory {self._path}: {e}"
            ) from e
        return self._path

    async def wipe(self) -> None:
        """
        Delete the credential directory and everything in it.

        A missing directory is not an error.

        Raises:
            CredentialStoreError: If the directory exists but cannot be removed.
        """
        if not self._path.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, self._path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise CredentialStoreError(
                f"cannot wipe credential directory {self._path}: {e}"
            ) from e
        logger.warning("Credential directory %s wiped", self._path)

    def __repr__(self) -> str:
        return f"<CredentialStore path={self._path}>"
