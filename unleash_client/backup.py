"""Toggle payload backup.

Provides:
- A repository wrapping host-supplied read/write hooks
- In-memory and file-based hook providers
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from unleash_client.config import UnleashSettings
from unleash_client.errors import BackupUnavailable, DecodeError
from unleash_client.features import ToggleSnapshot

logger = logging.getLogger(__name__)

ReadBackup = Callable[[UnleashSettings], Union[Optional[str], Awaitable[Optional[str]]]]
WriteBackup = Callable[[UnleashSettings, str], Union[None, Awaitable[None]]]


async def _call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ToggleBackupRepository:
    """Persists and recovers the last valid payload through host hooks."""

    def __init__(self, read_backup: ReadBackup, write_backup: WriteBackup):
        self._read_backup = read_backup
        self._write_backup = write_backup

    async def write(self, settings: UnleashSettings, payload: str) -> bool:
        """Store ``payload``. Failures are logged and reported as False."""
        try:
            await _call_hook(self._write_backup, settings, payload)
            return True
        except Exception as e:
            logger.warning(
                f"Failed to write toggle backup: {e}",
                extra={"feature_url": settings.feature_url},
            )
            return False

    async def read(self, settings: UnleashSettings) -> str:
        """Return the stored payload.

        Raises:
            BackupUnavailable: If the hook fails or has nothing stored.
        """
        try:
            payload = await _call_hook(self._read_backup, settings)
        except Exception as e:
            raise BackupUnavailable(f"Backup read hook failed: {e}")

        if not payload:
            raise BackupUnavailable(f"No backup stored for '{settings.backup_key}'")
        return payload

    async def load(self, settings: UnleashSettings) -> Optional[ToggleSnapshot]:
        """Read and decode the stored payload; None if there is none usable."""
        try:
            payload = await self.read(settings)
            return ToggleSnapshot.from_json(payload)
        except (BackupUnavailable, DecodeError) as e:
            logger.warning(
                f"Toggle backup not usable: {e.message}",
                extra={"error_code": e.code.value, "feature_url": settings.feature_url},
            )
            return None


class InMemoryToggleBackup:
    """Backup hooks keeping payloads in process memory."""

    def __init__(self):
        self._payloads: Dict[str, str] = {}

    def read(self, settings: UnleashSettings) -> Optional[str]:
        return self._payloads.get(settings.backup_key)

    def write(self, settings: UnleashSettings, payload: str) -> None:
        self._payloads[settings.backup_key] = payload

    def clear(self) -> None:
        self._payloads.clear()


class FileToggleBackup:
    """Backup hooks storing one file per settings scope in a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def path_for(self, settings: UnleashSettings) -> Path:
        digest = hashlib.sha256(settings.backup_key.encode("utf-8")).hexdigest()[:16]
        return self.directory / f"unleash-{digest}.json"

    async def read(self, settings: UnleashSettings) -> Optional[str]:
        path = self.path_for(settings)
        async with self._get_lock():
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

    async def write(self, settings: UnleashSettings, payload: str) -> None:
        path = self.path_for(settings)
        async with self._get_lock():
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise


__all__ = [
    "ReadBackup",
    "WriteBackup",
    "ToggleBackupRepository",
    "InMemoryToggleBackup",
    "FileToggleBackup",
]
