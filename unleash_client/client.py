"""Unleash toggle client.

Keeps a local snapshot of the feature toggles served by an Unleash API,
refreshes it in the background, and answers toggle queries synchronously
against whatever snapshot is installed.

Example:
    async with await Unleash.init(settings, on_update=reload_config) as unleash:
        if unleash.is_enabled("new_checkout"):
            ...
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, Union

import httpx

from unleash_client.backup import ReadBackup, ToggleBackupRepository, WriteBackup
from unleash_client.config import UnleashSettings, get_settings
from unleash_client.errors import DecodeError, TransportError, UnleashError
from unleash_client.features import EvaluationResult, FeatureToggle, ToggleSnapshot
from unleash_client.strategies import StrategyRegistry

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[], Union[None, Awaitable[None]]]


class RefreshState(Enum):
    """Phase of the refresh cycle."""
    IDLE = "idle"
    FETCHING = "fetching"
    APPLIED = "applied"
    FALLING_BACK = "falling_back"


class Unleash:
    """Feature toggle client with background refresh and backup fallback."""

    def __init__(
        self,
        settings: UnleashSettings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        read_backup: Optional[ReadBackup] = None,
        write_backup: Optional[WriteBackup] = None,
        on_update: Optional[UpdateCallback] = None,
    ):
        """Create a client without loading toggles; use ``Unleash.init``.

        Args:
            settings: Endpoint, headers, polling and strategy settings
            http_client: Client used for fetches; created on demand if omitted
            read_backup: Hook returning the stored payload for the settings
            write_backup: Hook storing the payload for the settings
            on_update: Called after new toggles have been published
        """
        self.settings = settings
        self._registry = StrategyRegistry(settings.strategies)
        self._on_update = on_update

        self._backup: Optional[ToggleBackupRepository] = None
        if read_backup is not None and write_backup is not None:
            self._backup = ToggleBackupRepository(read_backup, write_backup)
        elif read_backup is not None or write_backup is not None:
            logger.warning("Toggle backup disabled: both read and write hooks are required")

        self._http_client = http_client
        self._owns_http_client = http_client is None

        self._snapshot: Optional[ToggleSnapshot] = None
        self._state = RefreshState.IDLE
        self._last_refresh: Optional[RefreshState] = None
        self._last_error: Optional[UnleashError] = None

        self._lock: Optional[asyncio.Lock] = None
        self._polling_task: Optional[asyncio.Task] = None
        self._running = False
        self._in_tick = False
        self._closed = False

    @classmethod
    async def init(
        cls,
        settings: Optional[UnleashSettings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        read_backup: Optional[ReadBackup] = None,
        write_backup: Optional[WriteBackup] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> "Unleash":
        """Create a client, load toggles once and start polling.

        Returns only after the first fetch (or fallback) has completed, so
        the client can be queried right away.
        """
        unleash = cls(
            settings or get_settings(),
            http_client=http_client,
            read_backup=read_backup,
            write_backup=write_backup,
            on_update=on_update,
        )
        await unleash.refresh()
        unleash._start_polling()
        return unleash

    # Evaluation

    def is_enabled(self, toggle_name: str, default_value: bool = False) -> bool:
        """Check if a toggle is enabled."""
        return self.evaluate(toggle_name, default_value).enabled

    def evaluate(self, toggle_name: str, default_value: bool = False) -> EvaluationResult:
        """Evaluate a toggle against the current snapshot."""
        snapshot = self._snapshot
        toggle = snapshot.get(toggle_name) if snapshot is not None else None

        if toggle is None:
            return EvaluationResult(
                enabled=default_value,
                toggle_name=toggle_name,
                reason="toggle_not_found",
            )

        enabled = default_value if toggle.enabled is None else toggle.enabled
        if not enabled:
            return EvaluationResult(
                enabled=False,
                toggle_name=toggle_name,
                reason="toggle_disabled",
            )

        if not toggle.strategies:
            return EvaluationResult(
                enabled=True,
                toggle_name=toggle_name,
                reason="no_strategies",
            )

        for binding in toggle.strategies:
            strategy = self._registry.resolve(binding.name)
            try:
                active = strategy.is_enabled(binding.parameters)
            except Exception as e:
                logger.error(
                    f"Strategy '{binding.name}' failed for toggle '{toggle_name}': {e}",
                    extra={"toggle": toggle_name, "strategy": binding.name},
                )
                active = False

            if active:
                return EvaluationResult(
                    enabled=True,
                    toggle_name=toggle_name,
                    reason="strategy_matched",
                    strategy=binding.name,
                )

        return EvaluationResult(
            enabled=False,
            toggle_name=toggle_name,
            reason="no_strategy_matched",
        )

    def get_toggle(self, toggle_name: str) -> Optional[FeatureToggle]:
        """Get a toggle from the current snapshot."""
        snapshot = self._snapshot
        return snapshot.get(toggle_name) if snapshot is not None else None

    def toggle_names(self) -> List[str]:
        """List toggle names of the current snapshot."""
        snapshot = self._snapshot
        return snapshot.names if snapshot is not None else []

    @property
    def snapshot(self) -> Optional[ToggleSnapshot]:
        return self._snapshot

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    @property
    def backup_enabled(self) -> bool:
        return self._backup is not None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def last_refresh(self) -> Optional[RefreshState]:
        """Outcome of the last completed cycle (APPLIED or FALLING_BACK)."""
        return self._last_refresh

    @property
    def last_error(self) -> Optional[UnleashError]:
        """Error of the last cycle, None if it fetched successfully."""
        return self._last_error

    # Refresh

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or (self._owns_http_client and self._http_client.is_closed):
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout),
            )
            self._owns_http_client = True
        return self._http_client

    async def refresh(self) -> Optional[RefreshState]:
        """Run one fetch cycle now.

        Returns:
            APPLIED or FALLING_BACK, or None if a cycle was already running
            (this one is skipped) or if the client is closed.
        """
        if self._closed:
            logger.warning("Toggle client is closed, refresh ignored")
            return None

        lock = self._get_lock()
        if lock.locked():
            logger.debug("Toggle refresh already in progress, skipping")
            return None

        async with lock:
            return await self._load_toggles()

    async def _fetch(self) -> Tuple[str, ToggleSnapshot]:
        """Fetch and decode the feature payload.

        Raises:
            TransportError: On request failure or non-2xx status
            DecodeError: If the body is not a valid toggle payload
        """
        client = await self._get_client()
        try:
            response = await client.get(
                self.settings.feature_url,
                headers=self.settings.to_headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Feature endpoint returned {e.response.status_code}",
                status_code=e.response.status_code,
            )
        except httpx.TimeoutException:
            raise TransportError(f"Request timeout after {self.settings.request_timeout}s")
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}")
        except Exception as e:
            raise TransportError(f"Request failed: {type(e).__name__}: {e}")

        try:
            payload = response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Payload is not valid UTF-8: {e}")

        return payload, ToggleSnapshot.from_json(payload)

    async def _load_toggles(self) -> RefreshState:
        try:
            self._state = RefreshState.FETCHING
            try:
                payload, snapshot = await self._fetch()
            except UnleashError as e:
                self._last_error = e
                logger.warning(
                    f"Failed to fetch toggles: {e.message}",
                    extra={
                        "error_code": e.code.value,
                        "feature_url": self.settings.feature_url,
                        "refresh_state": RefreshState.FALLING_BACK.value,
                    },
                )
                self._state = RefreshState.FALLING_BACK
                await self._fall_back()
                outcome = RefreshState.FALLING_BACK
            else:
                self._last_error = None
                if self._backup is not None:
                    await self._backup.write(self.settings, payload)
                self._publish(snapshot)
                logger.debug(
                    f"Loaded {len(snapshot)} toggles",
                    extra={
                        "feature_url": self.settings.feature_url,
                        "refresh_state": RefreshState.APPLIED.value,
                    },
                )
                await self._notify_update()
                outcome = RefreshState.APPLIED
        finally:
            self._state = RefreshState.IDLE

        self._last_refresh = outcome
        return outcome

    async def _fall_back(self) -> None:
        if self._backup is None:
            logger.info("No toggle backup configured, keeping current toggles")
            return

        snapshot = await self._backup.load(self.settings)
        self._publish(snapshot)
        if snapshot is not None:
            logger.info(
                f"Loaded {len(snapshot)} toggles from backup",
                extra={"refresh_state": RefreshState.FALLING_BACK.value},
            )
            if self.settings.notify_on_fallback:
                await self._notify_update()

    def _publish(self, snapshot: Optional[ToggleSnapshot]) -> None:
        # Single reference swap; readers see the old or the new snapshot
        self._snapshot = snapshot

    async def _notify_update(self) -> None:
        callback = self._on_update
        if callback is None:
            return
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error in toggle update callback: {e}")

    # Polling

    def _start_polling(self) -> None:
        if not self.settings.polling_enabled:
            logger.info("Toggle polling disabled")
            return
        if self._polling_task is not None:
            return

        self._running = True
        self._polling_task = asyncio.create_task(self._polling_loop())
        logger.info(f"Started toggle polling (interval={self.settings.polling_interval}s)")

    async def _polling_loop(self) -> None:
        interval = self.settings.polling_interval
        while self._running:
            try:
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break

            if not self._running:
                break

            self._in_tick = True
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Toggle refresh error: {e}")
            finally:
                self._in_tick = False

    def shutdown(self) -> None:
        """Stop periodic refresh.

        A cycle that is already fetching is allowed to finish.
        """
        self._running = False
        task = self._polling_task
        if task is not None and not task.done() and not self._in_tick:
            task.cancel()
        logger.info("Stopped toggle polling")

    dispose = shutdown

    async def close(self) -> None:
        """Stop polling, wait for the polling task and release the HTTP client.

        A closed client keeps answering toggle queries from its last snapshot
        but never refreshes again.
        """
        self._closed = True
        self.shutdown()
        if self._polling_task is not None:
            try:
                await self._polling_task
            except asyncio.CancelledError:
                pass
            self._polling_task = None

        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "Unleash":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = [
    "RefreshState",
    "UpdateCallback",
    "Unleash",
]
