"""Coordinator keeping Home Assistant entities in sync with the Crestron hub.

The hub has no push channel, so every state change is discovered by
polling the full catalog. The coordinator owns the accessory registry:
the first refresh discovers accessories (restored ones keep their entity
registry entry), later refreshes push fresh state into known accessories
and register newly appeared ones.

Accessories that disappear from the hub are marked stale and become
unavailable; they are never removed automatically.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .constants import API_DEFAULTS, AccessoryKind, AccessoryState
from .infrastructure import CrestronHomeError
from .models import AccessoryRegistryEntry, NormalizedDevice, stable_accessory_id

if TYPE_CHECKING:
    from .crestron_api import CrestronHomeAPI
    from .entity_base import CrestronHomeEntity

_LOGGER = logging.getLogger(__name__)

AccessoryFactory = Callable[["CrestronHomeCoordinator", NormalizedDevice], "CrestronHomeEntity | None"]


class CrestronHomeCoordinator(DataUpdateCoordinator[dict[str, NormalizedDevice]]):
    """Polls the hub catalog and reconciles it with the accessory registry."""

    def __init__(
        self,
        hass: HomeAssistant,
        api: CrestronHomeAPI,
        *,
        enabled_types: Iterable[str],
        accessory_factory: AccessoryFactory,
        restored_ids: Iterable[str] = (),
        config_entry: ConfigEntry | None = None,
        update_interval: int = API_DEFAULTS.POLLING_INTERVAL,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance
            api: Client for the hub
            enabled_types: Device and scene types to expose
            accessory_factory: Builds the entity for a device, or returns
                None for unsupported types
            restored_ids: Accessory ids already known to the entity registry
            config_entry: Config entry owning this coordinator
            update_interval: Seconds between polls
        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name="Crestron Home",
            update_interval=timedelta(seconds=update_interval),
        )
        self.api = api
        self.enabled_types = set(enabled_types)
        self._accessory_factory = accessory_factory
        self._restored_ids = set(restored_ids)

        self._registry: dict[str, AccessoryRegistryEntry] = {}
        self._unsupported: set[str] = set()
        self._platform_adders: dict[AccessoryKind, AddEntitiesCallback] = {}
        self._pending: dict[AccessoryKind, list[CrestronHomeEntity]] = defaultdict(list)

        # Held for a whole poll cycle; a cycle that finds it held is skipped
        self._poll_lock = asyncio.Lock()
        self._discovered = False

    # ------------------------------------------------------------------
    # Registry access
    # ------------------------------------------------------------------

    @property
    def registry(self) -> MappingProxyType[str, AccessoryRegistryEntry]:
        """Read-only view of the accessory registry."""
        return MappingProxyType(self._registry)

    def get_entry(self, accessory_id: str) -> AccessoryRegistryEntry | None:
        """Return the registry entry for an accessory id."""
        return self._registry.get(accessory_id)

    # ------------------------------------------------------------------
    # Platform registration
    # ------------------------------------------------------------------

    def async_add_platform(self, kind: AccessoryKind, add_entities: AddEntitiesCallback) -> None:
        """Attach a platform's entity adder and flush accessories waiting for it."""
        self._platform_adders[kind] = add_entities
        if pending := self._pending.pop(kind, []):
            _LOGGER.debug("Adding %d queued %s accessories", len(pending), kind.value)
            add_entities(pending)

    def _register(self, entry: AccessoryRegistryEntry) -> None:
        add_entities = self._platform_adders.get(entry.kind)
        if add_entities is None:
            self._pending[entry.kind].append(entry.accessory)
            return
        add_entities([entry.accessory])

    def _add_accessory(self, device: NormalizedDevice, accessory_id: str) -> AccessoryRegistryEntry | None:
        accessory = self._accessory_factory(self, device)
        if accessory is None:
            if accessory_id not in self._unsupported:
                self._unsupported.add(accessory_id)
                _LOGGER.info("Unsupported accessory type %s for %s", device.type, device.name)
            return None

        if accessory_id in self._restored_ids:
            _LOGGER.info("Restoring existing accessory from cache: %s", device.name)
        else:
            _LOGGER.info("Adding new accessory: %s", device.name)

        entry = AccessoryRegistryEntry(
            accessory_id=accessory_id,
            crestron_id=device.id,
            kind=accessory.kind,
            accessory=accessory,
            last_known_state=device,
        )
        self._registry[accessory_id] = entry
        self._register(entry)
        return entry

    # ------------------------------------------------------------------
    # Discovery and polling
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> dict[str, NormalizedDevice]:
        if not self._discovered:
            return await self.async_discover_devices()
        return await self.async_update_devices()

    async def _async_fetch(self) -> list[NormalizedDevice]:
        try:
            return await self.api.async_fetch_catalog(self.enabled_types)
        except CrestronHomeError as err:
            for entry in self._registry.values():
                entry.state = AccessoryState.STALE
            _LOGGER.error(
                "Fetching the Crestron catalog failed, %d accessories keep their last known state: %s",
                len(self._registry),
                err,
            )
            raise UpdateFailed(f"Error fetching Crestron Home catalog: {err}") from err

    async def async_discover_devices(self) -> dict[str, NormalizedDevice]:
        """Fetch the catalog once and build the registry.

        Accessories already present in the entity registry are restored,
        everything else is created and handed to its platform.
        """
        async with self._poll_lock:
            devices = await self._async_fetch()
            snapshot: dict[str, NormalizedDevice] = {}
            for device in devices:
                accessory_id = stable_accessory_id(device)
                snapshot[accessory_id] = device
                if accessory_id in self._registry:
                    continue
                self._add_accessory(device, accessory_id)
            self._discovered = True
            _LOGGER.debug("Discovery finished with %d accessories", len(self._registry))
            return snapshot

    async def async_update_devices(self) -> dict[str, NormalizedDevice]:
        """Fetch the catalog and push fresh state into every accessory.

        If a previous cycle is still running this one is skipped and the
        last snapshot is returned.
        """
        if self._poll_lock.locked():
            _LOGGER.debug("Previous Crestron poll still in progress, skipping this cycle")
            return self.data or {}

        async with self._poll_lock:
            devices = await self._async_fetch()
            snapshot: dict[str, NormalizedDevice] = {}
            for device in devices:
                accessory_id = stable_accessory_id(device)
                snapshot[accessory_id] = device
                entry = self._registry.get(accessory_id)
                if entry is None:
                    self._add_accessory(device, accessory_id)
                    continue
                self._push_state(entry, device)

            self._mark_missing_stale(snapshot)
            return snapshot

    def _push_state(self, entry: AccessoryRegistryEntry, device: NormalizedDevice) -> None:
        try:
            entry.accessory.update_state(device)
        except Exception:
            _LOGGER.exception("Updating accessory %s failed, skipping it this cycle", device.name)
            entry.state = AccessoryState.STALE
            return
        entry.last_known_state = device
        entry.state = AccessoryState.SYNCED

    def _mark_missing_stale(self, snapshot: dict[str, NormalizedDevice]) -> None:
        for accessory_id, entry in self._registry.items():
            if accessory_id in snapshot or entry.state is AccessoryState.STALE:
                continue
            entry.state = AccessoryState.STALE
            _LOGGER.warning(
                "Accessory %s is no longer reported by the hub, keeping its last known state",
                entry.last_known_state.name,
            )
