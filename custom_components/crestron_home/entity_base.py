"""Base entity for all Crestron Home accessories.

Every accessory is built from a NormalizedDevice and receives fresh
snapshots from the coordinator through ``update_state``. Subclasses only
translate a snapshot into their platform's attributes and turn user
commands into hub writes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, ClassVar

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .constants import DOMAIN, MANUFACTURER, AccessoryKind, AccessoryState
from .infrastructure import CrestronHomeError
from .models import NormalizedDevice, stable_accessory_id

if TYPE_CHECKING:
    from .coordinator import CrestronHomeCoordinator

_LOGGER = logging.getLogger(__name__)


class CrestronHomeEntity(CoordinatorEntity["CrestronHomeCoordinator"]):
    """Common behavior of lights, shades and scenes."""

    kind: ClassVar[AccessoryKind]

    def __init__(self, coordinator: CrestronHomeCoordinator, device: NormalizedDevice) -> None:
        super().__init__(coordinator)
        self._device = device
        self.crestron_id = device.id
        self.accessory_id = stable_accessory_id(device)

        self._attr_unique_id = self.accessory_id
        self._attr_name = device.name
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, self.accessory_id)},
            name=device.name,
            manufacturer=MANUFACTURER,
            model=device.sub_type or device.type,
            suggested_area=device.room_name or None,
            sw_version=coordinator.api.server_version,
        )
        self._apply_state(device)

    @property
    def device(self) -> NormalizedDevice:
        """Last snapshot pushed into this accessory."""
        return self._device

    @property
    def available(self) -> bool:  # type: ignore[override]
        """Unavailable while the hub is unreachable or no longer lists this accessory."""
        if not super().available:
            return False
        entry = self.coordinator.get_entry(self.accessory_id)
        return entry is None or entry.state is not AccessoryState.STALE

    def update_state(self, device: NormalizedDevice) -> None:
        """Take a fresh snapshot from the coordinator.

        The coordinator writes the Home Assistant state once the whole poll
        cycle is done.
        """
        self._device = device
        self._apply_state(device)

    def _apply_state(self, device: NormalizedDevice) -> None:
        raise NotImplementedError

    async def _async_command(self, action: str, command: Awaitable[Any]) -> Any:
        """Await a hub call, turning integration errors into HomeAssistantError."""
        try:
            return await command
        except CrestronHomeError as err:
            _LOGGER.error("Failed to %s %s: %s", action, self.name, err)
            raise HomeAssistantError(f"Failed to {action} {self.name}: {err}") from err
