"""Cover platform for Crestron Home shades."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.cover import (
    ATTR_POSITION,
    CoverDeviceClass,
    CoverEntity,
    CoverEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .constants import DOMAIN, AccessoryKind
from .entity_base import CrestronHomeEntity
from .models import NormalizedDevice, ShadeState, to_percentage, to_raw

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up Crestron Home shades."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    coordinator.async_add_platform(AccessoryKind.SHADE, async_add_entities)


class CrestronHomeShade(CrestronHomeEntity, CoverEntity):
    """A Crestron shade; 0 % is closed and 100 % fully open."""

    kind = AccessoryKind.SHADE

    _attr_device_class = CoverDeviceClass.SHADE
    _attr_supported_features = (
        CoverEntityFeature.OPEN
        | CoverEntityFeature.CLOSE
        | CoverEntityFeature.SET_POSITION
    )

    def _apply_state(self, device: NormalizedDevice) -> None:
        position = to_percentage(device.position)
        self._attr_current_cover_position = position
        self._attr_is_closed = position == 0

    async def async_open_cover(self, **kwargs: Any) -> None:
        """Open the shade."""
        await self._async_set_position(100)

    async def async_close_cover(self, **kwargs: Any) -> None:
        """Close the shade."""
        await self._async_set_position(0)

    async def async_set_cover_position(self, **kwargs: Any) -> None:
        """Move the shade to a specific position."""
        await self._async_set_position(kwargs[ATTR_POSITION])

    async def _async_set_position(self, percentage: int) -> None:
        position = to_raw(percentage)
        _LOGGER.debug("Set %s position -> %d%% (%d)", self.name, percentage, position)
        await self._async_command(
            "move",
            self.coordinator.api.async_set_shades_state(
                [ShadeState(id=self.crestron_id, position=position)]
            ),
        )
        # Optimistic until the next poll
        self.update_state(self._device.model_copy(update={"position": position}))
        self.async_write_ha_state()

    async def async_update(self) -> None:
        """Read this shade directly from the hub."""
        shade = await self._async_command(
            "read", self.coordinator.api.async_get_shade_state(self.crestron_id)
        )
        self.update_state(self._device.model_copy(update={"position": shade.position or 0}))
