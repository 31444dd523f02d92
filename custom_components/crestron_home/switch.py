"""Switch platform for Crestron Home scenes."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.switch import SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .constants import (
    DOMAIN,
    SCENE_TYPE_GENERIC_IO,
    SCENE_TYPE_LIGHTING,
    SCENE_TYPE_MEDIA,
    SCENE_TYPE_SHADE,
    AccessoryKind,
)
from .entity_base import CrestronHomeEntity
from .models import NormalizedDevice

_LOGGER = logging.getLogger(__name__)

SCENE_ICONS = {
    SCENE_TYPE_LIGHTING: "mdi:lightbulb-group",
    SCENE_TYPE_SHADE: "mdi:blinds",
    SCENE_TYPE_GENERIC_IO: "mdi:lock",
    SCENE_TYPE_MEDIA: "mdi:television",
}


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up Crestron Home scenes."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    coordinator.async_add_platform(AccessoryKind.SCENE, async_add_entities)


class CrestronHomeScene(CrestronHomeEntity, SwitchEntity):
    """A Crestron scene.

    The switch reports whether the hub considers the scene active. Turning it
    on or off recalls the scene; the hub acknowledges the recall but never
    reports its completion, so the state is read back right afterwards.
    """

    kind = AccessoryKind.SCENE

    def __init__(self, coordinator, device: NormalizedDevice) -> None:
        self._attr_icon = SCENE_ICONS.get(device.sub_type, "mdi:palette")
        super().__init__(coordinator, device)

    def _apply_state(self, device: NormalizedDevice) -> None:
        self._attr_is_on = device.status

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Recall the scene."""
        await self._async_recall()

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Recall the scene; hub scenes have no off command."""
        await self._async_recall()

    async def _async_recall(self) -> None:
        _LOGGER.debug("Recalling scene %s", self.name)
        await self._async_command(
            "recall", self.coordinator.api.async_recall_scene(self.crestron_id)
        )
        await self.async_update()
        self.async_write_ha_state()

    async def async_update(self) -> None:
        """Read this scene's status directly from the hub."""
        scene = await self._async_command(
            "read", self.coordinator.api.async_get_scene(self.crestron_id)
        )
        self.update_state(self._device.model_copy(update={"status": scene.status}))
