"""Light platform for Crestron Home dimmers and switches."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_TRANSITION,
    ColorMode,
    LightEntity,
    LightEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .constants import CRESTRON_MAX_LEVEL, DEVICE_TYPE_DIMMER, DOMAIN, AccessoryKind
from .entity_base import CrestronHomeEntity
from .models import LightState, NormalizedDevice, brightness_to_raw, raw_to_brightness

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up Crestron Home lights."""
    coordinator = hass.data[DOMAIN][entry.entry_id]
    coordinator.async_add_platform(AccessoryKind.LIGHT, async_add_entities)


class CrestronHomeLight(CrestronHomeEntity, LightEntity):
    """A Crestron dimmer (brightness) or switch (on/off)."""

    kind = AccessoryKind.LIGHT

    def __init__(self, coordinator, device: NormalizedDevice) -> None:
        self._dimmable = device.sub_type == DEVICE_TYPE_DIMMER
        color_mode = ColorMode.BRIGHTNESS if self._dimmable else ColorMode.ONOFF
        self._attr_color_mode = color_mode
        self._attr_supported_color_modes = {color_mode}
        if self._dimmable:
            self._attr_supported_features = LightEntityFeature.TRANSITION
        super().__init__(coordinator, device)

    def _apply_state(self, device: NormalizedDevice) -> None:
        self._attr_is_on = device.level > 0
        if self._dimmable:
            self._attr_brightness = raw_to_brightness(device.level)

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on, optionally at a brightness."""
        level = CRESTRON_MAX_LEVEL
        if self._dimmable and ATTR_BRIGHTNESS in kwargs:
            level = brightness_to_raw(kwargs[ATTR_BRIGHTNESS])
        await self._async_set_level(level, kwargs.get(ATTR_TRANSITION))

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off."""
        await self._async_set_level(0, kwargs.get(ATTR_TRANSITION))

    async def _async_set_level(self, level: int, transition: float | None) -> None:
        time_ms = int(transition * 1000) if transition else 0
        _LOGGER.debug("Set %s level -> %d (%d ms)", self.name, level, time_ms)
        await self._async_command(
            "set level of",
            self.coordinator.api.async_set_lights_state(
                [LightState(id=self.crestron_id, level=level, time=time_ms)]
            ),
        )
        # Optimistic until the next poll
        self.update_state(self._device.model_copy(update={"level": level}))
        self.async_write_ha_state()

    async def async_update(self) -> None:
        """Read this light directly from the hub."""
        raw = await self._async_command(
            "read", self.coordinator.api.async_get_device(self.crestron_id)
        )
        self.update_state(
            self._device.model_copy(
                update={"level": raw.level or 0, "status": bool(raw.status)}
            )
        )
