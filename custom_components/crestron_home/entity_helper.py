"""Helper module choosing the accessory class for a hub device."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import (
    DEVICE_TYPE_DIMMER,
    DEVICE_TYPE_SCENE,
    DEVICE_TYPE_SHADE,
    DEVICE_TYPE_SWITCH,
    AccessoryKind,
)
from .cover import CrestronHomeShade
from .entity_base import CrestronHomeEntity
from .light import CrestronHomeLight
from .models import NormalizedDevice
from .switch import CrestronHomeScene

if TYPE_CHECKING:
    from .coordinator import CrestronHomeCoordinator

_LOGGER = logging.getLogger(__name__)

# Normalized device type -> accessory class; a Dimmer gets brightness, a Switch on/off
ACCESSORY_CLASSES: dict[str, type[CrestronHomeEntity]] = {
    DEVICE_TYPE_DIMMER: CrestronHomeLight,
    DEVICE_TYPE_SWITCH: CrestronHomeLight,
    DEVICE_TYPE_SHADE: CrestronHomeShade,
    DEVICE_TYPE_SCENE: CrestronHomeScene,
}


def accessory_kind_for(device: NormalizedDevice) -> AccessoryKind | None:
    """Return the accessory kind for a device, or None if unsupported.

    Args:
        device: Normalized device snapshot

    Returns:
        AccessoryKind or None
    """
    accessory_class = ACCESSORY_CLASSES.get(device.type)
    return accessory_class.kind if accessory_class else None


def create_accessory(
    coordinator: CrestronHomeCoordinator, device: NormalizedDevice
) -> CrestronHomeEntity | None:
    """Build the entity for a device.

    Args:
        coordinator: Coordinator that will push state into the entity
        device: Normalized device snapshot

    Returns:
        The entity, or None when the device type has no accessory.
    """
    accessory_class = ACCESSORY_CLASSES.get(device.type)
    if accessory_class is None:
        _LOGGER.debug("No accessory class for device type %s", device.type)
        return None
    return accessory_class(coordinator, device)
