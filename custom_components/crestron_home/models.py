"""Data models for Crestron Home integration.

This module provides Pydantic models for the records exchanged with the
Crestron Home REST API and for the normalized device snapshot consumed by
the entities. Also includes utility functions for converting between the
hub's native 16-bit range and percentages.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from .constants import (
    CRESTRON_MAX_LEVEL,
    DEFAULT_NAME_SEPARATOR,
    DEVICE_TYPE_SCENE,
    DEVICE_TYPE_SHADE,
    AccessoryKind,
    AccessoryState,
)

if TYPE_CHECKING:
    from .entity_base import CrestronHomeEntity

# Namespace for deterministic accessory identifiers
ACCESSORY_NAMESPACE = uuid.UUID("4f6c1e2a-7d1b-5c8e-9a43-2b7f0d6e8c15")


# Base model for all Crestron Home data models
class CrestronHomeModel(BaseModel):
    """Base model for all Crestron Home data structures.

    Hub payloads use camelCase keys; models use snake_case attributes and
    accept either spelling on input.
    """

    model_config = {"validate_assignment": True, "populate_by_name": True}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_percentage(raw: int) -> int:
    """Convert a native hub value (0-65535) to a percentage (0-100).

    Example:
        >>> to_percentage(65535)
        100
        >>> to_percentage(32768)
        50
    """
    if raw > 0:
        return _round_half_up(raw / CRESTRON_MAX_LEVEL * 100)
    return 0


def to_raw(percentage: int) -> int:
    """Convert a percentage (0-100) to a native hub value (0-65535).

    Example:
        >>> to_raw(100)
        65535
        >>> to_raw(10)
        6554
    """
    if percentage > 0:
        return _round_half_up(CRESTRON_MAX_LEVEL * percentage / 100)
    return 0


def brightness_to_raw(brightness: int) -> int:
    """Convert a Home Assistant brightness (0-255) to a native hub value.

    Any non-zero brightness maps to a non-zero level, so it never reads as off.

    Example:
        >>> brightness_to_raw(255)
        65535
        >>> brightness_to_raw(1)
        257
    """
    if brightness > 0:
        return max(1, _round_half_up(brightness * CRESTRON_MAX_LEVEL / 255))
    return 0


def raw_to_brightness(raw: int) -> int:
    """Convert a native hub value to a Home Assistant brightness (0-255)."""
    if raw > 0:
        return max(1, _round_half_up(raw * 255 / CRESTRON_MAX_LEVEL))
    return 0


class Room(CrestronHomeModel):
    """A room as listed by /rooms."""

    model_config = {"frozen": True}

    id: int
    name: str = ""


class Scene(CrestronHomeModel):
    """A scene as listed by /scenes or returned by /scenes/{id}.

    ``type`` doubles as the scene's subtype (Lighting, Shade, genericIO...).
    """

    model_config = {"frozen": True}

    id: int
    name: str = ""
    type: str = ""
    room_id: int | None = Field(default=None, alias="roomId")
    status: bool = False


class RawDevice(CrestronHomeModel):
    """A device record as the hub returns it.

    ``level`` and ``status`` are only reported for applicable device classes
    and stay ``None`` when absent.
    """

    model_config = {"frozen": True}

    id: int
    name: str = ""
    type: str = ""
    sub_type: str | None = Field(default=None, alias="subType")
    room_id: int | None = Field(default=None, alias="roomId")
    level: int | None = None
    status: bool | None = None

    @property
    def device_type(self) -> str:
        """Return the effective device type (subType wins over type)."""
        return self.sub_type or self.type


class Shade(CrestronHomeModel):
    """A shade record; position is in native 0-65535 units."""

    model_config = {"frozen": True}

    id: int
    name: str = ""
    room_id: int | None = Field(default=None, alias="roomId")
    position: int | None = None


def compose_name(room_name: str, name: str, separator: str = DEFAULT_NAME_SEPARATOR) -> str:
    """Combine room and item name into the display name.

    The room prefix is skipped when the room is unknown or the item name
    already starts with the room name as a whole word.

    Example:
        >>> compose_name("Living Room", "Device 1")
        'Living Room Device 1'
        >>> compose_name("Kitchen", "Kitchen Pendant")
        'Kitchen Pendant'
        >>> compose_name("Kitchen", "Kitchenette Light")
        'Kitchen Kitchenette Light'
    """
    name = name.strip()
    if not room_name:
        return name
    lowered, room = name.lower(), room_name.lower()
    if lowered == room or lowered.startswith(room + " "):
        return name
    return f"{room_name}{separator}{name}"


class NormalizedDevice(CrestronHomeModel):
    """Fully populated snapshot of one device or scene.

    This is the only shape entities ever see. Absent hub fields are resolved
    to their defaults here and nowhere else.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: int
    name: str
    type: str
    sub_type: str = Field(alias="subType")
    room_id: int | None = Field(default=None, alias="roomId")
    room_name: str = Field(default="", alias="roomName")
    level: int = 0
    status: bool = False
    position: int = 0

    @property
    def is_scene(self) -> bool:
        """Return True if this snapshot was built from a scene."""
        return self.type == DEVICE_TYPE_SCENE

    @classmethod
    def from_device(
        cls,
        device: RawDevice,
        room_name: str,
        position: int | None = None,
        separator: str = DEFAULT_NAME_SEPARATOR,
    ) -> NormalizedDevice:
        """Build a snapshot from a raw device record."""
        device_type = device.device_type
        return cls(
            id=device.id,
            name=compose_name(room_name, device.name, separator),
            type=device_type,
            sub_type=device_type,
            room_id=device.room_id,
            room_name=room_name,
            level=device.level or 0,
            status=bool(device.status),
            position=(position or 0) if device_type == DEVICE_TYPE_SHADE else 0,
        )

    @classmethod
    def from_scene(
        cls,
        scene: Scene,
        room_name: str,
        separator: str = DEFAULT_NAME_SEPARATOR,
    ) -> NormalizedDevice:
        """Build a snapshot from a scene record."""
        return cls(
            id=scene.id,
            name=compose_name(room_name, scene.name, separator),
            type=DEVICE_TYPE_SCENE,
            sub_type=scene.type,
            room_id=scene.room_id,
            room_name=room_name,
            level=0,
            status=scene.status,
            position=0,
        )


def stable_accessory_id(device: NormalizedDevice) -> str:
    """Derive the deterministic registry key for a device or scene.

    Hub ids are only unique per domain, so the domain is part of the key.

    Example:
        >>> a = NormalizedDevice(id=7, name="A", type="Dimmer", subType="Dimmer")
        >>> b = NormalizedDevice(id=7, name="B", type="Scene", subType="Lighting")
        >>> stable_accessory_id(a) == stable_accessory_id(b)
        False
    """
    domain = "scene" if device.is_scene else "device"
    return str(uuid.uuid5(ACCESSORY_NAMESPACE, f"{domain}:{device.id}"))


class LightState(CrestronHomeModel):
    """One item of a /Lights/SetState batch."""

    model_config = {"frozen": True}

    id: int
    level: int = Field(..., ge=0, le=CRESTRON_MAX_LEVEL, description="0 is off, anything else on at that level")
    time: int = Field(default=0, ge=0, description="Transition time in milliseconds")


class ShadeState(CrestronHomeModel):
    """One item of a /Shades/SetState batch."""

    model_config = {"frozen": True}

    id: int
    position: int = Field(..., ge=0, le=CRESTRON_MAX_LEVEL)


class LoginResponse(CrestronHomeModel):
    """Response model for /login."""

    model_config = {"frozen": True, "extra": "allow"}

    authkey: str = Field(..., min_length=1)
    version: Any = None

    @classmethod
    def from_api(cls, response_data: Any) -> LoginResponse | None:
        """Parse a login payload, returning None when no key was issued."""
        if not isinstance(response_data, dict):
            return None
        try:
            return cls.model_validate(response_data)
        except ValueError:
            return None


@dataclass
class AccessoryRegistryEntry:
    """One accessory managed by the coordinator."""

    accessory_id: str
    crestron_id: int
    kind: AccessoryKind
    accessory: CrestronHomeEntity
    last_known_state: NormalizedDevice
    state: AccessoryState = AccessoryState.REGISTERED
