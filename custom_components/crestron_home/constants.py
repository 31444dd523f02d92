"""Constants and Enums for Crestron Home integration."""

from __future__ import annotations

from enum import StrEnum

from homeassistant.const import Platform
from pydantic import BaseModel, Field

# Integration Domain
DOMAIN = "crestron_home"
MANUFACTURER = "Crestron Electronics"

# Configuration keys
CONF_API_TOKEN = "api_token"
CONF_ENABLED_TYPES = "enabled_types"
CONF_POLL_INTERVAL = "poll_interval"
CONF_VERIFY_SSL = "verify_ssl"

# REST API
API_PATH = "/cws/api"
HEADER_AUTH_TOKEN = "Crestron-RestAPI-AuthToken"
HEADER_AUTH_KEY = "Crestron-RestAPI-AuthKey"

ENDPOINT_LOGIN = "/login"
ENDPOINT_ROOMS = "/rooms"
ENDPOINT_SCENES = "/scenes"
ENDPOINT_DEVICES = "/devices"
ENDPOINT_SHADES = "/shades"
ENDPOINT_DEVICE = "/devices/{device_id}"
ENDPOINT_SHADE = "/Shades/{shade_id}"
ENDPOINT_SCENE = "/scenes/{scene_id}"
ENDPOINT_SET_LIGHTS = "/Lights/SetState"
ENDPOINT_SET_SHADES = "/Shades/SetState"
ENDPOINT_RECALL_SCENE = "/SCENES/RECALL/{scene_id}"

# Native hub range for light levels and shade positions
CRESTRON_MAX_LEVEL = 65535

# More than 149 accessories has been seen to destabilise the host framework
MAX_CATALOG_SIZE = 149

# Hub device types (subType wins over type when present)
DEVICE_TYPE_DIMMER = "Dimmer"
DEVICE_TYPE_SWITCH = "Switch"
DEVICE_TYPE_SHADE = "Shade"
DEVICE_TYPE_SCENE = "Scene"

# Scene types reported by the hub
SCENE_TYPE_LIGHTING = "Lighting"
SCENE_TYPE_SHADE = "Shade"
SCENE_TYPE_GENERIC_IO = "genericIO"
SCENE_TYPE_MEDIA = "Media"

SUPPORTED_TYPES = [
    DEVICE_TYPE_DIMMER,
    DEVICE_TYPE_SWITCH,
    DEVICE_TYPE_SHADE,
    DEVICE_TYPE_SCENE,
    SCENE_TYPE_LIGHTING,
    SCENE_TYPE_GENERIC_IO,
    SCENE_TYPE_MEDIA,
]
DEFAULT_ENABLED_TYPES = [
    DEVICE_TYPE_DIMMER,
    DEVICE_TYPE_SWITCH,
    DEVICE_TYPE_SHADE,
    DEVICE_TYPE_SCENE,
]

DEFAULT_NAME_SEPARATOR = " "


class AccessoryKind(StrEnum):
    """Accessory variants, valued by the Home Assistant platform they live on."""

    LIGHT = "light"
    SHADE = "cover"
    SCENE = "switch"

    @property
    def platform(self) -> Platform:
        """Return the Home Assistant platform for this kind."""
        return Platform(self.value)


class AccessoryState(StrEnum):
    """Lifecycle of a registry entry.

    An accessory that is not in the registry is unknown. Once created or
    restored it is registered; afterwards every poll cycle moves it to synced
    (fresh state pushed) or stale (hub unreachable or accessory missing).
    """

    REGISTERED = "registered"
    SYNCED = "synced"
    STALE = "stale"


PLATFORMS = [kind.platform for kind in AccessoryKind]


class APIDefaults(BaseModel):
    """Default values for API configuration.

    Immutable configuration values for session lifetime, timeouts and polling.
    These values can be overridden when instantiating CrestronHomeAPI.
    """

    model_config = {"frozen": True}

    SESSION_TTL: float = Field(
        default=9 * 60,
        description="Seconds a session key is trusted; the hub expires it after 10 minutes idle",
    )
    REQUEST_TIMEOUT: int = Field(default=10, description="Timeout for every hub request in seconds")
    AUTH_RETRIES: int = Field(default=1, description="Re-login attempts after a 401 response")
    POLLING_INTERVAL: int = Field(default=30, description="Default polling interval in seconds")
    MIN_POLLING_INTERVAL: int = Field(default=10, description="Smallest polling interval accepted by the options flow")
    VERIFY_SSL: bool = Field(default=False, description="The hub ships a self-signed certificate")


# Create a default instance for easy access
API_DEFAULTS = APIDefaults()
