"""Client for the Crestron Home REST API.

CrestronHomeAPI exposes the catalog fetch used by the coordinator and the
read / write commands used by the entities. Every request goes through the
SessionManager, so each call independently gets one re-login on 401.
Values are always in native hub units (0-65535); percentage conversion is
left to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection, Iterable
from typing import Any

import aiohttp
from pydantic import ValidationError

from .constants import (
    API_DEFAULTS,
    DEFAULT_NAME_SEPARATOR,
    DEVICE_TYPE_SCENE,
    DEVICE_TYPE_SHADE,
    ENDPOINT_DEVICE,
    ENDPOINT_DEVICES,
    ENDPOINT_RECALL_SCENE,
    ENDPOINT_ROOMS,
    ENDPOINT_SCENE,
    ENDPOINT_SCENES,
    ENDPOINT_SET_LIGHTS,
    ENDPOINT_SET_SHADES,
    ENDPOINT_SHADE,
    ENDPOINT_SHADES,
    MAX_CATALOG_SIZE,
)
from .infrastructure import (
    CrestronHomeCatalogError,
    CrestronHomeError,
    CrestronHomeProtocolError,
    SessionManager,
    api_get,
    api_post,
)
from .models import (
    LightState,
    NormalizedDevice,
    RawDevice,
    Room,
    Scene,
    Shade,
    ShadeState,
)

_LOGGER = logging.getLogger(__name__)


def _parse_list(model, records: list, endpoint: str) -> list:
    try:
        return [model.model_validate(record) for record in records]
    except ValidationError as err:
        raise CrestronHomeProtocolError(f"Unexpected record in {endpoint}: {err}") from err


def _parse_single(model, records: list, endpoint: str, item_id: int):
    if not records:
        raise CrestronHomeProtocolError(f"{endpoint} returned no entry for id {item_id}")
    return _parse_list(model, records[:1], endpoint)[0]


class CrestronHomeAPI:
    """Async client for one Crestron Home hub."""

    def __init__(
        self,
        host: str,
        api_token: str,
        *,
        verify_ssl: bool = API_DEFAULTS.VERIFY_SSL,
        session: aiohttp.ClientSession | None = None,
        request_timeout: int = API_DEFAULTS.REQUEST_TIMEOUT,
        name_separator: str = DEFAULT_NAME_SEPARATOR,
        session_manager: SessionManager | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            host: IP address or hostname of the hub
            api_token: Long-lived API token from the Crestron Home setup app
            verify_ssl: Validate the hub's TLS certificate
            session: Optional aiohttp session to reuse
            request_timeout: Timeout in seconds for every request
            name_separator: Text between room and item name in display names
            session_manager: Pre-built session manager (mostly for tests)
        """
        self.host = host
        self.name_separator = name_separator
        self.session_manager = session_manager or SessionManager(
            host,
            api_token,
            verify_ssl=verify_ssl,
            session=session,
            request_timeout=request_timeout,
        )

    @property
    def server_version(self) -> str | None:
        """Hub software version reported at login."""
        return self.session_manager.server_version

    async def async_login(self) -> str:
        """Make sure a session is established and return its key."""
        return await self.session_manager.async_ensure_session()

    async def async_close(self) -> None:
        """Close the HTTP session."""
        await self.session_manager.async_close()

    # -------------------------------------------------------------------------
    # Catalog reads
    # -------------------------------------------------------------------------

    @api_get(ENDPOINT_ROOMS, response_key="rooms")
    async def async_get_rooms(self, response_data) -> list[Room]:
        return _parse_list(Room, response_data, ENDPOINT_ROOMS)

    @api_get(ENDPOINT_SCENES, response_key="scenes")
    async def async_get_scenes(self, response_data) -> list[Scene]:
        return _parse_list(Scene, response_data, ENDPOINT_SCENES)

    @api_get(ENDPOINT_DEVICES, response_key="devices")
    async def async_get_devices(self, response_data) -> list[RawDevice]:
        return _parse_list(RawDevice, response_data, ENDPOINT_DEVICES)

    @api_get(ENDPOINT_SHADES, response_key="shades")
    async def async_get_shades(self, response_data) -> list[Shade]:
        return _parse_list(Shade, response_data, ENDPOINT_SHADES)

    async def async_fetch_catalog(
        self, enabled_types: Collection[str]
    ) -> list[NormalizedDevice]:
        """Fetch rooms, scenes, devices and shades and join them.

        The four reads run concurrently. If any of them fails the others are
        cancelled and the whole fetch fails; a partial catalog is never
        returned.

        Args:
            enabled_types: Device types (and scene types) to keep. "Scene"
                keeps every scene regardless of its type.

        Returns:
            Normalized devices first, then scenes, each in hub order, capped
            at MAX_CATALOG_SIZE entries.

        Raises:
            CrestronHomeCatalogError: One of the reads failed.
        """
        _LOGGER.debug("Start discovering devices...")
        tasks = [
            asyncio.create_task(self.async_get_rooms()),
            asyncio.create_task(self.async_get_scenes()),
            asyncio.create_task(self.async_get_devices()),
            asyncio.create_task(self.async_get_shades()),
        ]
        try:
            rooms, scenes, devices, shades = await asyncio.gather(*tasks)
        except CrestronHomeError as err:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise CrestronHomeCatalogError(f"Failed to fetch catalog: {err}") from err

        catalog = self._join_catalog(rooms, scenes, devices, shades, set(enabled_types))
        return self._truncate(catalog)

    def _join_catalog(
        self,
        rooms: Iterable[Room],
        scenes: Iterable[Scene],
        devices: Iterable[RawDevice],
        shades: Iterable[Shade],
        enabled_types: set[str],
    ) -> list[NormalizedDevice]:
        room_names = {room.id: room.name for room in rooms}
        shade_positions = {shade.id: shade.position for shade in shades}
        catalog: list[NormalizedDevice] = []

        for device in devices:
            device_type = device.device_type
            if device_type not in enabled_types:
                _LOGGER.info(
                    "Skipping device %s (%s): type %s is not enabled",
                    device.id,
                    device.name,
                    device_type,
                )
                continue
            position = shade_positions.get(device.id) if device_type == DEVICE_TYPE_SHADE else None
            catalog.append(
                NormalizedDevice.from_device(
                    device,
                    room_names.get(device.room_id, ""),
                    position,
                    self.name_separator,
                )
            )

        include_all_scenes = DEVICE_TYPE_SCENE in enabled_types
        for scene in scenes:
            if not include_all_scenes and scene.type not in enabled_types:
                _LOGGER.info(
                    "Skipping scene %s (%s): type %s is not enabled",
                    scene.id,
                    scene.name,
                    scene.type,
                )
                continue
            catalog.append(
                NormalizedDevice.from_scene(
                    scene, room_names.get(scene.room_id, ""), self.name_separator
                )
            )

        return catalog

    @staticmethod
    def _truncate(catalog: list[NormalizedDevice]) -> list[NormalizedDevice]:
        if len(catalog) <= MAX_CATALOG_SIZE:
            return catalog
        dropped = catalog[MAX_CATALOG_SIZE:]
        _LOGGER.warning(
            "Crestron hub returned %d accessories, only the first %d are exposed; dropping %d: %s",
            len(catalog),
            MAX_CATALOG_SIZE,
            len(dropped),
            ", ".join(f"{d.type} {d.id} ({d.name})" for d in dropped),
        )
        return catalog[:MAX_CATALOG_SIZE]

    # -------------------------------------------------------------------------
    # Single-item reads
    # -------------------------------------------------------------------------

    @api_get(ENDPOINT_DEVICE, response_key="devices")
    async def async_get_device(self, response_data, device_id: int) -> RawDevice:
        """Read one device; level is in native units."""
        return _parse_single(RawDevice, response_data, ENDPOINT_DEVICE, device_id)

    @api_get(ENDPOINT_SHADE, response_key="shades")
    async def async_get_shade_state(self, response_data, shade_id: int) -> Shade:
        """Read one shade; position is in native units."""
        return _parse_single(Shade, response_data, ENDPOINT_SHADE, shade_id)

    @api_get(ENDPOINT_SCENE, response_key="scenes")
    async def async_get_scene(self, response_data, scene_id: int) -> Scene:
        """Read one scene; raises CrestronHomeProtocolError if the hub has none."""
        return _parse_single(Scene, response_data, ENDPOINT_SCENE, scene_id)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @api_post(ENDPOINT_SET_LIGHTS, skip_empty=True)
    async def async_set_lights_state(self, lights: Iterable[LightState]) -> dict[str, Any]:
        """Set level (0 = off) and transition time of a batch of lights."""
        payload = {"lights": [light.model_dump() for light in lights]}
        _LOGGER.debug("Setting lights state: %s", payload["lights"])
        return payload

    @api_post(ENDPOINT_SET_SHADES, skip_empty=True)
    async def async_set_shades_state(self, shades: Iterable[ShadeState]) -> dict[str, Any]:
        """Move a batch of shades to native positions."""
        payload = {"shades": [shade.model_dump() for shade in shades]}
        _LOGGER.debug("Setting shades state: %s", payload["shades"])
        return payload

    @api_post(ENDPOINT_RECALL_SCENE)
    async def async_recall_scene(self, scene_id: int) -> None:
        """Trigger a scene. The hub only acknowledges the command."""
        _LOGGER.debug("Recalling scene %s", scene_id)
        return None
