"""Common fixtures for Crestron Home tests."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from custom_components.crestron_home.crestron_api import CrestronHomeAPI
from custom_components.crestron_home.infrastructure import SessionManager
from custom_components.crestron_home.models import NormalizedDevice
from tests.hub_mock import HOST, MockHub, make_response


@pytest.fixture
def mock_hub():
    """Create a mocked hub session."""
    return MockHub()


@pytest.fixture
def session_manager(mock_hub):
    """Create a SessionManager talking to the mocked hub."""
    return SessionManager(HOST, "test-token", session=mock_hub.session)


@pytest.fixture
def api(mock_hub):
    """Create a CrestronHomeAPI talking to the mocked hub."""
    return CrestronHomeAPI(HOST, "test-token", session=mock_hub.session)


@pytest.fixture
def catalog_payloads():
    """Hub answers for a small house."""
    return {
        "/rooms": {"rooms": [{"id": 1, "name": "Living Room"}, {"id": 2, "name": "Kitchen"}]},
        "/devices": {
            "devices": [
                {"id": 201, "name": "Device 1", "type": "Switch", "roomId": 1, "level": 50, "status": True},
                {"id": 202, "name": "Pendant", "type": "Light", "subType": "Dimmer", "roomId": 2, "level": 65535, "status": True},
                {"id": 203, "name": "Blind", "type": "Shade", "roomId": 1},
                {"id": 204, "name": "Thermostat", "type": "Thermostat", "roomId": 1},
            ]
        },
        "/scenes": {
            "scenes": [
                {"id": 101, "name": "Scene 1", "type": "Lighting", "roomId": 1, "status": True},
                {"id": 102, "name": "Movie", "type": "Media", "roomId": 2, "status": False},
            ]
        },
        "/shades": {"shades": [{"id": 203, "name": "Blind", "roomId": 1, "position": 32768}]},
    }


@pytest.fixture
def serve_catalog(mock_hub, catalog_payloads):
    """Route the catalog endpoints of the mocked hub."""

    def _serve(payloads=None):
        for path, payload in (payloads or catalog_payloads).items():
            mock_hub.routes[("GET", path)] = make_response(payload=payload)

    return _serve


@pytest.fixture
def mock_hass():
    """Create a mock Home Assistant instance."""
    hass = MagicMock(spec=HomeAssistant)
    hass.data = {}
    hass.loop = None
    hass.async_create_task = MagicMock()
    hass.add_job = MagicMock()
    hass.config_entries = MagicMock()
    hass.config_entries.async_forward_entry_setups = AsyncMock()
    hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
    hass.config_entries.async_reload = AsyncMock()
    return hass


@pytest.fixture
def mock_config_entry():
    """Create a mock config entry."""
    entry = MagicMock(spec=ConfigEntry)
    entry.entry_id = "test_entry_id"
    entry.data = {
        "host": HOST,
        "api_token": "test-token",
        "verify_ssl": False,
        "enabled_types": ["Dimmer", "Switch", "Shade", "Scene"],
    }
    entry.options = {}
    return entry


@pytest.fixture
def mock_api():
    """Create a mock CrestronHomeAPI instance."""
    api = MagicMock()
    api.server_version = "3.10.1"
    api.async_login = AsyncMock(return_value="key-1")
    api.async_close = AsyncMock()
    api.async_fetch_catalog = AsyncMock(return_value=[])
    api.async_get_device = AsyncMock()
    api.async_get_shade_state = AsyncMock()
    api.async_get_scene = AsyncMock()
    api.async_set_lights_state = AsyncMock()
    api.async_set_shades_state = AsyncMock()
    api.async_recall_scene = AsyncMock()
    return api


@pytest.fixture
def mock_coordinator(mock_api):
    """Create a mock coordinator for entity tests."""
    coordinator = MagicMock()
    coordinator.api = mock_api
    coordinator.data = {}
    coordinator.get_entry = MagicMock(return_value=None)
    coordinator.async_request_refresh = AsyncMock()
    coordinator.async_add_listener = MagicMock(return_value=lambda: None)
    coordinator.last_update_success = True
    return coordinator


@pytest.fixture
def dimmer():
    """Create a normalized dimmer."""
    return NormalizedDevice(
        id=202,
        name="Kitchen Pendant",
        type="Dimmer",
        subType="Dimmer",
        roomId=2,
        roomName="Kitchen",
        level=32768,
        status=True,
    )


@pytest.fixture
def switch_device():
    """Create a normalized on/off light."""
    return NormalizedDevice(
        id=201,
        name="Living Room Device 1",
        type="Switch",
        subType="Switch",
        roomId=1,
        roomName="Living Room",
        level=0,
        status=False,
    )


@pytest.fixture
def shade_device():
    """Create a normalized shade."""
    return NormalizedDevice(
        id=203,
        name="Living Room Blind",
        type="Shade",
        subType="Shade",
        roomId=1,
        roomName="Living Room",
        position=65535,
    )


@pytest.fixture
def scene_device():
    """Create a normalized scene."""
    return NormalizedDevice(
        id=101,
        name="Living Room Scene 1",
        type="Scene",
        subType="Lighting",
        roomId=1,
        roomName="Living Room",
        status=True,
    )

