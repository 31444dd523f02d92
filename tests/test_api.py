"""Tests for the Crestron Home API client."""

import asyncio
import logging

import pytest

from custom_components.crestron_home.crestron_api import CrestronHomeAPI
from custom_components.crestron_home.infrastructure import (
    CrestronHomeAPIError,
    CrestronHomeAuthError,
    CrestronHomeCatalogError,
    CrestronHomeProtocolError,
    CrestronHomeTimeoutError,
)
from custom_components.crestron_home.models import LightState, ShadeState
from tests.hub_mock import HOST, make_response

DEFAULT_TYPES = ["Dimmer", "Switch", "Shade", "Scene"]


class TestCrestronHomeAPI:
    """Test CrestronHomeAPI basics."""

    def test_api_initialization(self, api):
        assert api.host == HOST
        assert api.session_manager.base_url == f"https://{HOST}/cws/api"
        assert api.server_version is None

    @pytest.mark.asyncio
    async def test_async_login(self, api, mock_hub):
        assert await api.async_login() == "key-1"
        assert api.server_version == "3.10.1"


class TestFetchCatalog:
    """Test catalog retrieval and normalization."""

    @pytest.mark.asyncio
    async def test_minimal_example_yields_two_entries(self, api, serve_catalog):
        serve_catalog(
            {
                "/rooms": {"rooms": [{"id": 1, "name": "Living Room"}]},
                "/devices": {
                    "devices": [
                        {"id": 201, "name": "Device 1", "type": "Switch", "roomId": 1, "level": 50, "status": True}
                    ]
                },
                "/scenes": {
                    "scenes": [{"id": 101, "name": "Scene 1", "type": "SceneType", "roomId": 1, "status": True}]
                },
                "/shades": {"shades": []},
            }
        )

        catalog = await api.async_fetch_catalog({"Switch", "SceneType"})

        assert len(catalog) == 2
        device, scene = catalog
        assert device.name == "Living Room Device 1"
        assert device.level == 50
        assert device.position == 0
        assert scene.name == "Living Room Scene 1"
        assert scene.type == "Scene"
        assert scene.sub_type == "SceneType"
        assert scene.level == 0
        assert scene.position == 0

    @pytest.mark.asyncio
    async def test_reads_all_four_endpoints(self, api, serve_catalog, mock_hub):
        serve_catalog()

        await api.async_fetch_catalog(DEFAULT_TYPES)

        assert sorted(mock_hub.paths("GET")) == ["/devices", "/rooms", "/scenes", "/shades"]

    @pytest.mark.asyncio
    async def test_join_and_filter(self, api, serve_catalog):
        serve_catalog()

        catalog = await api.async_fetch_catalog(DEFAULT_TYPES)

        assert [(d.type, d.id) for d in catalog] == [
            ("Switch", 201),
            ("Dimmer", 202),
            ("Shade", 203),
            ("Scene", 101),
            ("Scene", 102),
        ]
        by_id = {(d.type, d.id): d for d in catalog}
        assert by_id[("Dimmer", 202)].name == "Kitchen Pendant"
        assert by_id[("Dimmer", 202)].room_name == "Kitchen"
        assert by_id[("Shade", 203)].position == 32768
        assert by_id[("Scene", 102)].sub_type == "Media"

    @pytest.mark.asyncio
    async def test_scene_types_filter_individually(self, api, serve_catalog, caplog):
        serve_catalog()

        with caplog.at_level(logging.INFO):
            catalog = await api.async_fetch_catalog(["Dimmer", "Lighting"])

        assert [(d.type, d.id) for d in catalog] == [("Dimmer", 202), ("Scene", 101)]
        assert "Skipping scene 102" in caplog.text
        assert "Skipping device 204" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_room_uses_raw_name(self, api, serve_catalog, catalog_payloads):
        catalog_payloads["/rooms"] = {"rooms": []}
        serve_catalog(catalog_payloads)

        catalog = await api.async_fetch_catalog(["Switch"])

        assert catalog[0].name == "Device 1"
        assert catalog[0].room_name == ""

    @pytest.mark.asyncio
    async def test_name_separator(self, mock_hub, serve_catalog):
        api = CrestronHomeAPI(HOST, "test-token", session=mock_hub.session, name_separator=" - ")
        serve_catalog()

        catalog = await api.async_fetch_catalog(["Switch"])

        assert catalog[0].name == "Living Room - Device 1"

    @pytest.mark.asyncio
    async def test_truncates_to_149_devices_first(self, api, serve_catalog, caplog):
        serve_catalog(
            {
                "/rooms": {"rooms": []},
                "/devices": {
                    "devices": [{"id": i, "name": f"Light {i}", "type": "Switch"} for i in range(120)]
                },
                "/scenes": {
                    "scenes": [{"id": i, "name": f"Scene {i}", "type": "Lighting"} for i in range(80)]
                },
                "/shades": {"shades": []},
            }
        )

        catalog = await api.async_fetch_catalog(["Switch", "Scene"])

        assert len(catalog) == 149
        assert [d.id for d in catalog[:120]] == list(range(120))
        assert all(not d.is_scene for d in catalog[:120])
        assert [d.id for d in catalog[120:]] == list(range(29))
        assert all(d.is_scene for d in catalog[120:])
        assert "dropping 51" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_read_fails_whole_catalog(self, api, serve_catalog, mock_hub):
        serve_catalog()
        mock_hub.routes[("GET", "/shades")] = make_response(500)

        with pytest.raises(CrestronHomeCatalogError) as exc_info:
            await api.async_fetch_catalog(DEFAULT_TYPES)

        assert isinstance(exc_info.value.__cause__, CrestronHomeAPIError)

    @pytest.mark.asyncio
    async def test_malformed_record(self, api, serve_catalog, catalog_payloads):
        catalog_payloads["/rooms"] = {"rooms": [{"name": "No id"}]}
        serve_catalog(catalog_payloads)

        with pytest.raises(CrestronHomeCatalogError) as exc_info:
            await api.async_fetch_catalog(DEFAULT_TYPES)

        assert isinstance(exc_info.value.__cause__, CrestronHomeProtocolError)


class TestReads:
    """Test single-item reads."""

    @pytest.mark.asyncio
    async def test_get_device(self, api, mock_hub):
        mock_hub.routes[("GET", "/devices/202")] = make_response(
            payload={"devices": [{"id": 202, "name": "Pendant", "type": "Dimmer", "level": 1000, "status": True}]}
        )

        device = await api.async_get_device(202)

        assert device.id == 202
        assert device.level == 1000

    @pytest.mark.asyncio
    async def test_get_shade_state(self, api, mock_hub):
        mock_hub.routes[("GET", "/Shades/203")] = make_response(
            payload={"shades": [{"id": 203, "position": 40000}]}
        )

        shade = await api.async_get_shade_state(203)

        assert shade.position == 40000

    @pytest.mark.asyncio
    async def test_get_scene(self, api, mock_hub):
        mock_hub.routes[("GET", "/scenes/101")] = make_response(
            payload={"scenes": [{"id": 101, "name": "Scene 1", "type": "Lighting", "status": True}]}
        )

        scene = await api.async_get_scene(101)

        assert scene.status is True

    @pytest.mark.asyncio
    async def test_empty_result_is_protocol_error(self, api, mock_hub):
        mock_hub.routes[("GET", "/scenes/999")] = make_response(payload={"scenes": []})

        with pytest.raises(CrestronHomeProtocolError):
            await api.async_get_scene(999)

    @pytest.mark.asyncio
    async def test_invalid_json(self, api, mock_hub):
        mock_hub.routes[("GET", "/devices/202")] = make_response(text="<html>oops</html>")

        with pytest.raises(CrestronHomeProtocolError):
            await api.async_get_device(202)

    @pytest.mark.asyncio
    async def test_retry_after_401(self, api, mock_hub):
        mock_hub.routes[("GET", "/devices/202")] = [
            make_response(401),
            make_response(payload={"devices": [{"id": 202, "name": "Pendant", "type": "Dimmer", "level": 5}]}),
        ]

        device = await api.async_get_device(202)

        assert device.level == 5
        assert mock_hub.login_count == 2
        assert [headers["Crestron-RestAPI-AuthKey"] for _, _, _, headers in mock_hub.requests] == ["key-1", "key-2"]

    @pytest.mark.asyncio
    async def test_two_401s(self, api, mock_hub):
        mock_hub.routes[("GET", "/devices/202")] = [make_response(401), make_response(401)]

        with pytest.raises(CrestronHomeAuthError):
            await api.async_get_device(202)

        assert mock_hub.login_count == 2

    @pytest.mark.asyncio
    async def test_http_error(self, api, mock_hub):
        mock_hub.routes[("GET", "/devices/202")] = make_response(500)

        with pytest.raises(CrestronHomeAPIError):
            await api.async_get_device(202)

    @pytest.mark.asyncio
    async def test_timeout(self, api, mock_hub):
        mock_hub.session.request.side_effect = asyncio.TimeoutError()

        with pytest.raises(CrestronHomeTimeoutError):
            await api.async_get_device(202)


class TestWrites:
    """Test write commands."""

    @pytest.mark.asyncio
    async def test_set_lights_state(self, api, mock_hub):
        mock_hub.routes[("POST", "/Lights/SetState")] = make_response(payload={"status": "success"})

        await api.async_set_lights_state([LightState(id=202, level=65535, time=0), LightState(id=201, level=0)])

        method, path, payload, _ = mock_hub.requests[0]
        assert method == "POST"
        assert path == "/Lights/SetState"
        assert payload == {
            "lights": [{"id": 202, "level": 65535, "time": 0}, {"id": 201, "level": 0, "time": 0}]
        }

    @pytest.mark.asyncio
    async def test_set_shades_state(self, api, mock_hub):
        mock_hub.routes[("POST", "/Shades/SetState")] = make_response(payload={"status": "success"})

        await api.async_set_shades_state([ShadeState(id=203, position=32768)])

        assert mock_hub.requests[0][2] == {"shades": [{"id": 203, "position": 32768}]}

    @pytest.mark.asyncio
    async def test_empty_batch_is_not_sent(self, api, mock_hub):
        await api.async_set_lights_state([])
        await api.async_set_shades_state([])

        assert mock_hub.requests == []

    @pytest.mark.asyncio
    async def test_recall_scene(self, api, mock_hub):
        mock_hub.routes[("POST", "/SCENES/RECALL/101")] = make_response(payload={"status": "success"})

        await api.async_recall_scene(101)

        method, path, payload, _ = mock_hub.requests[0]
        assert (method, path, payload) == ("POST", "/SCENES/RECALL/101", None)
