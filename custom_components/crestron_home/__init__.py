"""Integration for Crestron Home."""

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed, ConfigEntryNotReady
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import entity_registry as er

from .constants import (
    API_DEFAULTS,
    CONF_API_TOKEN,
    CONF_ENABLED_TYPES,
    CONF_POLL_INTERVAL,
    CONF_VERIFY_SSL,
    DEFAULT_ENABLED_TYPES,
    DOMAIN,
    PLATFORMS,
)
from .coordinator import CrestronHomeCoordinator
from .crestron_api import CrestronHomeAPI
from .entity_helper import create_accessory
from .infrastructure import CrestronHomeAuthError, CrestronHomeError

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    return True  # configured through config entries only


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Crestron Home from a config entry."""
    settings = {**entry.data, **entry.options}
    host = entry.data[CONF_HOST]
    verify_ssl = settings.get(CONF_VERIFY_SSL, API_DEFAULTS.VERIFY_SSL)

    api = CrestronHomeAPI(host, entry.data[CONF_API_TOKEN], verify_ssl=verify_ssl)

    try:
        await api.async_login()
    except CrestronHomeAuthError as err:
        await api.async_close()
        raise ConfigEntryAuthFailed(f"Crestron hub at {host} rejected the API token") from err
    except CrestronHomeError as err:
        await api.async_close()
        raise ConfigEntryNotReady(f"Failed to connect to Crestron hub at {host}: {err}") from err

    entity_registry = er.async_get(hass)
    restored_ids = {
        registry_entry.unique_id
        for registry_entry in er.async_entries_for_config_entry(entity_registry, entry.entry_id)
    }

    coordinator = CrestronHomeCoordinator(
        hass,
        api,
        config_entry=entry,
        enabled_types=settings.get(CONF_ENABLED_TYPES, DEFAULT_ENABLED_TYPES),
        accessory_factory=create_accessory,
        restored_ids=restored_ids,
        update_interval=settings.get(CONF_POLL_INTERVAL, API_DEFAULTS.POLLING_INTERVAL),
    )
    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady:
        await api.async_close()
        raise

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    # Keep polling while no entity listens yet, so new hub devices still show up
    entry.async_on_unload(coordinator.async_add_listener(lambda: None))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(update_listener))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        coordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.api.async_close()

        if not hass.data[DOMAIN]:
            hass.data.pop(DOMAIN)

    return unload_ok


async def update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    await hass.config_entries.async_reload(entry.entry_id)
