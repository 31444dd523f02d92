"""Config flow for Crestron Home."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import aiohttp
import voluptuous as vol

from homeassistant.config_entries import ConfigEntry, ConfigFlow, ConfigFlowResult, OptionsFlow
from homeassistant.const import CONF_HOST
from homeassistant.helpers import config_validation as cv

from .constants import (
    API_DEFAULTS,
    CONF_API_TOKEN,
    CONF_ENABLED_TYPES,
    CONF_POLL_INTERVAL,
    CONF_VERIFY_SSL,
    DEFAULT_ENABLED_TYPES,
    DOMAIN,
    SUPPORTED_TYPES,
)
from .crestron_api import CrestronHomeAPI
from .infrastructure import CrestronHomeAuthError, CrestronHomeError


async def _async_validate(host: str, api_token: str, verify_ssl: bool) -> str | None:
    """Try to log in; return an error key or None."""
    async with aiohttp.ClientSession() as session:
        api = CrestronHomeAPI(host, api_token, verify_ssl=verify_ssl, session=session)
        try:
            await api.async_login()
        except CrestronHomeAuthError:
            return "invalid_auth"
        except CrestronHomeError:
            return "cannot_connect"
    return None


class CrestronHomeConfigFlow(ConfigFlow, domain=DOMAIN):
    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        errors = {}

        if user_input is not None:
            host = user_input[CONF_HOST]
            await self.async_set_unique_id(host)
            self._abort_if_unique_id_configured()

            error = await _async_validate(
                host, user_input[CONF_API_TOKEN], user_input[CONF_VERIFY_SSL]
            )
            if error is None:
                return self.async_create_entry(
                    title=f"Crestron Home @ {host}",
                    data=user_input,
                )
            errors["base"] = error

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_HOST): str,
                    vol.Required(CONF_API_TOKEN): str,
                    vol.Required(CONF_ENABLED_TYPES, default=DEFAULT_ENABLED_TYPES): cv.multi_select(
                        SUPPORTED_TYPES
                    ),
                    # The hub ships a self-signed certificate
                    vol.Required(CONF_VERIFY_SSL, default=API_DEFAULTS.VERIFY_SSL): bool,
                }
            ),
            errors=errors,
        )

    async def async_step_reauth(self, entry_data: Mapping[str, Any]) -> ConfigFlowResult:
        """Start re-authentication after the hub rejected the API token."""
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        errors = {}
        entry = self._get_reauth_entry()

        if user_input is not None:
            error = await _async_validate(
                entry.data[CONF_HOST],
                user_input[CONF_API_TOKEN],
                entry.data.get(CONF_VERIFY_SSL, API_DEFAULTS.VERIFY_SSL),
            )
            if error is None:
                return self.async_update_reload_and_abort(
                    entry, data_updates={CONF_API_TOKEN: user_input[CONF_API_TOKEN]}
                )
            errors["base"] = error

        return self.async_show_form(
            step_id="reauth_confirm",
            data_schema=vol.Schema({vol.Required(CONF_API_TOKEN): str}),
            errors=errors,
        )

    @classmethod
    def async_get_options_flow(cls, entry: ConfigEntry):
        return CrestronHomeOptionsFlow(entry)


class CrestronHomeOptionsFlow(OptionsFlow):
    def __init__(self, entry):
        self.entry = entry

    async def async_step_init(self, user_input=None):
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        settings = {**self.entry.data, **self.entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Optional(
                        CONF_POLL_INTERVAL,
                        default=settings.get(CONF_POLL_INTERVAL, API_DEFAULTS.POLLING_INTERVAL),
                    ): vol.All(vol.Coerce(int), vol.Range(min=API_DEFAULTS.MIN_POLLING_INTERVAL)),
                    vol.Optional(
                        CONF_ENABLED_TYPES,
                        default=settings.get(CONF_ENABLED_TYPES, DEFAULT_ENABLED_TYPES),
                    ): cv.multi_select(SUPPORTED_TYPES),
                }
            ),
        )
