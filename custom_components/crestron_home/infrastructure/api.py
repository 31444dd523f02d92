"""API infrastructure for Crestron Home integration.

This module provides decorators for unified endpoint patterns (api_get,
api_post). They take care of:
- Building the URL from a template and the call's arguments
- Running the request through the session manager (auth header, one
  re-login on 401)
- Timeouts and TLS settings of the transport
- Translating aiohttp / JSON failures into the integration's exceptions

Usage:
    @api_get("/devices/{device_id}", response_key="devices")
    async def async_get_device(self, response_data, device_id: int):
        return response_data

    @api_post("/Lights/SetState")
    async def async_set_lights_state(self, lights):
        return {"lights": [...]}
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from ..constants import HEADER_AUTH_KEY
from .errors import (
    CrestronHomeAPIError,
    CrestronHomeConnectionError,
    CrestronHomeProtocolError,
    CrestronHomeTimeoutError,
)

_LOGGER = logging.getLogger(__name__)


def _bind_url_kwargs(func: Callable, skip: int, args: tuple, kwargs: dict) -> dict:
    """Bind positional arguments to their parameter names for URL formatting."""
    params = list(inspect.signature(func).parameters.keys())
    url_kwargs = dict(kwargs)
    for i, arg in enumerate(args):
        if i + skip < len(params):
            url_kwargs[params[i + skip]] = arg
    return url_kwargs


async def _async_request(
    api,
    method: str,
    url_template: str,
    url_kwargs: dict,
    payload: Any = None,
) -> Any:
    """Send one request through the session manager and decode the answer."""
    session_manager = api.session_manager
    url = session_manager.base_url + url_template.format(**url_kwargs)

    async def _execute(auth_key: str) -> Any:
        session = await session_manager._get_session()
        _LOGGER.debug("API %s %s payload=%s", method, url, payload)
        async with session.request(
            method,
            url,
            headers={HEADER_AUTH_KEY: auth_key},
            json=payload,
            ssl=session_manager.ssl,
            timeout=session_manager.timeout,
        ) as response:
            response.raise_for_status()
            text = await response.text()
        if not text:
            return None
        return _decode_json(url, text)

    try:
        data = await session_manager.async_with_session(_execute)
    except TimeoutError as err:
        raise CrestronHomeTimeoutError(f"Timeout on {method} {url_template}") from err
    except aiohttp.ClientResponseError as err:
        raise CrestronHomeAPIError(
            f"{method} {url_template} failed with HTTP {err.status}"
        ) from err
    except aiohttp.ClientError as err:
        raise CrestronHomeConnectionError(
            f"Error communicating with hub on {method} {url_template}: {err}"
        ) from err

    _LOGGER.debug("API %s %s returned data: %s", method, url, data)
    return data


def _decode_json(url: str, text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as err:
        raise CrestronHomeProtocolError(
            f"Response from {url} is not valid JSON"
        ) from err


def api_get(
    url_template: str,
    *,
    response_key: str | None = None,
):
    """Decorator for GET API endpoints.

    Handles:
    - Session management (auth key header, re-login on 401)
    - URL building from the template and the call's arguments
    - Response key extraction (if response_key is specified)
    - Error translation

    Args:
        url_template: URL template relative to the API root (e.g. "/scenes/{scene_id}").
                     Placeholders are filled from the decorated function's arguments.
        response_key: Key whose list is extracted from the response
                     (e.g. "rooms" returns data["rooms"]). A missing key is a
                     protocol error.

    The decorated function receives the (extracted) response data as its
    first argument after ``self`` and returns the parsed result.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            # Skip 'self' and 'response_data'
            url_kwargs = _bind_url_kwargs(func, 2, args, kwargs)
            data = await _async_request(self, "GET", url_template, url_kwargs)

            if response_key:
                if not isinstance(data, dict) or not isinstance(data.get(response_key), list):
                    raise CrestronHomeProtocolError(
                        f"GET {url_template} response has no '{response_key}' list"
                    )
                data = data[response_key]

            return await func(self, data, *args, **kwargs)

        return wrapper

    return decorator


def api_post(url_template: str, *, skip_empty: bool = False):
    """Decorator for POST API endpoints.

    The decorated function builds and returns the JSON payload (or None for
    an empty body). The decorator sends it and returns the decoded response.

    Args:
        url_template: URL template relative to the API root.
        skip_empty: Do not send the request when the payload's only value is
                    an empty list (e.g. an empty batch).
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            # Skip 'self'
            url_kwargs = _bind_url_kwargs(func, 1, args, kwargs)
            payload = await func(self, *args, **kwargs)

            if skip_empty and isinstance(payload, dict) and not any(payload.values()):
                _LOGGER.debug("Nothing to send to %s (empty payload) - skipping POST.", url_template)
                return None

            return await _async_request(self, "POST", url_template, url_kwargs, payload)

        return wrapper

    return decorator
