"""Custom exceptions for Crestron Home integration."""


class CrestronHomeError(Exception):
    """Base exception for Crestron Home."""


class CrestronHomeAuthError(CrestronHomeError):
    """Raised when a session cannot be established or re-established."""


class CrestronHomeConnectionError(CrestronHomeError):
    """Raised when connection to the Crestron Home hub fails."""


class CrestronHomeTimeoutError(CrestronHomeConnectionError):
    """Raised when request times out."""


class CrestronHomeAPIError(CrestronHomeError):
    """Raised when API returns an error status other than 401."""


class CrestronHomeProtocolError(CrestronHomeError):
    """Raised when the hub answers with an unexpected response body."""


class CrestronHomeCatalogError(CrestronHomeError):
    """Raised when one of the catalog reads failed and the catalog is incomplete."""
