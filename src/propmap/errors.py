"""
Typed errors raised by the service layer.

The web layer maps each class to an HTTP status; anything outside this
hierarchy is treated as an internal failure.
"""

from __future__ import annotations


class PropmapError(RuntimeError):
    """Base class for application failures."""

    status_code = 500


class ConfigError(PropmapError):
    """Required configuration is missing or invalid."""


class InvalidRequestError(PropmapError):
    """The client supplied missing or unusable input."""

    status_code = 400


class ListingNotFoundError(PropmapError):
    """Unknown listing id, or a listing without coordinates."""

    status_code = 404


class UpstreamError(PropmapError):
    """An external geocoding/POI/routing service failed."""

    status_code = 502
