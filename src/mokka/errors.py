"""Exception hierarchy shared by the trading loop and its collaborators."""

from __future__ import annotations


class MokkaError(Exception):
    """Base class for every error raised by mokka."""


class ConfigurationError(MokkaError):
    """Unknown market/indicator or missing/invalid settings. Fatal at startup."""


class BootstrapCancelled(ConfigurationError):
    """No reference action could be established before the loop starts."""


class InvalidAmount(MokkaError):
    """Non-positive price, fund or quantity while sizing a trade."""


class ExchangeError(MokkaError):
    """Network failure or order rejected by the exchange."""


class PersistenceError(MokkaError):
    """The action log could not be written, or holds a malformed record."""
