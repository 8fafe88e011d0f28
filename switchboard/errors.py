"""
Exception types raised by the plugin handler.

Every plugin related failure derives from PluginError, which carries a
numeric code so callers can branch on the kind of failure without caring
about the concrete subclass.
"""

from typing import Optional


class PluginError(Exception):
    """Base exception for plugin loading and lookup failures."""

    ERR_CLASS_NOT_FOUND = 1
    ERR_INCORRECT_BASE_CLASS = 2
    ERR_CLASS_NOT_INSTANTIABLE = 3
    ERR_DIRECTORY_NOT_READABLE = 4
    ERR_PLUGIN_NOT_LOADED = 5
    ERR_HANDLER_FAILURE = 6

    code: int = ERR_HANDLER_FAILURE

    def __init__(self, message: str = "", code: Optional[int] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class UnreadableLocationError(PluginError):
    """Raised when a plugin path does not reference a readable directory."""

    code = PluginError.ERR_DIRECTORY_NOT_READABLE


class PluginNotFoundError(PluginError):
    """Raised when no plugin path provides the requested plugin class."""

    code = PluginError.ERR_CLASS_NOT_FOUND


class IncorrectBaseClassError(PluginError):
    """Raised when the resolved class does not extend Plugin."""

    code = PluginError.ERR_INCORRECT_BASE_CLASS


class NotInstantiableError(PluginError):
    """Raised when the resolved plugin class cannot be constructed."""

    code = PluginError.ERR_CLASS_NOT_INSTANTIABLE


class PluginNotLoadedError(PluginError):
    """Raised when a plugin is requested, is not loaded and autoload is off."""

    code = PluginError.ERR_PLUGIN_NOT_LOADED
