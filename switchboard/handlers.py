"""
Exception handling policies for plugin dispatch.

When a plugin's event method raises during dispatch, the plugin handler
passes the plugin, the event name and the exception to the installed policy.
The policy returns True to stop delivering the event to the remaining
plugins or False to carry on. Without a policy the exception propagates out
of dispatch.

Built-in policies: stop and log (stop_and_log_plugin_exception), log and
continue (log_and_continue_plugin_exception), ignore
(silent_plugin_exception) and collect for later inspection
(collect_plugin_exception).
"""

import logging
import sys
from typing import Any
from typing import Callable

from switchboard.plugin import Plugin


logger = logging.getLogger(__name__)


PLUGIN_EXCEPTION_HANDLER = Callable[[Plugin, str, Exception], bool]
"""
Signature for dispatch exception handlers.

Receives the failing plugin, the event name and the exception, returns True
to stop delivery or False to continue with the remaining plugins.
"""

STOP = True
CONTINUE = False


def get_plugin_label(plugin: Any) -> str:
    """Returns 'ClassName(short name)' for plugins, str() for anything else."""
    if isinstance(plugin, Plugin):
        return f"{plugin.__class__.__name__}({plugin.name})"
    return str(plugin)


def stop_and_log_plugin_exception(
    plugin: Plugin, event: str, exception: Exception
) -> bool:
    """Stop delivering the event and log the exception with its traceback."""
    logger.error(
        f"Exception in plugin event method:\n"
        f"  Event:     {event}\n"
        f"  Plugin:    {get_plugin_label(plugin)}\n"
        f"  Exception: {exception.__class__.__name__}: {exception}",
        exc_info=True,
    )
    return STOP


def log_and_continue_plugin_exception(
    plugin: Plugin, event: str, exception: Exception
) -> bool:
    """Log plugin errors but keep delivering the event."""
    logger.warning(
        f"Plugin error (continuing): "
        f"{get_plugin_label(plugin)} in {event}: {exception}"
    )
    return CONTINUE


def silent_plugin_exception(_: Plugin, __: str, ___: Exception) -> bool:
    """Silently ignore all exceptions."""
    return CONTINUE


exceptions_caught = []


def collect_plugin_exception(
    plugin: Plugin, event: str, exception: Exception
) -> bool:
    """
    Collect exceptions for batch processing.
    This appends exceptions caught to switchboard.handlers.exceptions_caught
    which is a list. Clear it manually between batches.
    """
    exceptions_caught.append(
        {
            "plugin": get_plugin_label(plugin),
            "event": event,
            "exception": f"{exception.__class__.__name__}: {exception}",
            "exc_info": sys.exc_info(),
        }
    )
    return CONTINUE
