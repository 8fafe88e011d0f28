"""
Plugin class lookup and construction.

Plugins are found by short name in a list of paths. A path is a directory
(or an imported package) plus a class name prefix: looking up 'Quit' in a
path with prefix 'Bot' loads quit.py from that directory and expects it to
define the class BotQuit. Paths are searched most recently added first.

Finding the file is a pure lookup (get_plugin_info). Importing it and
checking the class (load_class) and constructing an instance (create) are
separate steps, the latter going through a registry of factory functions.
"""

import hashlib
import importlib
import importlib.util
import inspect
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any
from typing import Callable
from typing import Optional
from typing import Sequence
from typing import Union

from switchboard import errors
from switchboard.plugin import Plugin


logger = logging.getLogger(__name__)


LOCATION = Union[str, os.PathLike, ModuleType]
"""A plugin directory or an imported package."""

FACTORY = Callable[..., Plugin]
"""Builds a plugin instance from the constructor arguments given to add_plugin."""


@dataclass(frozen=True)
class PluginPath(object):
    """A location plugin class files are searched in."""

    directory: Path
    """Directory holding the plugin modules."""

    prefix: str = ""
    """Prepended to the short name to get the class name."""

    package: Optional[str] = None
    """Dotted package name when the directory is an importable package."""


@dataclass(frozen=True)
class PluginInfo(object):
    """Where a plugin's class lives."""

    name: str
    """The short name that was looked up."""

    directory: Path
    file: Path

    class_name: str
    """Fully prefixed class name expected in the file."""

    package: Optional[str] = None


class PluginLoader(object):
    """Search paths, class loading and the factory registry."""

    def __init__(self) -> None:
        self._paths: list[PluginPath] = []
        self._modules: dict[Path, ModuleType] = {}
        self._factories: dict[type, FACTORY] = {}

    @property
    def paths(self) -> list[PluginPath]:
        return list(self._paths)

    # -----Paths---------------------------------------------------------------

    def add_path(self, path: LOCATION, prefix: str = "") -> PluginPath:
        """
        Register a location to search for plugins.

        Args:
            path (LOCATION): Directory path, or a package module whose
                directory is searched and whose modules are imported by their
                dotted names.
            prefix (str): Class name prefix for plugins in this location.
        Raises:
            UnreadableLocationError: If the location is not a readable
                directory.
        """
        package = None
        if isinstance(path, ModuleType):
            locations = getattr(path, "__path__", None)
            if not locations:
                raise errors.UnreadableLocationError(
                    f'Module "{path.__name__}" is not a package'
                )
            package = path.__name__
            path = list(locations)[0]

        directory = Path(path)
        if not directory.is_dir() or not os.access(directory, os.R_OK):
            raise errors.UnreadableLocationError(
                f'Path "{path}" does not reference a readable directory'
            )

        plugin_path = PluginPath(
            directory=directory.resolve(), prefix=prefix, package=package
        )
        self._paths.append(plugin_path)
        logger.debug(f"Added plugin path {plugin_path.directory} (prefix '{prefix}')")
        return plugin_path

    def get_plugin_info(self, name: str) -> PluginInfo:
        """
        Find the file a plugin's class should live in.

        Raises:
            PluginNotFoundError: If no path has a module for the name.
        """
        if name.isidentifier() and not name.startswith("_"):
            for plugin_path in reversed(self._paths):
                for stem in dict.fromkeys((name, name.lower())):
                    file = plugin_path.directory / f"{stem}.py"
                    if file.is_file():
                        return PluginInfo(
                            name=name,
                            directory=plugin_path.directory,
                            file=file,
                            class_name=f"{plugin_path.prefix}{name}",
                            package=plugin_path.package,
                        )

        raise errors.PluginNotFoundError(
            f'Class file for plugin "{name}" cannot be found'
        )

    # -----Classes-------------------------------------------------------------

    def _import(self, info: PluginInfo) -> ModuleType:
        if info.package is not None:
            return importlib.import_module(f"{info.package}.{info.file.stem}")

        module = self._modules.get(info.file)
        if module is not None:
            return module

        digest = hashlib.md5(str(info.file).encode("utf-8")).hexdigest()[:8]
        module_name = f"_switchboard_plugin_{info.file.stem}_{digest}"
        spec = importlib.util.spec_from_file_location(module_name, info.file)
        if spec is None or spec.loader is None:
            raise errors.PluginNotFoundError(f'File "{info.file}" cannot be imported')

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[module_name]
            raise

        self._modules[info.file] = module
        logger.debug(f"Imported plugin module {info.file}")
        return module

    @staticmethod
    def _find_class(module: ModuleType, class_name: str) -> Optional[type]:
        cls = getattr(module, class_name, None)
        if isinstance(cls, type):
            return cls

        wanted = class_name.lower()
        for value in vars(module).values():
            if isinstance(value, type) and value.__name__.lower() == wanted:
                return value

        return None

    def load_class(self, info: PluginInfo) -> type[Plugin]:
        """
        Import a plugin's module and return its validated class.

        Raises:
            PluginNotFoundError: The module does not define the class.
            IncorrectBaseClassError: The class does not extend Plugin.
            NotInstantiableError: The class is abstract.
        """
        cls = self._find_class(self._import(info), info.class_name)
        if cls is None:
            raise errors.PluginNotFoundError(
                f'File "{info.file}" does not contain class "{info.class_name}"'
            )

        if not issubclass(cls, Plugin):
            raise errors.IncorrectBaseClassError(
                f'Class for plugin "{info.name}" does not extend Plugin'
            )

        if cls is Plugin or inspect.isabstract(cls):
            raise errors.NotInstantiableError(
                f'Class for plugin "{info.name}" cannot be instantiated'
            )

        return cls

    # -----Factories-----------------------------------------------------------

    def register_factory(self, cls: type, factory: FACTORY) -> None:
        """
        Use a factory instead of the class itself to build instances of cls
        and of its subclasses without a factory of their own.
        """
        self._factories[cls] = factory

    def get_factory(self, cls: type[Plugin]) -> FACTORY:
        for klass in cls.__mro__:
            if klass in self._factories:
                return self._factories[klass]
        return cls

    def create(self, cls: type[Plugin], args: Optional[Sequence[Any]] = None) -> Plugin:
        """Build a plugin instance, passing args to its factory."""
        return self.get_factory(cls)(*(args or ()))
