"""Plugin discovery and loading.

Plugins are exposed through the `courier_plugins` entry point group.
A broken entry point is reported and skipped, so one faulty package
does not prevent the others from loading. Strict mode turns every
report into a `PluginError`.
"""

from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError

from pytest_courier.errors import PluginError, PluginWarning
from pytest_courier.extensions import Plugin

if TYPE_CHECKING:
    from collections.abc import Iterator
    from importlib.metadata import EntryPoint

logger = getLogger(__name__)

#: Entry point group of plugins.
PLUGINS_GROUP = 'courier_plugins'


class PluginLoaderMixin(ABC):
    """Discovery half of the context factory.

    Subclasses decide what registering a plugin means by overriding
    `add_plugin`.

    Attributes:
        strict_mode: Raise `PluginError` instead of warning.
    """

    strict_mode: bool = False

    @abstractmethod
    def add_plugin(self, plugin: Plugin,
                   entrypoint: 'EntryPoint | None' = None) -> None:
        """Register the extensions of a plugin."""

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> PluginError | None:
        """Report a plugin issue.

        Args:
            message: Description of the issue.
            entrypoint: Entry point the issue relates to, if any.

        Returns:
            The error to raise in strict mode; otherwise the issue is
            emitted as a `PluginWarning` and `None` is returned.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=3)

        return None

    def iter_plugins(self) -> 'Iterator[tuple[EntryPoint, Plugin]]':
        """Yield the plugins of every loadable entry point.

        Raises:
            PluginError: On the first broken entry point in strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=PLUGINS_GROUP):
            try:
                loaded = entrypoint.load()

            except Exception as base:  # noqa: BLE001
                problem = 'validate' if isinstance(base, ValidationError) else 'load'
                if error := self.emit_plugin_issue(
                    f'Failed to {problem} entrypoint {entrypoint.name!r}', entrypoint,
                ):
                    raise error from base
                continue

            if isinstance(loaded, Plugin):
                yield entrypoint, loaded
                continue

            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin', entrypoint,
            ):
                raise error

    def load_plugins(self) -> None:
        """Discover installed plugins and register them.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        for entrypoint, plugin in self.iter_plugins():
            logger.debug('load plugin %r from %r', plugin.name, entrypoint.value)
            self.add_plugin(plugin, entrypoint)
