"""Creation of test contexts.

The factory registers the built-in libraries and the installed plugins
once, then creates an independent context for every test case.
"""

from typing import TYPE_CHECKING, Any

from pytest_courier.builtins import functions, matchers
from pytest_courier.context import TestContext
from pytest_courier.functions import FunctionRegistry
from pytest_courier.matchers import MatcherRegistry
from pytest_courier.processors import MessageProcessors
from pytest_courier.references import SimpleReferenceResolver
from pytest_courier.settings import CourierSettings

from .loader import PluginLoaderMixin

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

    from pytest_courier.dictionaries import DataDictionary
    from pytest_courier.extensions import Plugin
    from pytest_courier.resources import ResourceLoader
    from pytest_courier.scripting import ScriptEngine


class TestContextFactory(PluginLoaderMixin):
    """Factory of per-case test contexts."""

    __test__ = False

    def __init__(self, settings: CourierSettings | None = None, *,
                 load_plugins: bool = True,
                 resource_loader: 'ResourceLoader | None' = None,
                 script_engine: 'ScriptEngine | None' = None) -> None:
        """Initialize the factory.

        Args:
            settings: Runtime settings; read from the environment when omitted.
            load_plugins: Discover and register installed plugins.
            resource_loader: Resource loader shared by created contexts.
            script_engine: Script engine shared by created contexts.

        Raises:
            PluginError: If plugin loading fails in strict mode.
        """
        self.settings = settings or CourierSettings()
        self.strict_mode = self.settings.strict

        self.resource_loader = resource_loader
        self.script_engine = script_engine

        self.functions = FunctionRegistry(strict=self.strict_mode)
        self.matchers = MatcherRegistry(strict=self.strict_mode)
        self.dictionaries: list[DataDictionary] = []
        self.references: dict[str, Any] = {}
        self.plugins: list[Plugin] = []

        self.functions.add_library(
            functions.functions.model_copy(update={'prefix': self.settings.function_prefix}),
        )
        self.matchers.add_library(matchers.matchers)

        if load_plugins:
            self.load_plugins()

    def add_plugin(self, plugin: 'Plugin',
                   entrypoint: 'EntryPoint | None' = None) -> None:
        """Register the extensions of a plugin.

        Raises:
            PluginError: If the plugin shadows existing members in strict mode.
        """
        for library in plugin.functions:
            self.functions.add_library(library)

        for library in plugin.matchers:
            self.matchers.add_library(library)

        self.dictionaries.extend(plugin.dictionaries)

        for name, value in plugin.references.items():
            if name in self.references and (error := self.emit_plugin_issue(
                f'Reference {name!r} from {plugin.name!r} is shadowing an existing',
                entrypoint,
            )):
                raise error
            self.references.setdefault(name, value)

        self.plugins.append(plugin)

    def create(self, variables: dict[str, Any] | None = None) -> TestContext:
        """Create a fresh context.

        Args:
            variables: Initial variables.

        Returns:
            A context with its own variables, registries and processor chain.
        """
        return TestContext(
            functions=self.functions.copy(),
            matchers=self.matchers.copy(),
            message_processors=MessageProcessors(list(self.dictionaries)),
            references=SimpleReferenceResolver(self.references),
            resource_loader=self.resource_loader,
            script_engine=self.script_engine,
            settings=self.settings,
            variables=variables,
        )
