"""Tests for plugin loading and context creation."""

from typing import TYPE_CHECKING

import pytest

from pytest_courier.actions import SendMessageAction
from pytest_courier.core import TestContextFactory
from pytest_courier.errors import PluginError, PluginWarning
from pytest_courier.extensions import FunctionLibrary, Plugin
from pytest_courier.settings import CourierSettings
from pytest_courier.validation import validate_value
from tests.examples.endpoints import FakeEndpoint, MarkupScriptEngine
from tests.examples.plugins import example

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockType


def test_plugin_extensions(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Plugin functions, matchers, dictionaries and references reach every context."""
    patch_entrypoints(example)

    factory = TestContextFactory(CourierSettings())
    context = factory.create()

    assert factory.plugins == [example]
    assert context.resolve('${crm:customerId(42)}') == 'CUST-000042'
    validate_value('customer', 'CUST-1', '@crm:isCustomerId()@', context)

    endpoint = context.references.resolve('crm', FakeEndpoint)
    SendMessageAction(endpoint='crm', message={'payload': 'Hello ACME'}).execute(context)

    assert endpoint.sent[-1].payload == 'Hello Acme Corp.'


def test_no_plugins(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Without plugins only the built-in libraries are registered."""
    patch_entrypoints()

    factory = TestContextFactory(CourierSettings())

    assert factory.plugins == []
    assert 'courier:concat' in factory.functions
    assert 'contains' in factory.matchers


def test_plugin_load_failure(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Plugin load failures emit warnings and loading continues."""
    patch_entrypoints(example, raises=ImportError('broken'))

    with pytest.warns(PluginWarning, match=r"^Failed to load entrypoint 'tests'$"):
        factory = TestContextFactory(CourierSettings())

    assert factory.plugins == []


def test_plugin_load_failure_strict(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Plugin load failures raise in strict mode."""
    patch_entrypoints(example, raises=ImportError('broken'))

    with pytest.raises(PluginError, match=r"^Failed to load entrypoint 'tests'$") as error:
        TestContextFactory(CourierSettings(strict=True))

    assert error.value.entrypoint is not None
    assert isinstance(error.value.__cause__, ImportError)


def test_not_a_plugin(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Entry points must expose plugin objects."""
    patch_entrypoints(object())

    with pytest.warns(PluginWarning, match=r'is not a plugin$'):
        TestContextFactory(CourierSettings())


def test_plugin_function_shadowing(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Plugins can not shadow built-in functions."""
    patch_entrypoints(Plugin(name='shadow', functions=[
        FunctionLibrary(name='shadow', prefix='courier:', functions={'concat': lambda args, ctx: 'shadowed'}),
    ]))

    with pytest.warns(PluginWarning, match=r'is shadowing an existing$'):
        factory = TestContextFactory(CourierSettings())

    assert factory.create().resolve("${courier:concat('a', 'b')}") == 'ab'


def test_plugin_function_shadowing_strict(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Shadowing fails in strict mode."""
    patch_entrypoints(Plugin(name='shadow', functions=[
        FunctionLibrary(name='shadow', prefix='courier:', functions={'concat': lambda args, ctx: 'shadowed'}),
    ]))

    with pytest.raises(PluginError, match=r'is shadowing an existing$'):
        TestContextFactory(CourierSettings(strict=True))


def test_plugin_reference_shadowing(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """The first plugin binding a reference wins."""
    first = FakeEndpoint('first')
    patch_entrypoints(
        Plugin(name='first', references={'orders': first}),
        Plugin(name='second', references={'orders': FakeEndpoint('second')}),
    )

    with pytest.warns(PluginWarning, match=r"^Reference 'orders' from 'second' is shadowing an existing$"):
        factory = TestContextFactory(CourierSettings())

    assert factory.create().references.resolve('orders') is first


def test_factory_collaborators() -> None:
    """Contexts share the factory script engine and settings."""
    engine = MarkupScriptEngine()
    settings = CourierSettings(receive_timeout=1)
    factory = TestContextFactory(settings, load_plugins=False, script_engine=engine)

    context = factory.create({'text': 'Hi'})

    assert context.script_engine is engine
    assert context.settings.receive_timeout == 1
    assert context.get_variable('text') == 'Hi'


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings are read from `COURIER_` environment variables."""
    monkeypatch.setenv('COURIER_RECEIVE_TIMEOUT', '2.5')
    monkeypatch.setenv('COURIER_DEFAULT_ENCODING', 'latin-1')

    settings = CourierSettings()

    assert settings.receive_timeout == 2.5
    assert settings.default_encoding == 'latin-1'
