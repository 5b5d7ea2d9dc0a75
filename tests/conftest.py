"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from pytest_courier.core import TestContextFactory
from pytest_courier.settings import CourierSettings
from tests.examples.endpoints import FakeEndpoint

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.extensions import Plugin


@pytest.fixture
def factory() -> TestContextFactory:
    """Provide a context factory without installed plugins.

    Plugin discovery is disabled so that installed packages do not
    leak functions, matchers or dictionaries into the tests.
    """
    return TestContextFactory(CourierSettings(), load_plugins=False)


@pytest.fixture
def context(factory: TestContextFactory) -> 'TestContext':
    """Provide a fresh context with the built-in libraries registered."""
    return factory.create()


@pytest.fixture
def endpoint(context: 'TestContext') -> FakeEndpoint:
    """Provide a fake endpoint bound in the context as `orders`."""
    endpoint = FakeEndpoint('orders')
    context.references.bind('orders', endpoint)

    return endpoint


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `courier_plugins` entry point group.

    This fixture is intended for testing plugin discovery and error
    handling logic without relying on real installed entry points.
    """
    def patch(*plugins: 'Plugin | object', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.

        Returns:
            A mock patch object replacing `importlib.metadata.entry_points`.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'courier_plugins'
            ep.name = 'tests'
            ep.value = 'tests.plugins:plugin'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch
