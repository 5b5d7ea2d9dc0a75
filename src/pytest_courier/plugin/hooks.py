"""Hook specifications of the pytest-courier plugin."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pytest

    from pytest_courier.actions import SuiteSequence
    from pytest_courier.context import TestContext


def pytest_courier_context(context: 'TestContext', item: 'pytest.Item | None') -> None:
    """Prepare a fresh context before a test case runs.

    Implement this hook in a `conftest.py` to bind endpoints, marshallers
    and dictionaries by name, register global processors, or seed variables:

        def pytest_courier_context(context, item):
            context.references.bind('orders', OrdersEndpoint())

    Args:
        context: Context created for the test case.
        item: Test item the context is created for, or `None` for the
            context shared by the suite sequences.
    """


def pytest_courier_suite(config: 'pytest.Config') -> 'list[SuiteSequence] | None':
    """Return the before and after suite sequences of the session.

    Sequences from every implementation run in order. Before sequences
    run once at session start, after sequences once at session finish,
    both filtered by the `--courier-suite` name:

        def pytest_courier_suite(config):
            return [SequenceBeforeSuite(actions=[...])]

    Args:
        config: Pytest configuration object.
    """
