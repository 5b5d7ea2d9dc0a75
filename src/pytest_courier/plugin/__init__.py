"""Pytest plugin for collecting and executing YAML test cases.

This module integrates pytest-courier with pytest by:
- registering command-line options and the plugin hooks;
- configuring a shared `CaseParser` and `TestContextFactory`;
- running before and after suite sequences around the session;
- collecting YAML files as executable test cases;
- providing fixtures for imperative tests written in Python.

YAML files matching the pattern `test_*.yml` or `test_*.yaml` are
automatically collected and parsed into pytest test items.
"""

from re import match
from typing import TYPE_CHECKING

import pytest

from . import hooks
from .spec import CaseFile

if TYPE_CHECKING:
    from pathlib import Path

    from _pytest.config import Config, PytestPluginManager
    from _pytest.config.argparsing import Parser
    from _pytest.fixtures import FixtureRequest
    from _pytest.nodes import Node
    from _pytest.main import Session

    from pytest_courier.actions import SuiteSequence
    from pytest_courier.context import TestContext
    from pytest_courier.core import TestContextFactory
    from pytest_courier.testcase import TestCaseRunner


def pytest_addhooks(pluginmanager: 'PytestPluginManager') -> None:
    """Register the pytest-courier hook specifications."""
    pluginmanager.add_hookspecs(hooks)


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-courier.

    Args:
        parser: Pytest argument parser.
    """
    parser.addoption(
        '--courier-strict',
        action='store_true',
        dest='courier_strict',
        default=False,
        help=(
            'Fail on plugin loading errors and library member shadowing '
            'instead of emitting warnings.'
        ),
    )
    parser.addoption(
        '--courier-suite',
        action='store',
        dest='courier_suite',
        default=None,
        help='Name of the suite whose before and after sequences run.',
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-courier integration.

    This hook initializes a shared `CaseParser` and a shared
    `TestContextFactory` and attaches them to the pytest configuration
    object as `config.courier_parser` and `config.courier_factory`.

    Args:
        config: Pytest configuration object.
    """
    from pytest_courier.core import CaseParser, TestContextFactory  # noqa: PLC0415
    from pytest_courier.settings import CourierSettings  # noqa: PLC0415

    settings = CourierSettings()
    if config.getoption('--courier-strict', default=False):
        settings = settings.model_copy(update={'strict': True})

    config.courier_parser = CaseParser()  # type: ignore[attr-defined]
    config.courier_factory = TestContextFactory(settings)  # type: ignore[attr-defined]


def _run_suite(config: 'Config', sequences: 'list[SuiteSequence]') -> None:
    """Run suite sequences in the context shared by the session.

    Raises:
        ExecutionError: Raised by the first failing sequence.
    """
    from pytest_courier.testcase import run_suite_sequences  # noqa: PLC0415

    context = getattr(config, 'courier_suite_context', None)
    if context is None:
        context = config.courier_factory.create()  # type: ignore[attr-defined]
        config.hook.pytest_courier_context(context=context, item=None)
        config.courier_suite_context = context  # type: ignore[attr-defined]

    run_suite_sequences(sequences, context, config.getoption('courier_suite', default=None))


def pytest_sessionstart(session: 'Session') -> None:
    """Run the before suite sequences once per session.

    A failing sequence aborts the session before any test runs.
    """
    from pytest_courier.actions import SequenceAfterSuite, SequenceBeforeSuite  # noqa: PLC0415
    from pytest_courier.errors import ExecutionError  # noqa: PLC0415

    config = session.config
    sequences = [
        sequence
        for result in config.hook.pytest_courier_suite(config=config)
        for sequence in result or ()
    ]
    config.courier_after_suite = [  # type: ignore[attr-defined]
        sequence for sequence in sequences if isinstance(sequence, SequenceAfterSuite)
    ]

    before = [sequence for sequence in sequences if isinstance(sequence, SequenceBeforeSuite)]
    if not before:
        return

    try:
        _run_suite(config, before)

    except ExecutionError as error:
        pytest.exit(f'Suite sequence failed: {error}', returncode=pytest.ExitCode.TESTS_FAILED)


def pytest_sessionfinish(session: 'Session') -> None:
    """Run the after suite sequences once per session.

    A failing sequence fails the session.
    """
    from pytest_courier.errors import ExecutionError  # noqa: PLC0415

    config = session.config
    after = getattr(config, 'courier_after_suite', None)
    if not after:
        return

    try:
        _run_suite(config, after)

    except ExecutionError as error:
        session.exitstatus = pytest.ExitCode.TESTS_FAILED
        if reporter := config.pluginmanager.get_plugin('terminalreporter'):
            reporter.write_line(f'Suite sequence failed: {error}', red=True)


def pytest_collect_file(parent: 'Node', file_path: 'Path') -> CaseFile | None:
    """Collect YAML test case files.

    Args:
        parent: Parent pytest collection node.
        file_path: Path to the file being considered.

    Returns:
        A `CaseFile` collector if the file matches the pattern, otherwise `None`.
    """
    if match(r'^test_.+\.ya?ml$', file_path.name):
        return CaseFile.from_parent(
            parent,
            path=file_path,
        )

    return None


@pytest.fixture
def courier_factory(request: 'FixtureRequest') -> 'TestContextFactory':
    """Return the shared context factory."""
    return request.config.courier_factory  # type: ignore[attr-defined,no-any-return]


@pytest.fixture
def courier_context(request: 'FixtureRequest',
                    courier_factory: 'TestContextFactory') -> 'TestContext':
    """Return a fresh context prepared by the `pytest_courier_context` hooks."""
    context = courier_factory.create()
    request.config.hook.pytest_courier_context(context=context, item=request.node)

    return context


@pytest.fixture
def courier_runner(request: 'FixtureRequest',
                   courier_context: 'TestContext') -> 'TestCaseRunner':
    """Return an imperative runner bound to a fresh context."""
    from pytest_courier.testcase import TestCaseRunner  # noqa: PLC0415

    return TestCaseRunner(courier_context, request.node.name)
