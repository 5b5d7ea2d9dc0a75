"""Pytest item executing a YAML test case."""

from os import linesep
from typing import TYPE_CHECKING

import pytest

from pytest_courier.errors import CourierError
from pytest_courier.testcase import TestStatus

if TYPE_CHECKING:
    from typing import Any

    from _pytest._code.code import ExceptionInfo, TerminalRepr

    from pytest_courier.testcase import TestCase, TestResult


class CaseFailure(Exception):
    """Raised by a test item whose case ended with the `FAILED` status."""

    def __init__(self, result: 'TestResult') -> None:
        """Initialize the failure from a case result."""
        self.result = result

        super().__init__(result.message)


class CaseItem(pytest.Item):
    """Pytest item executing a single test case with a fresh context."""

    __test__ = False

    def __init__(self, *, case: 'TestCase', **kwargs: 'Any') -> None:
        """Initialize the item.

        Args:
            case: Parsed test case.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.case = case

    def runtest(self) -> None:
        """Execute the test case.

        Raises:
            CaseFailure: If the case status is `FAILED`.
        """
        context = self.config.courier_factory.create()  # type: ignore[attr-defined]
        self.ihook.pytest_courier_context(context=context, item=self)

        result = self.case.execute(context)
        if result.status is TestStatus.FAILED:
            raise CaseFailure(result)

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]',
                     style: 'Any' = None) -> 'str | TerminalRepr':
        """Report a failed case with its failing action and the original error."""
        if isinstance(excinfo.value, CaseFailure):
            result = excinfo.value.result
            message = f'Test case {result.name!r} failed at action {result.failed_action!r}'

            details = str(result.error) if isinstance(result.error, CourierError) else result.message

            return linesep.join((message, details or ''))

        return super().repr_failure(excinfo, style)

    def reportinfo(self) -> tuple['Any', int | None, str]:
        """Return the location of the test case."""
        return self.path, 0, f'case: {self.name}'
