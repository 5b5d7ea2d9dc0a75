"""Test cases, their results and the imperative runner.

A test case seeds the context with its declared variables, runs its
actions in order and stops at the first failing action. Actions declared
as `finally` always run afterwards. The case status is decided once, at
the end of the execution.
"""

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import Field

from pytest_courier.actions import ActionState, ChildAction
from pytest_courier.errors import ErrorContext, ExecutionError
from pytest_courier.models import DescribedMixin, SchemaModel
from pytest_courier.names import Variable  # noqa: TC001
from pytest_courier.values import Value  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pytest_courier.actions import SequenceAfterSuite, SequenceBeforeSuite, TestAction
    from pytest_courier.context import TestContext

logger = getLogger(__name__)


class TestStatus(StrEnum):
    """Terminal status of a test case."""

    __test__ = False

    SUCCESS = 'success'
    FAILED = 'failed'


class ActionResult(SchemaModel):
    """State of a top-level action after a case execution."""

    name: str
    state: ActionState


class TestResult(SchemaModel):
    """Outcome of a test case execution."""

    __test__ = False

    name: str
    status: TestStatus
    actions: list[ActionResult] = Field(default_factory=list)

    #: Name of the first failing top-level action, if any.
    failed_action: str | None = None
    error: BaseException | None = None

    @property
    def origin(self) -> tuple[str, BaseException] | None:
        """Return the innermost failing action name and the original failure."""
        if isinstance(self.error, ExecutionError):
            return self.error.origin

        if self.error is not None:
            return self.failed_action or self.name, self.error

        return None

    @property
    def message(self) -> str | None:
        """Return a failure summary naming the failing action and the original error."""
        if (origin := self.origin) is None:
            return None

        action_name, cause = origin

        return f'{action_name}: {getattr(cause, 'message', None) or cause}'


class TestCase(DescribedMixin, SchemaModel):
    """Named, ordered list of actions with declared variables."""

    __test__ = False

    name: str = Field(
        title='Test case name',
        description='Name of the test case used in reports.',
    )

    variables: dict[Variable, Value] = Field(
        default_factory=dict,
        title='Variables',
        description=(
            'Variables bound before the first action, in declaration order. '
            'A value may reference variables declared before it.'
        ),
    )

    actions: list[ChildAction] = Field(
        default_factory=list,
        title='Actions',
        description='Top-level actions executed in order.',
    )

    finally_actions: list[ChildAction] = Field(
        default_factory=list,
        alias='finally',
        title='Finally actions',
        description='Actions executed after the case actions, even after a failure.',
    )

    def seed(self, context: 'TestContext') -> None:
        """Bind the declared variables.

        Raises:
            CourierError: If a variable value can not be resolved.
        """
        for name, value in self.variables.items():
            context.set_variable(name, context.resolve_dynamic(value))

    def execute(self, context: 'TestContext') -> TestResult:
        """Execute the test case.

        Failures never escape: they are reported through the result.

        Args:
            context: Fresh context of this execution.

        Returns:
            The case result.
        """
        logger.info('start test case %r', self.name)

        results: list[ActionResult] = []
        failed_action: str | None = None
        error: BaseException | None = None

        try:
            self.seed(context)

        except Exception as base:  # noqa: BLE001
            error = base
            logger.error('test case %r failed to bind variables: %s', self.name, getattr(base, 'message', base))  # noqa: TRY400

        pending = list(self.actions) if error is None else []
        for position, action in enumerate(pending):
            try:
                results.append(ActionResult(name=action.display_name, state=action.execute(context)))

            except ExecutionError as failure:
                failure.context = ErrorContext(case_name=self.name, action_name=action.display_name,
                                               action_num=position)
                results.append(ActionResult(name=action.display_name, state=ActionState.FAILED))
                results.extend(
                    ActionResult(name=rest.display_name, state=ActionState.PENDING)
                    for rest in pending[position + 1:]
                )
                failed_action, error = action.display_name, failure
                break

        for action in self.finally_actions:
            try:
                results.append(ActionResult(name=action.display_name, state=action.execute(context)))

            except ExecutionError as failure:
                results.append(ActionResult(name=action.display_name, state=ActionState.FAILED))
                if error is None:
                    failed_action, error = action.display_name, failure

        status = TestStatus.SUCCESS if error is None else TestStatus.FAILED
        logger.info('finish test case %r: %s', self.name, status)

        return TestResult(
            name=self.name,
            status=status,
            actions=results,
            failed_action=failed_action,
            error=error,
        )


class TestCaseRunner:
    """Imperative runner executing actions as they are submitted.

    Example:
        >>> runner = TestCaseRunner(context, 'orders')
        >>> runner.run(EchoAction(message='Hello'))
        <ActionState.DONE: 'done'>
        >>> runner.finish().status
        <TestStatus.SUCCESS: 'success'>
    """

    __test__ = False

    def __init__(self, context: 'TestContext', name: str = 'imperative') -> None:
        """Initialize a runner for a fresh context."""
        self.context = context
        self.name = name
        self.results: list[ActionResult] = []
        self.error: ExecutionError | None = None
        self.failed_action: str | None = None

    def variable(self, name: str, value: Value) -> None:
        """Bind a resolved variable."""
        self.context.set_variable(name, self.context.resolve_dynamic(value))

    def run(self, action: 'TestAction') -> ActionState:
        """Execute an action immediately.

        Raises:
            ExecutionError: If the action fails; later actions are still
                accepted but the result reports the first failure.
        """
        try:
            state = action.execute(self.context)

        except ExecutionError as failure:
            self.results.append(ActionResult(name=action.display_name, state=ActionState.FAILED))
            if self.error is None:
                self.failed_action, self.error = action.display_name, failure
            raise

        self.results.append(ActionResult(name=action.display_name, state=state))

        return state

    def finish(self) -> TestResult:
        """Return the result of the actions run so far."""
        return TestResult(
            name=self.name,
            status=TestStatus.SUCCESS if self.error is None else TestStatus.FAILED,
            actions=self.results,
            failed_action=self.failed_action,
            error=self.error,
        )


def run_suite_sequences(sequences: 'Iterable[SequenceBeforeSuite | SequenceAfterSuite]',
                        context: 'TestContext', suite: str | None = None) -> list[ActionState]:
    """Run the suite sequences applying to a suite, in order.

    Raises:
        ExecutionError: Raised by the first failing sequence, naming it.
    """
    states = []
    for sequence in sequences:
        if sequence.applies_to(suite):
            logger.info('run suite sequence %r', sequence.display_name)
            states.append(sequence.execute(context))

    return states
