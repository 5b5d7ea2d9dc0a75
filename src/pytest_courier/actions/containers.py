"""Action containers.

A container runs its child actions in order and stops at the first
failing child. The child failure is wrapped once more at the container
level, so the resulting error names the container and keeps the child
error as its cause.
"""

from logging import getLogger
from operator import eq, ge, gt, le, lt, ne
from re import compile as regexp
from typing import TYPE_CHECKING, Literal

from pydantic import Field

from pytest_courier.errors import CourierError

from .base import ActionState, ChildAction, TestAction, register_action

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_courier.context import TestContext

logger = getLogger(__name__)

CONDITION_PATTERN = regexp(r'^(?P<left>.*?)\s*(?P<operator>!=|<=|>=|=|<|>)\s*(?P<right>.*)$')

OPERATORS: dict[str, 'Callable[[object, object], bool]'] = {
    '=': eq,
    '!=': ne,
    '<': lt,
    '<=': le,
    '>': gt,
    '>=': ge,
}


class TestActionContainer(TestAction):
    """Base container of ordered child actions."""

    actions: list[ChildAction] = Field(
        default_factory=list,
        title='Child actions',
        description='Actions executed in declaration order.',
    )

    def do_execute(self, context: 'TestContext') -> None:
        """Run the child actions, aborting at the first failure."""
        self.run_actions(context)

    def run_actions(self, context: 'TestContext') -> list[ActionState]:
        """Run the child actions and return their states.

        Raises:
            ExecutionError: Raised by the first failing child.
        """
        logger.debug('enter container %r with %d actions', self.display_name, len(self.actions))

        return [action.execute(context) for action in self.actions]


@register_action
class Sequence(TestActionContainer):
    """Plain sequence of actions."""

    action: Literal['sequence'] = 'sequence'


class SuiteSequence(TestActionContainer):
    """Sequence bound to test suites by name.

    Suite sequences are not test case actions: the pytest plugin runs
    them once per session, see the `pytest_courier_suite` hook.
    """

    suites: list[str] = Field(
        default_factory=list,
        title='Suite names',
        description='Names of the suites the sequence applies to; empty means every suite.',
    )

    def applies_to(self, suite: str | None) -> bool:
        """Check whether the sequence applies to a suite."""
        return not self.suites or suite in self.suites


class SequenceBeforeSuite(SuiteSequence):
    """Actions run once before the test cases of a suite."""

    action: Literal['beforeSuite'] = 'beforeSuite'


class SequenceAfterSuite(SuiteSequence):
    """Actions run once after the test cases of a suite."""

    action: Literal['afterSuite'] = 'afterSuite'


def evaluate_condition(expression: str) -> bool:
    """Evaluate a resolved condition.

    Supported forms are `true`/`false` and a single comparison such as
    `3 > 2` or `foo != bar`. Operands are compared as numbers when both
    are numeric and as text otherwise.

    Raises:
        CourierError: If the expression is not a condition.
    """
    text = expression.strip()
    if text.lower() in {'true', 'false'}:
        return text.lower() == 'true'

    match = CONDITION_PATTERN.match(text)
    if not match:
        raise CourierError(f'Invalid condition {expression!r}')

    left, right = match.group('left'), match.group('right')
    compare = OPERATORS[match.group('operator')]

    try:
        return compare(float(left), float(right))

    except ValueError:
        return compare(left, right)


@register_action
class Conditional(TestActionContainer):
    """Run child actions when a condition holds."""

    action: Literal['conditional'] = 'conditional'

    condition: str = Field(
        validation_alias='when',
        title='Condition',
        description=(
            'Condition resolved through the context, then evaluated: '
            '`true`, `false` or a single comparison like `${count} > 2`.'
        ),
    )

    def do_execute(self, context: 'TestContext') -> None:
        """Run the child actions if the condition holds."""
        expression = context.resolve(self.condition)
        if not evaluate_condition(expression):
            logger.info('condition %r of %r does not hold', expression, self.display_name)
            return

        self.run_actions(context)
