"""Simple actions working on the test context only."""

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from pydantic import Field

from pytest_courier.names import Variable  # noqa: TC001
from pytest_courier.values import Value  # noqa: TC001

from .base import TestAction, register_action

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

logger = getLogger(__name__)


@register_action
class EchoAction(TestAction):
    """Log a resolved message."""

    action: Literal['echo'] = 'echo'

    message: str = Field(
        title='Message',
        description='Text logged at info level; placeholders are resolved.',
    )

    def do_execute(self, context: 'TestContext') -> None:
        """Log the resolved message."""
        logger.info('%s', context.resolve(self.message))


@register_action
class CreateVariablesAction(TestAction):
    """Bind variables in declaration order."""

    action: Literal['createVariables'] = 'createVariables'

    variables: dict[Variable, Value] = Field(
        default_factory=dict,
        title='Variables',
        description=(
            'Variable values by name. Values are resolved in order, '
            'so a value may reference a variable declared before it.'
        ),
    )

    def do_execute(self, context: 'TestContext') -> None:
        """Resolve and bind every variable."""
        for name, value in self.variables.items():
            context.set_variable(name, context.resolve_dynamic(value))
