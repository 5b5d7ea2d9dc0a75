"""Base test action, action states and the action registry.

Every action goes through the same execution contract:

1. the action is skipped when its actor is disabled;
2. otherwise its own work runs;
3. any failure is logged and raised once as `ExecutionError` naming
   the failing action, with the original failure as cause.

Actions are immutable models; runtime state lives in the test context.
"""

from abc import abstractmethod
from collections.abc import Mapping
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Any, Union

from pydantic import BeforeValidator, Field, RootModel, create_model

from pytest_courier.endpoints import Actor  # noqa: TC001
from pytest_courier.errors import ExecutionError
from pytest_courier.models import DescribedMixin, SchemaModel

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

logger = getLogger(__name__)


class ActionState(StrEnum):
    """Execution state of an action."""

    PENDING = 'pending'
    SKIPPED = 'skipped'
    DONE = 'done'
    FAILED = 'failed'


class TestAction(DescribedMixin, SchemaModel):
    """Base executable action."""

    __test__ = False

    #: Action discriminator, overridden by concrete actions.
    action: str

    name: str | None = Field(
        default=None,
        title='Action name',
        description='Name of the action used in logs and failure reports.',
    )

    actor: Actor | None = Field(
        default=None,
        title='Actor',
        description='Actor of the action; a disabled actor skips the action.',
    )

    @property
    def display_name(self) -> str:
        """Return the action name, or its discriminator when unnamed."""
        return self.name or self.action

    def is_disabled(self, context: 'TestContext') -> bool:
        """Check whether the action must be skipped."""
        return self.actor is not None and self.actor.disabled

    def execute(self, context: 'TestContext') -> ActionState:
        """Execute the action.

        Args:
            context: Running test context.

        Returns:
            `SKIPPED` when the actor is disabled, `DONE` otherwise.

        Raises:
            ExecutionError: If the action fails.
        """
        name = self.display_name

        try:
            if self.is_disabled(context):
                logger.info('skip action %r: actor is disabled', name)
                return ActionState.SKIPPED

            logger.debug('run action %r', name)
            self.do_execute(context)

        except Exception as base:
            logger.error('action %r failed: %s', name, getattr(base, 'message', base))  # noqa: TRY400
            raise ExecutionError(name, base) from base

        return ActionState.DONE

    @abstractmethod
    def do_execute(self, context: 'TestContext') -> None:
        """Perform the action work."""


#: Registered action models by discriminator value.
ACTIONS: dict[str, type[TestAction]] = {}


def register_action[T: type[TestAction]](model: T) -> T:
    """Register an action model under its discriminator.

    Raises:
        ValueError: If the discriminator is already registered.
    """
    action = model.model_fields['action'].default
    if action in ACTIONS:
        raise ValueError(f'Action {action!r} is already registered')

    ACTIONS[action] = model

    return model


def action_model() -> type[RootModel[TestAction]]:
    """Build a root model accepting any registered action document."""
    return create_model(  # type: ignore[no-any-return]
        'Step',
        __base__=RootModel,
        root=Annotated[Union[tuple(ACTIONS.values())], Field(discriminator='action')],  # noqa: UP007
    )


def parse_action(value: Any) -> Any:  # noqa: ANN401
    """Validate an action document, passing action instances through."""
    if isinstance(value, Mapping):
        return action_model().model_validate(dict(value)).root

    return value


#: Child action field type accepting action instances and documents.
ChildAction = Annotated[TestAction, BeforeValidator(parse_action)]
