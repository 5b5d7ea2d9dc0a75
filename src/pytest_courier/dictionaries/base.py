"""Base data dictionary."""

from abc import abstractmethod
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import Field
from yaml import YAMLError, safe_load

from pytest_courier.errors import CourierError, DictionaryError
from pytest_courier.message import MessageDirection
from pytest_courier.models import DescribedMixin, SchemaModel
from pytest_courier.resources import Resource  # noqa: TC001
from pytest_courier.values import RuntimeValue, Value  # noqa: TC001

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.message import Message

logger = getLogger(__name__)


class DataDictionary(DescribedMixin, SchemaModel):
    """Translation pass over a message.

    A dictionary is either attached to a single action (explicit), or
    registered in the context processor chain with `global_scope` set,
    in which case it applies to every message of a matching direction.
    """

    name: str | None = Field(
        default=None,
        title='Dictionary name',
        description='Name used in diagnostics.',
    )

    direction: MessageDirection = Field(
        default=MessageDirection.UNBOUND,
        title='Direction',
        description=(
            'Direction of the messages the dictionary applies to. '
            '`unbound` applies to both directions.'
        ),
    )

    global_scope: bool = Field(
        default=False,
        alias='global',
        title='Global scope',
        description='Apply the dictionary to every message when registered in the processor chain.',
    )

    mappings: dict[str, Value] = Field(
        default_factory=dict,
        title='Mappings',
        description='Inline mappings. Values may contain placeholders.',
    )

    mappings_resource: Resource | None = Field(
        default=None,
        alias='mappingsResource',
        title='Mappings resource',
        description='YAML resource holding a mapping; inline mappings override its entries.',
    )

    def applies_to(self, direction: MessageDirection) -> bool:
        """Check whether the dictionary applies to a message direction."""
        return self.direction.matches(direction)

    def load_mappings(self, context: 'TestContext') -> dict[str, RuntimeValue]:
        """Return the resource then inline mappings with resolved values.

        Raises:
            DictionaryError: If the mappings resource is not a YAML mapping.
        """
        mappings: dict[str, RuntimeValue] = {}

        if self.mappings_resource is not None:
            try:
                loaded = safe_load(self.mappings_resource.read(context))

            except YAMLError as base:
                raise DictionaryError(f'Invalid mappings resource {self.mappings_resource.path!r}') from base

            if not isinstance(loaded, Mapping):
                raise DictionaryError(f'Mappings resource {self.mappings_resource.path!r} is not a mapping')

            mappings.update({str(key): value for key, value in loaded.items()})

        mappings.update(self.mappings)

        return {
            key: context.resolve_dynamic(value)
            for key, value in mappings.items()
        }

    def process(self, message: 'Message', context: 'TestContext') -> None:
        """Translate a message in place.

        Raises:
            DictionaryError: If the translation fails.
        """
        label = self.name or type(self).__name__
        logger.debug('apply dictionary %s to message %s', label, message.id)

        try:
            self.translate(message, self.load_mappings(context))

        except DictionaryError:
            raise

        except CourierError as base:
            raise DictionaryError(f'Dictionary {label!r} failed: {base.message}') from base

        except Exception as base:
            raise DictionaryError(f'Dictionary {label!r} failed: {base}') from base

    @abstractmethod
    def translate(self, message: 'Message', mappings: dict[str, RuntimeValue]) -> None:
        """Apply resolved mappings to a message."""

    def __call__(self, message: 'Message', context: 'TestContext') -> None:
        """Translate a message, as a message processor."""
        self.process(message, context)
