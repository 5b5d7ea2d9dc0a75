"""Message processors and variable extractors.

A message processor is any callable receiving a message and the running
test context. Processors may translate the message in place (data
dictionaries) or read values from it into the context variables
(variable extractors).
"""

from abc import abstractmethod
from collections.abc import Callable, Iterator, MutableSequence
from json import JSONDecodeError, loads
from typing import TYPE_CHECKING, Any, overload
from xml.etree.ElementTree import ParseError, fromstring  # noqa: S405

from pydantic import Field

from pytest_courier.errors import ValidationFailedError
from pytest_courier.models import SchemaModel
from pytest_courier.names import Variable  # noqa: TC001
from pytest_courier.paths import MISSING, get_json_value, get_xml_values

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.message import Message

#: The processor receives the message and the test context, and may
#: mutate either of them.
type MessageProcessor = Callable[..., None]


class MessageProcessors(MutableSequence[MessageProcessor]):
    """Ordered, mutable chain of message processors owned by a context."""

    def __init__(self, processors: list[MessageProcessor] | None = None) -> None:
        """Initialize the chain with optional processors."""
        self._processors: list[MessageProcessor] = list(processors or ())

    @overload
    def __getitem__(self, index: int) -> MessageProcessor: ...

    @overload
    def __getitem__(self, index: slice) -> list[MessageProcessor]: ...

    def __getitem__(self, index: int | slice) -> Any:  # noqa: ANN401
        """Return a processor or a slice of processors."""
        return self._processors[index]

    def __setitem__(self, index: Any, value: Any) -> None:  # noqa: ANN401
        """Replace a processor or a slice of processors."""
        self._processors[index] = value

    def __delitem__(self, index: int | slice) -> None:
        """Remove a processor or a slice of processors."""
        del self._processors[index]

    def __len__(self) -> int:
        """Return the number of registered processors."""
        return len(self._processors)

    def __iter__(self) -> Iterator[MessageProcessor]:
        """Iterate over a snapshot of the chain in registration order."""
        return iter(list(self._processors))

    def insert(self, index: int, value: MessageProcessor) -> None:
        """Insert a processor at a position."""
        self._processors.insert(index, value)

    def set_processors(self, processors: list[MessageProcessor]) -> None:
        """Replace the whole chain."""
        self._processors = list(processors)


class VariableExtractor(SchemaModel):
    """Base class of processors writing message values into variables."""

    def __call__(self, message: 'Message', context: 'TestContext') -> None:
        """Extract values from the message into the context."""
        for variable, value in self.extract(message, context).items():
            context.set_variable(variable, value)

    @abstractmethod
    def extract(self, message: 'Message', context: 'TestContext') -> dict[str, Any]:
        """Return extracted values by variable name."""


class MessageHeaderVariableExtractor(VariableExtractor):
    """Extract header values into variables."""

    headers: dict[str, Variable] = Field(
        default_factory=dict,
        title='Header mappings',
        description='Mapping of header names to target variable names.',
    )

    def extract(self, message: 'Message', context: 'TestContext') -> dict[str, Any]:
        """Read the mapped headers.

        Raises:
            ValidationFailedError: If a mapped header is not present.
        """
        values = {}
        for header, variable in self.headers.items():
            name = context.resolve(header)
            value = message.get_header(name, MISSING)
            if value is MISSING:
                raise ValidationFailedError(f'Failed to extract header {name!r}: header is not present')
            values[variable] = value

        return values


class JsonPathVariableExtractor(VariableExtractor):
    """Extract values from a JSON payload into variables."""

    expressions: dict[str, Variable] = Field(
        default_factory=dict,
        title='Path mappings',
        description='Mapping of dotted JSON paths to target variable names.',
    )

    def extract(self, message: 'Message', context: 'TestContext') -> dict[str, Any]:
        """Read the mapped JSON paths.

        Raises:
            ValidationFailedError: If the payload is not JSON or a path is missing.
        """
        try:
            document = loads(message.get_payload_text())

        except JSONDecodeError as base:
            raise ValidationFailedError('Failed to extract JSON values: payload is not valid JSON') from base

        values = {}
        for path, variable in self.expressions.items():
            value = get_json_value(document, context.resolve(path))
            if value is MISSING:
                raise ValidationFailedError(f'Failed to extract JSON path {path!r}: no such element')
            values[variable] = value

        return values


class XmlPathVariableExtractor(VariableExtractor):
    """Extract text or attribute values from an XML payload into variables."""

    expressions: dict[str, Variable] = Field(
        default_factory=dict,
        title='Path mappings',
        description='Mapping of ElementTree paths to target variable names.',
    )

    def extract(self, message: 'Message', context: 'TestContext') -> dict[str, Any]:
        """Read the first value of each mapped path.

        Raises:
            ValidationFailedError: If the payload is not XML or a path is missing.
        """
        try:
            root = fromstring(message.get_payload_text())  # noqa: S314

        except ParseError as base:
            raise ValidationFailedError('Failed to extract XML values: payload is not valid XML') from base

        values = {}
        for path, variable in self.expressions.items():
            found = get_xml_values(root, context.resolve(path))
            if not found:
                raise ValidationFailedError(f'Failed to extract XML path {path!r}: no such element')
            values[variable] = found[0]

        return values
