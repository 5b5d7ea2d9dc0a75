"""Send and receive actions.

Send:
    build -> outbound dictionaries -> global processors
    -> action processors -> producer.

Receive:
    consumer -> inbound dictionaries -> global processors
    -> action processors -> validation against the control message.
"""

from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BeforeValidator, Field, PositiveFloat

from pytest_courier.builders import MessageBuilder, parse_builder
from pytest_courier.dictionaries import DataDictionary, apply_dictionaries, apply_processors, parse_dictionary
from pytest_courier.endpoints import Endpoint
from pytest_courier.message import Message, MessageDirection, MessageType
from pytest_courier.models import SchemaModel
from pytest_courier.names import Variable  # noqa: TC001
from pytest_courier.processors import (
    JsonPathVariableExtractor,
    MessageHeaderVariableExtractor,
    MessageProcessor,
    VariableExtractor,
    XmlPathVariableExtractor,
)
from pytest_courier.validation import validate_message

from .base import TestAction, register_action

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

logger = getLogger(__name__)


class Extraction(SchemaModel):
    """Declarative variable extraction."""

    headers: dict[str, Variable] = Field(
        default_factory=dict,
        title='Header extraction',
        description='Header names mapped to target variables.',
    )

    json_paths: dict[str, Variable] = Field(
        default_factory=dict,
        alias='json',
        title='JSON extraction',
        description='Dotted JSON paths mapped to target variables.',
    )

    xml_paths: dict[str, Variable] = Field(
        default_factory=dict,
        alias='xml',
        title='XML extraction',
        description='ElementTree paths mapped to target variables.',
    )

    def extractors(self) -> list[VariableExtractor]:
        """Return an extractor per non-empty section."""
        extractors: list[VariableExtractor] = []
        if self.headers:
            extractors.append(MessageHeaderVariableExtractor(headers=self.headers))
        if self.json_paths:
            extractors.append(JsonPathVariableExtractor(expressions=self.json_paths))
        if self.xml_paths:
            extractors.append(XmlPathVariableExtractor(expressions=self.xml_paths))

        return extractors


class MessagingAction(TestAction):
    """Base action exchanging messages with an endpoint."""

    endpoint: Endpoint | str = Field(
        title='Endpoint',
        description='Endpoint object, or its name bound in the reference resolver.',
    )

    builder: Annotated[MessageBuilder | None, BeforeValidator(parse_builder)] = Field(
        default=None,
        validation_alias='message',
        title='Message',
        description='Message builder; a mapping is read as a builder document.',
    )

    message_type: MessageType | None = Field(
        default=None,
        alias='messageType',
        title='Message type',
        description='Payload type of the message.',
    )

    dictionary: Annotated[DataDictionary | str | None, BeforeValidator(parse_dictionary)] = Field(
        default=None,
        title='Data dictionary',
        description='Explicit dictionary object, document, or name bound in the reference resolver.',
    )

    processors: list[MessageProcessor] = Field(
        default_factory=list,
        title='Message processors',
        description='Processors run in declaration order after the dictionaries.',
    )

    extract: Extraction | None = Field(
        default=None,
        title='Variable extraction',
        description='Values read from the message into variables.',
    )

    def get_endpoint(self, context: 'TestContext') -> Endpoint:
        """Return the endpoint, resolving it by name when needed."""
        if isinstance(self.endpoint, str):
            return context.references.resolve(self.endpoint, Endpoint)

        return self.endpoint

    def get_dictionary(self, context: 'TestContext') -> DataDictionary | None:
        """Return the explicit dictionary, resolving it by name when needed."""
        if isinstance(self.dictionary, str):
            return context.references.resolve(self.dictionary, DataDictionary)

        return self.dictionary

    def get_processors(self) -> list[MessageProcessor]:
        """Return the action processors followed by the declared extractors."""
        processors = [*self.processors]
        if self.extract is not None:
            processors.extend(self.extract.extractors())

        return processors

    def is_disabled(self, context: 'TestContext') -> bool:
        """Check the own actor first, then the endpoint actor."""
        if self.actor is not None:
            return self.actor.disabled

        actor = self.get_endpoint(context).actor

        return actor is not None and actor.disabled

    def translate(self, message: Message, direction: MessageDirection,
                  context: 'TestContext') -> Message:
        """Run the explicit and global dictionaries over a message."""
        return apply_dictionaries(message, direction, context, self.get_dictionary(context))

    def process(self, message: Message, context: 'TestContext') -> Message:
        """Run the global processors, then the action processors and extractors."""
        apply_processors(message, context)

        for processor in self.get_processors():
            processor(message, context)

        return message


@register_action
class SendMessageAction(MessagingAction):
    """Build a message and send it through an endpoint producer."""

    action: Literal['send'] = 'send'

    def build_message(self, context: 'TestContext') -> Message:
        """Build the outgoing message; no builder means an empty payload."""
        if self.builder is None:
            return Message('', message_type=self.message_type)

        return self.builder.build(context, self.message_type)

    def do_execute(self, context: 'TestContext') -> None:
        """Build, translate, process and send the message."""
        endpoint = self.get_endpoint(context)

        message = self.translate(self.build_message(context), MessageDirection.OUTBOUND, context)
        self.process(message, context)

        logger.info('send message %s to %r', message.id, endpoint.name)
        endpoint.create_producer().send(message, context)


@register_action
class ReceiveMessageAction(MessagingAction):
    """Receive a message through an endpoint consumer and validate it."""

    action: Literal['receive'] = 'receive'

    timeout: PositiveFloat | None = Field(
        default=None,
        title='Timeout',
        description='Receive timeout in seconds; defaults to the configured one.',
    )

    strict: bool = Field(
        default=True,
        title='Strict validation',
        description='Reject JSON entries and XML children absent from the control message.',
    )

    def do_execute(self, context: 'TestContext') -> None:
        """Receive, process and validate the message.

        Inbound dictionaries translate the control message built by the
        action, so that expected values can use dictionary keys.

        Raises:
            TimeoutError: If the consumer returns no message.
            ValidationFailedError: If the message does not match the control message.
        """
        endpoint = self.get_endpoint(context)
        timeout = self.timeout or context.settings.receive_timeout

        received = endpoint.create_consumer().receive(context, timeout)
        if received is None:
            raise TimeoutError(f'No message received from {endpoint.name!r} within {timeout} seconds')

        logger.info('received message %s from %r', received.id, endpoint.name)

        self.process(received, context)

        if self.builder is not None:
            control = self.translate(
                self.builder.build(context, self.message_type), MessageDirection.INBOUND, context,
            )
            validate_message(received, control, context, self.message_type, strict=self.strict)
