"""Message builders.

A message builder turns a declarative message definition and the running
test context into a concrete message. Three kinds are available:

- `static`: a prebuilt message, copied with a fresh identifier;
- `payload`: a payload template given inline, as a resource, or as
  a model rendered by a marshaller;
- `script`: a script rendered by the injected script engine.

All kinds share the header facilities: header values and header data
blocks are resolved through the context. Further kinds are registered
in `BUILDERS`.
"""

from abc import abstractmethod
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Any, Literal, Protocol, Union, runtime_checkable

from pydantic import Field, RootModel, create_model, field_validator, model_validator

from pytest_courier.errors import CourierError, ScriptError
from pytest_courier.message import Message, MessageType
from pytest_courier.models import SchemaModel
from pytest_courier.resources import Resource  # noqa: TC001
from pytest_courier.scripting import ScriptPayloadApi
from pytest_courier.values import RuntimeValue, Value  # noqa: TC001

if TYPE_CHECKING:
    from typing import Self

    from pytest_courier.context import TestContext

logger = getLogger(__name__)


@runtime_checkable
class Marshaller(Protocol):
    """Interface of a payload model marshaller."""

    def marshal(self, model: RuntimeValue) -> str:
        """Render a payload model as text."""
        ...  # pragma: no cover


class MessageBuilder(SchemaModel):
    """Base message builder with the shared header facilities."""

    kind: str

    name: str | None = Field(
        default=None,
        title='Message name',
        description='Optional name assigned to built messages.',
    )

    headers: dict[str, Value] = Field(
        default_factory=dict,
        title='Message headers',
        description=(
            'Header values by name. Values may contain placeholders; '
            'header names are taken literally.'
        ),
    )

    header_data: list[str] = Field(
        default_factory=list,
        alias='headerData',
        title='Header data',
        description='Ordered header data blocks. Blocks may contain placeholders.',
    )

    header_resources: list[Resource] = Field(
        default_factory=list,
        alias='headerResources',
        title='Header data resources',
        description='Resources appended as header data after the inline blocks.',
    )

    def build(self, context: 'TestContext',
              message_type: MessageType | str | None = None) -> Message:
        """Build a message.

        Args:
            context: Running test context.
            message_type: Payload type hint of the built message.

        Returns:
            The built message.
        """
        message = Message(
            self.build_payload(context),
            self.build_headers(context),
            self.build_header_data(context),
            name=self.name,
            message_type=message_type,
        )
        logger.debug('built %s message %s', self.kind, message.id)

        return message

    @abstractmethod
    def build_payload(self, context: 'TestContext') -> RuntimeValue:
        """Return the resolved payload."""

    def build_headers(self, context: 'TestContext') -> dict[str, RuntimeValue]:
        """Return the header values resolved through the context."""
        return {
            name: context.resolve_dynamic(value)
            for name, value in self.headers.items()
        }

    def build_header_data(self, context: 'TestContext') -> list[str]:
        """Return the inline then resource-backed header data, resolved."""
        blocks = [*self.header_data]
        blocks.extend(resource.read(context) for resource in self.header_resources)

        return [context.resolve(block) for block in blocks]


class StaticMessageBuilder(MessageBuilder):
    """Builder returning a copy of a prebuilt message."""

    kind: Literal['static'] = 'static'

    message: Message = Field(
        title='Message',
        description='Prebuilt message; a mapping is accepted as constructor arguments.',
    )

    @field_validator('message', mode='before')
    @classmethod
    def _message_from_mapping(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept a mapping with `payload`, `headers` and `headerData` keys."""
        if isinstance(value, Mapping):
            return Message(
                value.get('payload'),
                value.get('headers'),
                value.get('headerData'),
                name=value.get('name'),
            )

        return value

    def build(self, context: 'TestContext',
              message_type: MessageType | str | None = None) -> Message:
        """Copy the held message with a fresh identifier.

        Builder headers win over the held message headers, builder header
        data is appended after the held message blocks.
        """
        message = self.message.copy(new_id=True)
        if self.name:
            message.name = self.name
        if message_type:
            message.message_type = MessageType(message_type)

        for header, value in self.build_headers(context).items():
            message.set_header(header, value)

        for block in self.build_header_data(context):
            message.add_header_data(block)

        logger.debug('built static message %s from %s', message.id, self.message.id)

        return message

    def build_payload(self, context: 'TestContext') -> RuntimeValue:
        """Return the held payload."""
        return self.message.payload


class PayloadTemplateMessageBuilder(MessageBuilder):
    """Builder resolving a payload template."""

    kind: Literal['payload'] = 'payload'

    payload: str | None = Field(
        default=None,
        title='Payload template',
        description='Inline payload text with placeholders.',
    )

    payload_resource: Resource | None = Field(
        default=None,
        alias='payloadResource',
        title='Payload resource',
        description='Resource holding the payload template.',
    )

    payload_model: RuntimeValue = Field(
        default=None,
        alias='payloadModel',
        title='Payload model',
        description='Object rendered as payload by the marshaller.',
    )

    marshaller: Marshaller | str | None = Field(
        default=None,
        title='Marshaller',
        description='Marshaller object, or its name bound in the reference resolver.',
    )

    @model_validator(mode='after')
    def _check_payload_source(self) -> 'Self':
        """Allow at most one payload source; a model needs a marshaller."""
        sources = [
            source
            for source in (self.payload, self.payload_resource, self.payload_model)
            if source is not None
        ]
        if len(sources) > 1:
            raise ValueError('Only one of payload, payloadResource and payloadModel is allowed')

        if self.payload_model is not None and self.marshaller is None:
            raise ValueError('A payload model requires a marshaller')

        return self

    def build_payload(self, context: 'TestContext') -> str:
        """Return the payload text with all placeholders resolved.

        A builder without payload source produces an empty payload.
        """
        if self.payload_resource is not None:
            text = self.payload_resource.read(context)
        elif self.payload_model is not None:
            text = self.get_marshaller(context).marshal(self.payload_model)
        else:
            text = self.payload or ''

        return context.resolve(text)

    def get_marshaller(self, context: 'TestContext') -> Marshaller:
        """Return the marshaller, resolving it by name when needed."""
        if isinstance(self.marshaller, str):
            return context.references.resolve(self.marshaller, Marshaller)

        return self.marshaller  # type: ignore[return-value]


class ScriptMessageBuilder(MessageBuilder):
    """Builder rendering a script through the injected script engine."""

    kind: Literal['script'] = 'script'

    script: str | None = Field(
        default=None,
        title='Script',
        description='Inline script body. Placeholders are resolved before execution.',
    )

    script_resource: Resource | None = Field(
        default=None,
        alias='scriptResource',
        title='Script resource',
        description='Resource holding the script body.',
    )

    @model_validator(mode='after')
    def _check_script_source(self) -> 'Self':
        """Require exactly one script source."""
        if (self.script is None) == (self.script_resource is None):
            raise ValueError('Exactly one of script and scriptResource is required')

        return self

    def build_payload(self, context: 'TestContext') -> str:
        """Render the resolved script.

        Raises:
            ScriptError: If no script engine is available or the script fails.
        """
        if context.script_engine is None:
            raise ScriptError('No script engine is available for scripted messages')

        if self.script_resource is not None:
            body = self.script_resource.read(context)
        else:
            body = self.script or ''

        script = context.resolve(body)

        try:
            return context.script_engine.render(script, ScriptPayloadApi(context))

        except CourierError:
            raise

        except Exception as base:
            raise ScriptError(f'Script execution failed: {base}') from base


#: Registered builder kinds by discriminator value.
BUILDERS: dict[str, type[MessageBuilder]] = {
    'static': StaticMessageBuilder,
    'payload': PayloadTemplateMessageBuilder,
    'script': ScriptMessageBuilder,
}


def register_builder(builder: type[MessageBuilder]) -> type[MessageBuilder]:
    """Register a builder kind.

    Raises:
        ValueError: If the kind is already registered.
    """
    kind = builder.model_fields['kind'].default
    if kind in BUILDERS:
        raise ValueError(f'Message builder kind {kind!r} is already registered')

    BUILDERS[kind] = builder

    return builder


def builder_model() -> type[RootModel[MessageBuilder]]:
    """Build a root model accepting any registered builder kind."""
    return create_model(  # type: ignore[no-any-return]
        'Builder',
        __base__=RootModel,
        root=Annotated[Union[tuple(BUILDERS.values())], Field(discriminator='kind')],  # noqa: UP007
    )


def parse_builder(value: Any) -> Any:  # noqa: ANN401
    """Validate a builder document, passing builder instances through."""
    if isinstance(value, Mapping):
        return builder_model().model_validate({'kind': 'payload', **value}).root

    return value
