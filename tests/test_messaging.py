"""Tests for send and receive actions."""

from typing import TYPE_CHECKING

import pytest

from pytest_courier.actions import ActionState, ReceiveMessageAction, SendMessageAction
from pytest_courier.core import TestContextFactory
from pytest_courier.dictionaries import SimpleMappingDictionary
from pytest_courier.endpoints import Actor, Endpoint
from pytest_courier.errors import (
    DictionaryError,
    EncodingError,
    ExecutionError,
    ReferenceNotFoundError,
    UnknownVariableError,
    ValidationFailedError,
)
from pytest_courier.message import Message, MessageDirection
from pytest_courier.settings import CourierSettings
from tests.examples.endpoints import FakeEndpoint

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture

    from pytest_courier.context import TestContext


def test_fake_endpoint_is_an_endpoint() -> None:
    """The example endpoint satisfies the endpoint interface."""
    assert isinstance(FakeEndpoint(), Endpoint)


def test_messaging_actions_accept_processors(mocker: 'MockerFixture') -> None:
    """Messaging actions are complete models accepting plain callables."""
    context = TestContextFactory(CourierSettings(), load_plugins=False).create()
    processor = mocker.Mock()
    action = SendMessageAction(endpoint='orders', message={'payload': 'Hi'}, processors=[processor])

    assert action.processors == [processor]
    assert ReceiveMessageAction(endpoint='orders', processors=[processor]).processors == [processor]
    assert 'courier:concat' in context.functions


def test_send_resource_encoding_error(fs: 'FakeFilesystem', context: 'TestContext',
                                      endpoint: FakeEndpoint) -> None:
    """An unknown resource encoding fails the send once and sends nothing."""
    fs.create_file('/data/request.txt', contents='Hello')
    action = SendMessageAction(
        endpoint='orders',
        message={'payloadResource': {'path': '/data/request.txt', 'encoding': 'no-such-codec'}},
    )

    with pytest.raises(ExecutionError) as error:
        action.execute(context)

    assert isinstance(error.value.cause, EncodingError)
    assert isinstance(error.value.cause.__cause__, LookupError)
    assert endpoint.sent == []


def test_send_payload_template(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Send a message built from a payload template."""
    context.set_variable('text', 'Hello')
    action = SendMessageAction(endpoint='orders', message={'payload': '<Req><M>${text}</M></Req>'})

    assert action.execute(context) is ActionState.DONE
    assert [message.payload for message in endpoint.sent] == ['<Req><M>Hello</M></Req>']


def test_send_unknown_header_variable(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """A build failure aborts the send and names the action."""
    action = SendMessageAction(
        name='greet',
        endpoint=endpoint,
        message={'payload': 'Hi', 'headers': {'operation': '${op}'}},
    )

    with pytest.raises(ExecutionError, match=r"^Action 'greet' failed") as error:
        action.execute(context)

    action_name, cause = error.value.origin

    assert action_name == 'greet'
    assert isinstance(cause, UnknownVariableError)
    assert cause.name == 'op'
    assert endpoint.sent == []


def test_send_with_explicit_dictionary(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """The explicit dictionary translates the outgoing message."""
    action = SendMessageAction(
        endpoint='orders',
        message={'payload': 'Greeting: ?'},
        dictionary={'mappings': {'?': 'Hello Citrus!'}},
    )
    action.execute(context)

    assert endpoint.sent[0].payload == 'Greeting: Hello Citrus!'


def test_send_dictionary_by_name(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Dictionaries may be referenced by name."""
    context.references.bind('greetings', SimpleMappingDictionary(mappings={'?': '!'}))

    SendMessageAction(endpoint='orders', message={'payload': 'Hi?'}, dictionary='greetings').execute(context)

    assert endpoint.sent[0].payload == 'Hi!'


def test_send_skips_inbound_dictionaries(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Inbound dictionaries are never applied to outgoing messages."""
    context.message_processors.append(SimpleMappingDictionary(
        global_scope=True,
        direction=MessageDirection.INBOUND,
        mappings={'Hi': 'Bye'},
    ))

    SendMessageAction(
        endpoint='orders',
        message={'payload': 'Hi'},
        dictionary={'direction': 'inbound', 'mappings': {'Hi': 'Bye'}},
    ).execute(context)

    assert endpoint.sent[0].payload == 'Hi'


def test_send_processing_order(context: 'TestContext', endpoint: FakeEndpoint,
                               mocker: 'MockerFixture') -> None:
    """Dictionaries run before global processors, then action processors."""
    calls = []
    global_processor = mocker.Mock(side_effect=lambda message, ctx: calls.append(('global', message.payload)))
    action_processor = mocker.Mock(side_effect=lambda message, ctx: calls.append(('action', message.payload)))

    context.message_processors.append(global_processor)
    context.message_processors.append(SimpleMappingDictionary(global_scope=True, mappings={'B': 'C'}))

    SendMessageAction(
        endpoint='orders',
        message={'payload': 'A'},
        dictionary={'mappings': {'A': 'B'}},
        processors=[action_processor],
    ).execute(context)

    assert calls == [('global', 'C'), ('action', 'C')]
    assert endpoint.sent[0].payload == 'C'


def test_send_without_message(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """A send action without message definition sends an empty payload."""
    SendMessageAction(endpoint='orders', messageType='plaintext').execute(context)

    assert endpoint.sent[0].payload == ''


@pytest.mark.parametrize(('action_actor', 'endpoint_actor'), (
    pytest.param(Actor(name='sut', disabled=True), None, id='action-actor'),
    pytest.param(None, Actor(name='sut', disabled=True), id='endpoint-actor'),
))
def test_disabled_actor_skips_send(context: 'TestContext', endpoint: FakeEndpoint,
                                   action_actor: Actor | None, endpoint_actor: Actor | None) -> None:
    """A disabled actor skips the action without calling the producer."""
    endpoint.actor = endpoint_actor
    action = SendMessageAction(endpoint='orders', actor=action_actor, message={'payload': '${unbound}'})

    assert action.execute(context) is ActionState.SKIPPED
    assert endpoint.sent == []


def test_enabled_action_actor_wins(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """The action actor takes precedence over the endpoint actor."""
    endpoint.actor = Actor(name='sut', disabled=True)
    action = SendMessageAction(endpoint='orders', actor=Actor(name='client'), message={'payload': 'Hi'})

    assert action.execute(context) is ActionState.DONE
    assert len(endpoint.sent) == 1


def test_unknown_endpoint(context: 'TestContext') -> None:
    """Unresolvable endpoint names fail the action."""
    with pytest.raises(ExecutionError) as error:
        SendMessageAction(endpoint='missing').execute(context)

    assert isinstance(error.value.cause, ReferenceNotFoundError)


def test_receive_and_validate(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Receive a message and validate it against the control message."""
    context.set_variable('text', 'Hello')
    endpoint.queue.append(Message('<Res><M>Hello</M></Res>', {'operation': 'greet'}))

    action = ReceiveMessageAction(
        endpoint='orders',
        timeout=1.5,
        message={'payload': '<Res><M>${text}</M></Res>', 'headers': {'operation': '@ignore@'}},
    )

    assert action.execute(context) is ActionState.DONE
    assert endpoint.timeouts == [1.5]


def test_receive_validation_failure(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Validation failures are wrapped once with the original cause."""
    endpoint.queue.append(Message('<Res><M>Bye</M></Res>'))

    with pytest.raises(ExecutionError) as error:
        ReceiveMessageAction(endpoint='orders', message={'payload': '<Res><M>Hello</M></Res>'}).execute(context)

    assert isinstance(error.value.cause, ValidationFailedError)


def test_receive_timeout(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """No message within the timeout fails the action."""
    with pytest.raises(ExecutionError) as error:
        ReceiveMessageAction(endpoint='orders').execute(context)

    assert isinstance(error.value.cause, TimeoutError)
    assert endpoint.timeouts == [context.settings.receive_timeout]


def test_receive_translates_control_message(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Inbound dictionaries translate the control message before validation."""
    endpoint.queue.append(Message('<Res><M>Hello Citrus!</M></Res>'))

    ReceiveMessageAction(
        endpoint='orders',
        message={'payload': '<Res><M>?</M></Res>'},
        dictionary={'direction': 'inbound', 'mappings': {'?': 'Hello Citrus!'}},
    ).execute(context)


def test_receive_keeps_received_message(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Inbound dictionaries never rewrite the received message."""
    context.message_processors.append(SimpleMappingDictionary(
        global_scope=True,
        direction=MessageDirection.INBOUND,
        mappings={'Bonjour': 'Hello'},
    ))
    received = Message('Bonjour')
    endpoint.queue.append(received)

    ReceiveMessageAction(endpoint='orders', message={'payload': 'Bonjour'}).execute(context)

    assert received.payload == 'Bonjour'


def test_receive_dictionary_failure(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Dictionary failures abort the receive action."""
    endpoint.queue.append(Message('not json'))

    with pytest.raises(ExecutionError) as error:
        ReceiveMessageAction(
            endpoint='orders',
            message={'payload': 'not json'},
            dictionary={'kind': 'json', 'mappings': {'a': 1}},
        ).execute(context)

    assert isinstance(error.value.cause, DictionaryError)


def test_receive_extracts_variables(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Extracted variables are available to the control message."""
    endpoint.queue.append(Message('{"order": {"id": 7, "total": 10}}', {'operation': 'created'}))

    ReceiveMessageAction(
        endpoint='orders',
        extract={'headers': {'operation': 'op'}, 'json': {'order.id': 'orderId'}},
        message={'payload': '{"order": {"id": ${orderId}, "total": "@greaterThan(5)@"}}'},
    ).execute(context)

    assert context.get_variable('op') == 'created'
    assert context.get_variable('orderId') == 7


def test_receive_non_strict(context: 'TestContext', endpoint: FakeEndpoint) -> None:
    """Non-strict receive actions accept additional JSON entries."""
    endpoint.queue.append(Message('{"a": 1, "b": 2}'))

    ReceiveMessageAction(endpoint='orders', strict=False, message={'payload': '{"a": 1}'}).execute(context)
