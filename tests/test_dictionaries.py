"""Tests for data dictionaries and their application order."""

from json import loads
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from pytest_courier.dictionaries import (
    JsonPathMappingDictionary,
    SimpleMappingDictionary,
    XmlPathMappingDictionary,
    apply_dictionaries,
    apply_processors,
    global_dictionaries,
    parse_dictionary,
)
from pytest_courier.errors import DictionaryError
from pytest_courier.message import Message, MessageDirection
from pytest_courier.resources import Resource

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture

    from pytest_courier.context import TestContext


def test_text_dictionary(context: 'TestContext') -> None:
    """Replace literal fragments of the payload."""
    message = Message('Greeting: ?')
    SimpleMappingDictionary(mappings={'?': 'Hello Citrus!'}).process(message, context)

    assert message.payload == 'Greeting: Hello Citrus!'


def test_text_dictionary_regex(context: 'TestContext') -> None:
    """Keys are regular expressions when enabled; replacements stay literal."""
    message = Message('id=1, id=22')
    SimpleMappingDictionary(regex=True, mappings={r'id=\d+': r'id=\1'}).process(message, context)

    assert message.payload == r'id=\1, id=\1'


def test_text_dictionary_resolves_values(context: 'TestContext') -> None:
    """Mapping values may contain placeholders."""
    context.set_variable('name', 'Citrus')
    message = Message('Hello NAME')
    SimpleMappingDictionary(mappings={'NAME': '${name}'}).process(message, context)

    assert message.payload == 'Hello Citrus'


def test_text_dictionary_skips_empty_payload(context: 'TestContext') -> None:
    """Messages without payload are left untouched."""
    message = Message(None)
    SimpleMappingDictionary(mappings={'a': 'b'}).process(message, context)

    assert message.payload is None


def test_json_dictionary(context: 'TestContext') -> None:
    """Replace JSON values by path; missing paths are skipped."""
    message = Message('{"order": {"id": 1, "items": [{"sku": "a"}]}}')
    JsonPathMappingDictionary(mappings={
        'order.id': 42,
        'order.items.0.sku': 'B-${sku}',
        'order.missing': 'x',
    }).process(message, _with_variable(context, 'sku', 7))

    assert loads(message.payload) == {'order': {'id': 42, 'items': [{'sku': 'B-7'}]}}


def test_xml_dictionary(context: 'TestContext') -> None:
    """Replace XML texts and attributes by path."""
    message = Message('<Order id="1"><Item>a</Item><Item>b</Item></Order>')
    XmlPathMappingDictionary(mappings={
        '/Order/@id': 42,
        'Item': 'x',
        'Missing': 'y',
    }).process(message, context)

    assert message.payload == '<Order id="42"><Item>x</Item><Item>x</Item></Order>'


def test_xml_dictionary_keeps_prolog_and_prefixes(context: 'TestContext') -> None:
    """Only mapped values change; declaration and prefixes are kept."""
    message = Message('<?xml version="1.0" encoding="UTF-8"?><o:Req xmlns:o="urn:o"><o:M>?</o:M></o:Req>')
    XmlPathMappingDictionary(mappings={'/o:Req/o:M': 'Hi'}).process(message, context)

    assert message.payload == '<?xml version="1.0" encoding="UTF-8"?><o:Req xmlns:o="urn:o"><o:M>Hi</o:M></o:Req>'


def test_xml_dictionary_default_namespace(context: 'TestContext') -> None:
    """Unprefixed paths address elements of the default namespace."""
    message = Message('<Req xmlns="urn:r"><M>?</M></Req>')
    XmlPathMappingDictionary(mappings={'M': 'Hi'}).process(message, context)

    assert message.payload == '<Req xmlns="urn:r"><M>Hi</M></Req>'


def test_dictionary_failure(context: 'TestContext') -> None:
    """Translation failures name the dictionary and keep the cause."""
    message = Message('not json')

    with pytest.raises(DictionaryError, match=r"^Dictionary 'orders' failed") as error:
        JsonPathMappingDictionary(name='orders', mappings={'a': 1}).process(message, context)

    assert error.value.__cause__ is not None


def test_dictionary_unknown_variable(context: 'TestContext') -> None:
    """Resolution failures of mapping values are dictionary failures."""
    with pytest.raises(DictionaryError, match=r"Unknown variable 'missing'$"):
        SimpleMappingDictionary(mappings={'a': '${missing}'}).process(Message('a'), context)


def test_mappings_resource(fs: 'FakeFilesystem', context: 'TestContext') -> None:
    """Resource mappings are loaded first, inline mappings override them."""
    fs.create_file('/data/mappings.yaml', contents='A: from-file\nB: from-file\n')

    message = Message('A B')
    SimpleMappingDictionary(
        mappings_resource=Resource(path='/data/mappings.yaml'),
        mappings={'B': 'inline'},
    ).process(message, context)

    assert message.payload == 'from-file inline'


@pytest.mark.parametrize('contents', (
    pytest.param('- a\n- b\n', id='not-a-mapping'),
    pytest.param('a: [b\n', id='invalid-yaml'),
))
def test_invalid_mappings_resource(fs: 'FakeFilesystem', context: 'TestContext', contents: str) -> None:
    """Mappings resources must hold a YAML mapping."""
    fs.create_file('/data/mappings.yaml', contents=contents)
    dictionary = SimpleMappingDictionary(mappings_resource=Resource(path='/data/mappings.yaml'))

    with pytest.raises(DictionaryError, match=r"'/data/mappings.yaml'"):
        dictionary.process(Message('a'), context)


def test_explicit_dictionary_runs_before_globals(context: 'TestContext') -> None:
    """The explicit dictionary translates first, then the global ones."""
    context.message_processors.append(SimpleMappingDictionary(global_scope=True, mappings={'B': 'C'}))
    explicit = SimpleMappingDictionary(mappings={'A': 'B'})

    message = apply_dictionaries(Message('A'), MessageDirection.OUTBOUND, context, explicit)

    assert message.payload == 'C'


def test_inbound_dictionary_skips_outbound_messages(context: 'TestContext') -> None:
    """Direction-bound dictionaries never touch messages of the other direction."""
    context.message_processors.append(SimpleMappingDictionary(
        global_scope=True,
        direction=MessageDirection.INBOUND,
        mappings={'A': 'inbound'},
    ))
    explicit = SimpleMappingDictionary(direction=MessageDirection.INBOUND, mappings={'A': 'explicit'})

    outbound = apply_dictionaries(Message('A'), MessageDirection.OUTBOUND, context, explicit)
    inbound = apply_dictionaries(Message('A'), MessageDirection.INBOUND, context)

    assert outbound.payload == 'A'
    assert inbound.payload == 'inbound'


def test_non_global_dictionary_in_chain_is_ignored(context: 'TestContext') -> None:
    """Only dictionaries with global scope apply from the processor chain."""
    context.message_processors.append(SimpleMappingDictionary(mappings={'A': 'B'}))

    assert global_dictionaries(context, MessageDirection.OUTBOUND) == []
    assert apply_dictionaries(Message('A'), MessageDirection.OUTBOUND, context).payload == 'A'


def test_global_dictionaries_keep_registration_order(context: 'TestContext') -> None:
    """Global dictionaries run in the order they were registered."""
    context.message_processors.append(SimpleMappingDictionary(global_scope=True, mappings={'A': 'B'}))
    context.message_processors.append(SimpleMappingDictionary(global_scope=True, mappings={'B': 'C'}))

    assert apply_dictionaries(Message('A'), MessageDirection.INBOUND, context).payload == 'C'


def test_apply_processors_skips_dictionaries(context: 'TestContext', mocker: 'MockerFixture') -> None:
    """Plain processors of the chain run; dictionaries are left to `apply_dictionaries`."""
    processor = mocker.Mock()
    context.message_processors.append(SimpleMappingDictionary(global_scope=True, mappings={'A': 'B'}))
    context.message_processors.append(processor)

    message = apply_processors(Message('A'), context)

    processor.assert_called_once_with(message, context)
    assert message.payload == 'A'


def test_parse_dictionary() -> None:
    """Dictionary documents default to text dictionaries."""
    text = parse_dictionary({'mappings': {'a': 'b'}, 'global': True})
    xml = parse_dictionary({'kind': 'xml', 'direction': 'inbound'})

    assert isinstance(text, SimpleMappingDictionary)
    assert text.global_scope
    assert isinstance(xml, XmlPathMappingDictionary)
    assert xml.direction is MessageDirection.INBOUND
    assert parse_dictionary('orders') == 'orders'

    with pytest.raises(ValidationError):
        parse_dictionary({'kind': 'yaml'})


def _with_variable(context: 'TestContext', name: str, value: object) -> 'TestContext':
    """Bind a variable and return the context."""
    context.set_variable(name, value)

    return context
