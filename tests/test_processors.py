"""Tests for message processors, variable extractors and payload paths."""

from typing import TYPE_CHECKING
from xml.etree.ElementTree import fromstring  # noqa: S405

import pytest

from pytest_courier.errors import ValidationFailedError
from pytest_courier.message import Message
from pytest_courier.paths import MISSING, get_json_value, get_xml_values, set_xml_values, update_json_value
from pytest_courier.processors import (
    JsonPathVariableExtractor,
    MessageHeaderVariableExtractor,
    MessageProcessors,
    XmlPathVariableExtractor,
)

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

ORDER_JSON = '{"order": {"id": 7, "items": [{"sku": "A-1"}, {"sku": "B-2"}]}}'
ORDER_XML = '<Order id="5"><Item sku="A-1">apple</Item><Item sku="B-2">pear</Item></Order>'


def test_processor_chain() -> None:
    """The chain behaves like a mutable sequence."""
    def first(message: Message, context: 'TestContext') -> None: ...
    def second(message: Message, context: 'TestContext') -> None: ...

    chain = MessageProcessors([second])
    chain.insert(0, first)

    assert list(chain) == [first, second]

    del chain[0]
    chain.set_processors([first, first])

    assert len(chain) == 2
    assert chain[1] is first


def test_processor_chain_iterates_snapshot() -> None:
    """Processors added while iterating run on the next pass only."""
    chain = MessageProcessors()
    chain.append(lambda message, context: chain.append(lambda m, c: None))

    visited = [processor for processor in chain]

    assert len(visited) == 1


@pytest.mark.parametrize(('path', 'expected'), (
    pytest.param('order.id', 7, id='dotted'),
    pytest.param('$.order.items.1.sku', 'B-2', id='root-marker'),
    pytest.param('order.items.5.sku', MISSING, id='index-out-of-range'),
    pytest.param('order.missing', MISSING, id='missing-key'),
))
def test_get_json_value(path: str, expected: object) -> None:
    """Read JSON values by dotted path."""
    from json import loads  # noqa: PLC0415

    assert get_json_value(loads(ORDER_JSON), path) == expected


def test_update_json_value() -> None:
    """Update existing JSON values in place."""
    document = {'order': {'items': [{'sku': 'A-1'}]}}

    assert update_json_value(document, 'order.items.0.sku', str.lower)
    assert not update_json_value(document, 'order.total', lambda value: 0)
    assert document == {'order': {'items': [{'sku': 'a-1'}]}}


@pytest.mark.parametrize(('path', 'expected'), (
    pytest.param('Item', ['apple', 'pear'], id='relative'),
    pytest.param('/Order/Item', ['apple', 'pear'], id='absolute'),
    pytest.param('//Item/@sku', ['A-1', 'B-2'], id='descendant-attribute'),
    pytest.param('/Order/@id', ['5'], id='root-attribute'),
    pytest.param('/Other/Item', [], id='other-root'),
))
def test_get_xml_values(path: str, expected: list[str]) -> None:
    """Read XML texts and attributes by ElementTree path."""
    assert get_xml_values(fromstring(ORDER_XML), path) == expected  # noqa: S314


def test_set_xml_values() -> None:
    """Update every matching XML node in place."""
    root = fromstring(ORDER_XML)  # noqa: S314

    assert set_xml_values(root, 'Item/@sku', str.lower) == 2
    assert set_xml_values(root, 'Missing', str.lower) == 0
    assert get_xml_values(root, 'Item/@sku') == ['a-1', 'b-2']


def test_header_extractor(context: 'TestContext') -> None:
    """Copy header values into variables."""
    extractor = MessageHeaderVariableExtractor(headers={'operation': 'op'})
    extractor(Message('', {'operation': 'greet'}), context)

    assert context.get_variable('op') == 'greet'


def test_header_extractor_missing_header(context: 'TestContext') -> None:
    """A missing header fails the extraction."""
    extractor = MessageHeaderVariableExtractor(headers={'operation': 'op'})

    with pytest.raises(ValidationFailedError, match=r'header is not present$'):
        extractor(Message(''), context)


def test_json_extractor(context: 'TestContext') -> None:
    """Copy JSON values into variables."""
    extractor = JsonPathVariableExtractor(expressions={
        'order.id': 'orderId',
        'order.items.0.sku': 'firstSku',
    })
    extractor(Message(ORDER_JSON), context)

    assert context.get_variable('orderId') == 7
    assert context.get_variable('firstSku') == 'A-1'


@pytest.mark.parametrize(('payload', 'error'), (
    pytest.param('not json', r'not valid JSON$', id='invalid-payload'),
    pytest.param('{"order": {}}', r'no such element$', id='missing-path'),
))
def test_json_extractor_errors(context: 'TestContext', payload: str, error: str) -> None:
    """Invalid payloads and missing paths fail the extraction."""
    extractor = JsonPathVariableExtractor(expressions={'order.id': 'orderId'})

    with pytest.raises(ValidationFailedError, match=error):
        extractor(Message(payload), context)


def test_xml_extractor(context: 'TestContext') -> None:
    """Copy the first matching XML value into variables."""
    extractor = XmlPathVariableExtractor(expressions={
        '/Order/@id': 'orderId',
        'Item': 'firstItem',
    })
    extractor(Message(ORDER_XML), context)

    assert context.get_variable('orderId') == '5'
    assert context.get_variable('firstItem') == 'apple'


@pytest.mark.parametrize(('payload', 'error'), (
    pytest.param('<Order>', r'not valid XML$', id='invalid-payload'),
    pytest.param('<Order/>', r'no such element$', id='missing-path'),
))
def test_xml_extractor_errors(context: 'TestContext', payload: str, error: str) -> None:
    """Invalid payloads and missing paths fail the extraction."""
    extractor = XmlPathVariableExtractor(expressions={'Item': 'item'})

    with pytest.raises(ValidationFailedError, match=error):
        extractor(Message(payload), context)
