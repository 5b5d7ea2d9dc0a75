"""Validation of received messages against control messages.

Expected values may be literal or validation matcher expressions such as
`@contains('Hello')@`; `@ignore@` accepts any value. Payloads are
compared according to their message type:

- plain text with optional whitespace normalization;
- XML element by element (tag, attributes, text, children);
- JSON structurally, key by key and item by item.
"""

from json import JSONDecodeError, loads
from logging import getLogger
from re import sub
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element, ParseError, fromstring  # noqa: S405

from pytest_courier.errors import ValidationFailedError
from pytest_courier.matchers import parse_matcher_expression
from pytest_courier.message import MessageType
from pytest_courier.values import MAPPINGS, SEQUENCES, stringify

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.message import Message
    from pytest_courier.values import RuntimeValue

logger = getLogger(__name__)


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs and strip the ends."""
    return sub(r'\s+', ' ', value).strip()


def detect_message_type(payload: str) -> MessageType:
    """Guess the payload type from its first character."""
    text = payload.lstrip()
    if text.startswith('<'):
        return MessageType.XML

    if text.startswith(('{', '[')):
        return MessageType.JSON

    return MessageType.PLAINTEXT


def validate_value(field: str, actual: 'RuntimeValue', expected: 'RuntimeValue',
                   context: 'TestContext', *, normalize: bool = False) -> None:
    """Validate a single value.

    Args:
        field: Name of the validated field, used in failure messages.
        actual: Received value.
        expected: Expected value or matcher expression.
        context: Running test context.
        normalize: Compare text with normalized whitespace.

    Raises:
        ValidationFailedError: If the value does not match.
        NoSuchMatcherError: If the expression references an unknown matcher.
    """
    if expression := parse_matcher_expression(expected):
        context.matchers.validate(field, stringify(actual), expression, context)
        return

    actual_text, expected_text = stringify(actual), stringify(expected)
    if normalize:
        actual_text, expected_text = normalize_whitespace(actual_text), normalize_whitespace(expected_text)

    if actual_text != expected_text:
        raise ValidationFailedError(
            f'Values not equal for {field!r}, expected {expected_text!r} but was {actual_text!r}',
        )


def validate_headers(received: 'Message', control: 'Message', context: 'TestContext') -> None:
    """Validate every non-reserved control header.

    Raises:
        ValidationFailedError: If a header is missing or does not match.
    """
    headers = received.headers
    for name, expected in control.custom_headers().items():
        if name not in headers:
            raise ValidationFailedError(f'Missing header {name!r} in received message')
        validate_value(f'header {name}', headers[name], expected, context)


def validate_header_data(received: 'Message', control: 'Message', context: 'TestContext') -> None:
    """Validate control header data blocks in order.

    Raises:
        ValidationFailedError: If a block is missing or does not match.
    """
    for index, expected in enumerate(control.header_data):
        if index >= len(received.header_data):
            raise ValidationFailedError(f'Missing header data block at position {index + 1}')
        validate_value(f'header data {index + 1}', received.header_data[index], expected,
                       context, normalize=True)


def validate_payload(received: 'Message', control: 'Message', context: 'TestContext',
                     message_type: MessageType | None = None, *,
                     strict: bool = True) -> None:
    """Validate the received payload against the control payload.

    An empty control payload skips payload validation.

    Args:
        received: Received message.
        control: Control message.
        context: Running test context.
        message_type: Payload type; detected from the control payload when omitted.
        strict: Reject JSON keys and XML children absent from the control payload.

    Raises:
        ValidationFailedError: If the payloads do not match.
    """
    expected = control.get_payload_text()
    if not expected.strip():
        logger.debug('skip payload validation: empty control payload')
        return

    actual = received.get_payload_text()
    message_type = message_type or control.message_type or detect_message_type(expected)

    if message_type is MessageType.JSON:
        _validate_json_payload(actual, expected, context, strict=strict)
    elif message_type is MessageType.XML:
        _validate_xml_payload(actual, expected, context, strict=strict)
    else:
        validate_value('payload', actual, expected, context, normalize=True)


def validate_message(received: 'Message', control: 'Message', context: 'TestContext',
                     message_type: MessageType | None = None, *,
                     strict: bool = True) -> None:
    """Validate headers, header data and payload of a received message.

    Raises:
        ValidationFailedError: If the message does not match.
    """
    validate_headers(received, control, context)
    validate_header_data(received, control, context)
    validate_payload(received, control, context, message_type, strict=strict)

    logger.debug('message %s is valid', received.id)


def _validate_json_payload(actual: str, expected: str, context: 'TestContext', *,
                           strict: bool) -> None:
    """Parse and compare JSON payloads."""
    try:
        actual_document = loads(actual)

    except JSONDecodeError as base:
        raise ValidationFailedError('Received payload is not valid JSON') from base

    try:
        expected_document = loads(expected)

    except JSONDecodeError as base:
        raise ValidationFailedError('Control payload is not valid JSON') from base

    _match_json('$', actual_document, expected_document, context, strict=strict)


def _match_json(path: str, actual: 'RuntimeValue', expected: 'RuntimeValue',
                context: 'TestContext', *, strict: bool) -> None:
    """Recursively compare JSON values."""
    if parse_matcher_expression(expected):
        validate_value(path, actual, expected, context)
        return

    if isinstance(expected, MAPPINGS):
        if not isinstance(actual, MAPPINGS):
            raise ValidationFailedError(f'Expected object at {path!r}')

        for key, value in expected.items():
            if key not in actual:
                raise ValidationFailedError(f'Missing JSON entry {path}.{key}')
            _match_json(f'{path}.{key}', actual[key], value, context, strict=strict)

        if strict and (extra := set(actual) - set(expected)):
            raise ValidationFailedError(f'Unexpected JSON entries at {path!r}: {sorted(extra)}')
        return

    if isinstance(expected, SEQUENCES):
        if not isinstance(actual, SEQUENCES) or len(actual) != len(expected):
            raise ValidationFailedError(f'Expected array of {len(expected)} items at {path!r}')

        for index, (actual_item, expected_item) in enumerate(zip(actual, expected, strict=True)):
            _match_json(f'{path}.{index}', actual_item, expected_item, context, strict=strict)
        return

    if isinstance(actual, bool) is not isinstance(expected, bool) or actual != expected:
        raise ValidationFailedError(
            f'Values not equal for {path!r}, expected {expected!r} but was {actual!r}',
        )


def _validate_xml_payload(actual: str, expected: str, context: 'TestContext', *,
                          strict: bool) -> None:
    """Parse and compare XML payloads."""
    try:
        actual_root = fromstring(actual)  # noqa: S314

    except ParseError as base:
        raise ValidationFailedError('Received payload is not valid XML') from base

    try:
        expected_root = fromstring(expected)  # noqa: S314

    except ParseError as base:
        raise ValidationFailedError('Control payload is not valid XML') from base

    _match_xml(f'/{expected_root.tag}', actual_root, expected_root, context, strict=strict)


def _match_xml(path: str, actual: Element, expected: Element,
               context: 'TestContext', *, strict: bool) -> None:
    """Recursively compare XML elements."""
    if actual.tag != expected.tag:
        raise ValidationFailedError(f'Element names not equal at {path!r}, expected {expected.tag!r} but was {actual.tag!r}')

    for name, value in expected.attrib.items():
        if name not in actual.attrib:
            raise ValidationFailedError(f'Missing attribute {name!r} at {path!r}')
        validate_value(f'{path}/@{name}', actual.attrib[name], value, context)

    if strict and (extra := set(actual.attrib) - set(expected.attrib)):
        raise ValidationFailedError(f'Unexpected attributes at {path!r}: {sorted(extra)}')

    if normalize_whitespace(expected.text or '') == '@ignore@':
        return

    validate_value(path, actual.text or '', expected.text or '', context, normalize=True)

    expected_children, actual_children = list(expected), list(actual)
    if strict and len(actual_children) != len(expected_children):
        raise ValidationFailedError(
            f'Number of child elements not equal at {path!r}, '
            f'expected {len(expected_children)} but was {len(actual_children)}',
        )

    if len(actual_children) < len(expected_children):
        raise ValidationFailedError(f'Missing child elements at {path!r}')

    for actual_child, expected_child in zip(actual_children, expected_children, strict=False):
        _match_xml(f'{path}/{expected_child.tag}', actual_child, expected_child, context, strict=strict)
