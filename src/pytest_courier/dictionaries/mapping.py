"""Concrete data dictionaries for text, JSON and XML payloads."""

from json import dumps, loads
from re import escape, sub
from typing import TYPE_CHECKING, Literal

from pydantic import Field

from pytest_courier.paths import parse_xml_document, serialize_xml_document, set_xml_values, update_json_value
from pytest_courier.values import stringify

from .base import DataDictionary, logger

if TYPE_CHECKING:
    from pytest_courier.message import Message
    from pytest_courier.values import RuntimeValue


class SimpleMappingDictionary(DataDictionary):
    """Replace text fragments of the payload.

    Keys are matched literally, or as regular expressions when `regex`
    is set. Replacements are inserted literally.
    """

    kind: Literal['text'] = 'text'

    regex: bool = Field(
        default=False,
        title='Regular expressions',
        description='Treat mapping keys as regular expressions.',
    )

    def translate(self, message: 'Message', mappings: dict[str, 'RuntimeValue']) -> None:
        """Replace every mapped fragment in the payload text."""
        if message.payload is None:
            return

        text = message.get_payload_text()
        for key, value in mappings.items():
            replacement = stringify(value)
            text = sub(key if self.regex else escape(key), lambda _, r=replacement: r, text)

        message.payload = text


class JsonPathMappingDictionary(DataDictionary):
    """Replace values of a JSON payload addressed by dotted paths."""

    kind: Literal['json'] = 'json'

    def translate(self, message: 'Message', mappings: dict[str, 'RuntimeValue']) -> None:
        """Update every mapped path present in the payload."""
        text = message.get_payload_text()
        if not text.strip():
            return

        document = loads(text)
        for path, value in mappings.items():
            if not update_json_value(document, path, lambda _, v=value: v):
                logger.debug('skip missing JSON path %r', path)

        message.payload = dumps(document, ensure_ascii=False)


class XmlPathMappingDictionary(DataDictionary):
    """Replace text or attribute values of an XML payload.

    Paths may use the namespace prefixes declared by the payload. The
    declaration and the prefixes of the payload are kept on output.
    """

    kind: Literal['xml'] = 'xml'

    def translate(self, message: 'Message', mappings: dict[str, 'RuntimeValue']) -> None:
        """Update every node matching a mapped path."""
        text = message.get_payload_text()
        if not text.strip():
            return

        document = parse_xml_document(text)
        for path, value in mappings.items():
            replacement = stringify(value)
            if not set_xml_values(document.root, path, lambda _, r=replacement: r, document.namespaces):
                logger.debug('skip missing XML path %r', path)

        message.payload = serialize_xml_document(document)
