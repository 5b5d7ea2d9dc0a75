"""Path expressions over structured payloads.

Two small path dialects are supported:

- dotted JSON paths (`order.items.0.id`), where numeric segments index
  into lists;
- ElementTree paths for XML (`.//Message`, `Order/Item[1]`), optionally
  ending with `/@attribute` to address an attribute.
"""

from io import StringIO
from re import compile as regexp
from typing import TYPE_CHECKING, Any, NamedTuple
from xml.etree.ElementTree import Element, iterparse, register_namespace, tostring  # noqa: S405

if TYPE_CHECKING:
    from collections.abc import Callable

#: Sentinel returned for paths that do not exist.
MISSING = object()

#: Leading XML declaration of a document.
_XML_DECLARATION = regexp(r'^\s*(<\?xml[^>]*\?>)')

#: Prefixes ElementTree reserves for generated names.
_RESERVED_PREFIX = regexp(r'^ns\d+$')


def _split_json_path(path: str) -> list[str]:
    """Split a dotted path, accepting an optional leading `$.`."""
    path = path.strip()
    if path.startswith('$'):
        path = path[1:].lstrip('.')

    return [segment for segment in path.split('.') if segment]


def get_json_value(document: Any, path: str) -> Any:  # noqa: ANN401
    """Read a value from a JSON document by dotted path.

    Args:
        document: Parsed JSON document.
        path: Dotted path.

    Returns:
        The addressed value, or `MISSING` when the path does not exist.
    """
    value = document
    for segment in _split_json_path(path):
        if isinstance(value, list) and segment.isdecimal():
            index = int(segment)
            if index >= len(value):
                return MISSING
            value = value[index]
        elif isinstance(value, dict) and segment in value:
            value = value[segment]
        else:
            return MISSING

    return value


def update_json_value(document: Any, path: str,  # noqa: ANN401
                      update: 'Callable[[Any], Any]') -> bool:
    """Replace a value in a JSON document in place.

    Args:
        document: Parsed JSON document.
        path: Dotted path of an existing value.
        update: Callable receiving the current value and returning the new one.

    Returns:
        True if the path exists and was updated.
    """
    segments = _split_json_path(path)
    if not segments:
        return False

    parent = get_json_value(document, '.'.join(segments[:-1]))
    key = segments[-1]

    if isinstance(parent, list) and key.isdecimal() and int(key) < len(parent):
        parent[int(key)] = update(parent[int(key)])
        return True

    if isinstance(parent, dict) and key in parent:
        parent[key] = update(parent[key])
        return True

    return False


def _split_xml_path(path: str) -> tuple[str, str | None]:
    """Split a trailing `/@attribute` from an element path."""
    path = path.strip()
    element_path, separator, attribute = path.rpartition('/@')
    if separator:
        return element_path or '.', attribute

    if path.startswith('@'):
        return '.', path[1:]

    return path, None


def _find_all(root: Element, path: str,
              namespaces: dict[str, str] | None = None) -> list[Element]:
    """Find elements, treating the root tag as an absolute path start."""
    if path in {'.', ''}:
        return [root]

    if path.startswith('/') and not path.startswith('//'):
        head, _, rest = path[1:].partition('/')
        prefix, separator, local = head.rpartition(':')
        if namespaces and prefix in namespaces and (separator or not head.startswith('{')):
            head = f'{{{namespaces[prefix]}}}{local}'
        if head != root.tag:
            return []
        return _find_all(root, rest or '.', namespaces)

    if path.startswith('//'):
        path = f'.{path}'

    return root.findall(path, namespaces)


def get_xml_values(root: Element, path: str,
                   namespaces: dict[str, str] | None = None) -> list[str]:
    """Read text or attribute values from an XML tree.

    Args:
        root: Root element.
        path: ElementTree path with an optional `/@attribute` suffix.
        namespaces: Prefixes usable in the path, by prefix.

    Returns:
        Values of all matching nodes, in document order.
    """
    element_path, attribute = _split_xml_path(path)
    values = []

    for element in _find_all(root, element_path, namespaces):
        if attribute is None:
            values.append(element.text or '')
        elif attribute in element.attrib:
            values.append(element.attrib[attribute])

    return values


def set_xml_values(root: Element, path: str,
                   update: 'Callable[[str], str]',
                   namespaces: dict[str, str] | None = None) -> int:
    """Replace text or attribute values in an XML tree in place.

    Args:
        root: Root element.
        path: ElementTree path with an optional `/@attribute` suffix.
        update: Callable receiving the current value and returning the new one.
        namespaces: Prefixes usable in the path, by prefix.

    Returns:
        Number of updated nodes.
    """
    element_path, attribute = _split_xml_path(path)
    count = 0

    for element in _find_all(root, element_path, namespaces):
        if attribute is None:
            element.text = update(element.text or '')
            count += 1
        elif attribute in element.attrib:
            element.set(attribute, update(element.attrib[attribute]))
            count += 1

    return count


class XmlDocument(NamedTuple):
    """Parsed XML payload with what is needed to write it back."""

    root: Element
    declaration: str | None
    namespaces: dict[str, str]


def parse_xml_document(text: str) -> XmlDocument:
    """Parse an XML payload keeping its declaration and namespace prefixes.

    Raises:
        ParseError: If the text is not well-formed XML.
    """
    namespaces: dict[str, str] = {}
    root: Element | None = None

    for event, item in iterparse(StringIO(text), events=('start', 'start-ns')):  # noqa: S314
        if event == 'start-ns':
            prefix, uri = item
            namespaces.setdefault(prefix, uri)
        elif root is None:
            root = item

    declaration = _XML_DECLARATION.match(text)

    return XmlDocument(
        root=root,  # type: ignore[arg-type]
        declaration=declaration.group(1) if declaration else None,
        namespaces=namespaces,
    )


def serialize_xml_document(document: XmlDocument) -> str:
    """Write a parsed payload back with its original prefixes and declaration."""
    for prefix, uri in document.namespaces.items():
        if not _RESERVED_PREFIX.match(prefix):
            register_namespace(prefix, uri)

    body = tostring(document.root, encoding='unicode')
    if document.declaration:
        return f'{document.declaration}{body}'

    return body
