"""Scripted payload generation capability.

No scripting runtime is bundled: a script engine is injected into the
test context and receives the resolved script body together with a
payload construction API. The API exposes the running context and an
ElementTree based markup builder for XML payloads.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable
from xml.etree.ElementTree import Element, SubElement, tostring  # noqa: S405

from pytest_courier.values import stringify

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.values import RuntimeValue


class MarkupBuilder:
    """Builder of XML markup for scripted payloads.

    Example:
        >>> markup = MarkupBuilder()
        >>> markup.render(markup.element('Req', markup.element('M', 'Hi')))
        '<Req><M>Hi</M></Req>'
    """

    def element(self, tag: str, *children: 'Element | RuntimeValue',
                **attributes: 'RuntimeValue') -> Element:
        """Create an element.

        Text children become the element text, or the tail of the
        preceding child element.
        """
        node = Element(tag, {key: stringify(value) for key, value in attributes.items()})
        last: Element | None = None

        for child in children:
            if isinstance(child, Element):
                node.append(child)
                last = child
            elif last is None:
                node.text = (node.text or '') + stringify(child)
            else:
                last.tail = (last.tail or '') + stringify(child)

        return node

    def child(self, parent: Element, tag: str, text: 'RuntimeValue' = None,
              **attributes: 'RuntimeValue') -> Element:
        """Append a child element to a parent and return it."""
        node = SubElement(parent, tag, {key: stringify(value) for key, value in attributes.items()})
        if text is not None:
            node.text = stringify(text)

        return node

    def render(self, element: Element) -> str:
        """Serialize an element tree without an XML declaration."""
        return tostring(element, encoding='unicode')


class ScriptPayloadApi:
    """Objects exposed to a payload script."""

    def __init__(self, context: 'TestContext') -> None:
        """Initialize the API for a running context."""
        self.context = context
        self.markup = MarkupBuilder()

    def variable(self, name: str) -> 'RuntimeValue':
        """Return a variable value."""
        return self.context.get_variable(name)

    def resolve(self, template: str) -> str:
        """Resolve a template through the context."""
        return self.context.resolve(template)


@runtime_checkable
class ScriptEngine(Protocol):
    """Interface of an injected script engine."""

    def render(self, script: str, api: ScriptPayloadApi) -> str:
        """Execute a script and return the produced payload text."""
        ...  # pragma: no cover
