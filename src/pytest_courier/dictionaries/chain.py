"""Application of data dictionaries and global processors to messages."""

from logging import getLogger
from typing import TYPE_CHECKING

from .base import DataDictionary

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.message import Message, MessageDirection
    from pytest_courier.processors import MessageProcessor

logger = getLogger(__name__)


def global_dictionaries(context: 'TestContext',
                        direction: 'MessageDirection') -> list[DataDictionary]:
    """Return the global dictionaries of the context chain matching a direction.

    Dictionaries without global scope are never returned.
    """
    return [
        processor
        for processor in context.message_processors
        if isinstance(processor, DataDictionary)
        and processor.global_scope
        and processor.applies_to(direction)
    ]


def global_processors(context: 'TestContext') -> list['MessageProcessor']:
    """Return the processors of the context chain that are not dictionaries."""
    return [
        processor
        for processor in context.message_processors
        if not isinstance(processor, DataDictionary)
    ]


def apply_dictionaries(message: 'Message', direction: 'MessageDirection',
                       context: 'TestContext',
                       explicit: DataDictionary | None = None) -> 'Message':
    """Translate a message with the explicit and global dictionaries.

    The explicit dictionary runs first when its direction matches, then
    the global dictionaries in registration order.

    Args:
        message: Message translated in place.
        direction: Direction of the message.
        context: Running test context.
        explicit: Dictionary attached to the current action.

    Returns:
        The same message.

    Raises:
        DictionaryError: If a dictionary fails.
    """
    dictionaries = global_dictionaries(context, direction)
    if explicit is not None and explicit.applies_to(direction):
        dictionaries.insert(0, explicit)

    if dictionaries:
        logger.debug('apply %d %s dictionaries to message %s', len(dictionaries), direction, message.id)

    for dictionary in dictionaries:
        dictionary.process(message, context)

    return message


def apply_processors(message: 'Message', context: 'TestContext') -> 'Message':
    """Run the global non-dictionary processors of the context chain."""
    for processor in global_processors(context):
        processor(message, context)

    return message
