"""Message value type and its vocabulary.

A message carries a payload, a header mapping and an ordered list of
header data blocks. Every message gets a unique identifier and a
timestamp at construction; copies keep them unless a new identifier is
requested.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pytest_courier.values import stringify


class MessageHeaders:
    """Reserved header names."""

    PREFIX = 'courier_'

    ID = f'{PREFIX}message_id'
    TIMESTAMP = f'{PREFIX}message_timestamp'

    @classmethod
    def is_reserved(cls, name: str) -> bool:
        """Check whether a header name is reserved by the engine."""
        return name in {cls.ID, cls.TIMESTAMP}


class MessageType(StrEnum):
    """Payload type hint driving dictionaries, extractors and validation."""

    PLAINTEXT = 'plaintext'
    XML = 'xml'
    JSON = 'json'
    BINARY = 'binary'


class MessageDirection(StrEnum):
    """Direction of a message relative to the system under test."""

    INBOUND = 'inbound'
    OUTBOUND = 'outbound'
    UNBOUND = 'unbound'

    def matches(self, other: 'MessageDirection') -> bool:
        """Check whether this direction applies to a message of another direction."""
        return MessageDirection.UNBOUND in (self, other) or self is other


class Message:
    """Mutable message value object.

    Builders construct messages and data dictionaries translate them in
    place; once handed to a producer a message is not changed anymore.
    Equality compares payload and non-reserved headers.
    """

    def __init__(self, payload: Any = None, headers: dict[str, Any] | None = None,  # noqa: ANN401
                 header_data: list[str] | None = None, *,
                 name: str | None = None,
                 message_type: MessageType | str | None = None) -> None:
        """Initialize a message with a fresh identifier and timestamp.

        Args:
            payload: Message payload, usually text.
            headers: Header mapping; reserved keys are ignored.
            header_data: Ordered auxiliary header blocks.
            name: Optional message name.
            message_type: Optional payload type hint.
        """
        self.payload = payload
        self.name = name
        self.message_type = MessageType(message_type) if message_type else None
        self.header_data: list[str] = list(header_data or ())

        self._headers: dict[str, Any] = {
            MessageHeaders.ID: str(uuid4()),
            MessageHeaders.TIMESTAMP: datetime.now(UTC),
        }
        for key, value in (headers or {}).items():
            if not MessageHeaders.is_reserved(key):
                self._headers[key] = value

    @property
    def id(self) -> str:
        """Unique message identifier."""
        return self._headers[MessageHeaders.ID]

    @property
    def timestamp(self) -> datetime:
        """Message creation time."""
        return self._headers[MessageHeaders.TIMESTAMP]

    @property
    def headers(self) -> dict[str, Any]:
        """Return a copy of all headers, including reserved ones."""
        return dict(self._headers)

    def get_header(self, name: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return a header value or a default."""
        return self._headers.get(name, default)

    def set_header(self, name: str, value: Any) -> 'Message':  # noqa: ANN401
        """Set a header value.

        Raises:
            ValueError: If the header name is reserved.
        """
        if MessageHeaders.is_reserved(name):
            raise ValueError(f'Header {name!r} is reserved')

        self._headers[name] = value

        return self

    def remove_header(self, name: str) -> Any:  # noqa: ANN401
        """Remove a header and return its value.

        Raises:
            ValueError: If the header name is reserved.
        """
        if MessageHeaders.is_reserved(name):
            raise ValueError(f'Header {name!r} is reserved')

        return self._headers.pop(name, None)

    def add_header_data(self, data: str) -> 'Message':
        """Append a header data block."""
        self.header_data.append(data)

        return self

    def get_payload_text(self) -> str:
        """Return the payload rendered as text."""
        return stringify(self.payload)

    def copy(self, *, new_id: bool = False) -> 'Message':
        """Copy the message.

        Args:
            new_id: Assign a fresh identifier and timestamp to the copy.

        Returns:
            A message with the same payload, headers and header data.
        """
        message = Message(
            self.payload,
            self._headers,
            self.header_data,
            name=self.name,
            message_type=self.message_type,
        )

        if not new_id:
            message._headers[MessageHeaders.ID] = self.id
            message._headers[MessageHeaders.TIMESTAMP] = self.timestamp

        return message

    def custom_headers(self) -> dict[str, Any]:
        """Return headers without the reserved ones."""
        return {
            key: value
            for key, value in self._headers.items()
            if not MessageHeaders.is_reserved(key)
        }

    def __eq__(self, other: object) -> bool:
        """Compare payload and non-reserved headers."""
        if not isinstance(other, Message):
            return NotImplemented

        return (
            self.payload == other.payload
            and self.custom_headers() == other.custom_headers()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Debug representation."""
        return f'Message(id={self.id!r}, payload={self.payload!r}, headers={self.custom_headers()!r})'
