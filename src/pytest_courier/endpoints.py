"""Actors and messaging endpoint interfaces.

Transports are not part of the engine: send and receive actions talk to
endpoints through the interfaces below. An endpoint may be associated
with an actor; a disabled actor suppresses the actions using it.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import Field

from pytest_courier.models import DescribedMixin, SchemaModel

if TYPE_CHECKING:
    from pytest_courier.context import TestContext
    from pytest_courier.message import Message


class Actor(DescribedMixin, SchemaModel):
    """Named participant of a test; a disabled actor suppresses its actions."""

    name: str = Field(
        title='Actor name',
        description='Name of the simulated or tested participant.',
    )

    disabled: bool = Field(
        default=False,
        title='Disabled',
        description='Skip every action associated with this actor.',
    )


@runtime_checkable
class Producer(Protocol):
    """Sending side of an endpoint."""

    def send(self, message: 'Message', context: 'TestContext') -> None:
        """Send a message."""
        ...  # pragma: no cover


@runtime_checkable
class Consumer(Protocol):
    """Receiving side of an endpoint."""

    def receive(self, context: 'TestContext', timeout: float) -> 'Message':
        """Receive a message, blocking at most `timeout` seconds."""
        ...  # pragma: no cover


@runtime_checkable
class Endpoint(Protocol):
    """Messaging endpoint."""

    name: str
    actor: Actor | None

    def create_producer(self) -> Producer:
        """Return a producer for this endpoint."""
        ...  # pragma: no cover

    def create_consumer(self) -> Consumer:
        """Return a consumer for this endpoint."""
        ...  # pragma: no cover
