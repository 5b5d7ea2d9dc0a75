"""Lookup of named collaborators.

Endpoints, data dictionaries, marshallers and other collaborators may be
referenced by name in test definitions. The reference resolver maps such
names to objects; an unknown name results in `ReferenceNotFoundError`.
"""

from typing import Any, Protocol, overload, runtime_checkable

from pytest_courier.errors import ReferenceNotFoundError


@runtime_checkable
class ReferenceResolver(Protocol):
    """Interface of a named collaborator lookup."""

    def resolve[T](self, name: str, expected: type[T] | None = None) -> T:
        """Resolve a collaborator by name, optionally checking its type."""
        ...  # pragma: no cover

    def resolve_all[T](self, expected: type[T]) -> dict[str, T]:
        """Resolve all collaborators of a type by name."""
        ...  # pragma: no cover

    def is_resolvable(self, name: str) -> bool:
        """Check whether a name is bound."""
        ...  # pragma: no cover

    def bind(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Bind a collaborator to a name, replacing any previous binding."""
        ...  # pragma: no cover


class SimpleReferenceResolver:
    """In-memory reference resolver backed by a mapping."""

    def __init__(self, references: dict[str, Any] | None = None) -> None:
        """Initialize the resolver.

        Args:
            references: Initial name to object bindings.
        """
        self.references: dict[str, Any] = dict(references or {})

    def bind(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Bind a collaborator to a name, replacing any previous binding."""
        self.references[name] = value

    @overload
    def resolve(self, name: str) -> Any: ...  # noqa: ANN401

    @overload
    def resolve[T](self, name: str, expected: type[T]) -> T: ...

    def resolve(self, name: str, expected: type | None = None) -> Any:
        """Resolve a collaborator by name.

        Args:
            name: Bound name.
            expected: Optional type the collaborator must be an instance of.

        Returns:
            The bound collaborator.

        Raises:
            ReferenceNotFoundError: If the name is not bound, or is bound
                to an object of another type.
        """
        try:
            value = self.references[name]

        except KeyError:
            raise ReferenceNotFoundError(name, expected) from None

        if expected is not None and not isinstance(value, expected):
            raise ReferenceNotFoundError(name, expected)

        return value

    def resolve_all[T](self, expected: type[T]) -> dict[str, T]:
        """Resolve all collaborators that are instances of a type."""
        return {
            name: value
            for name, value in self.references.items()
            if isinstance(value, expected)
        }

    def is_resolvable(self, name: str) -> bool:
        """Check whether a name is bound."""
        return name in self.references
