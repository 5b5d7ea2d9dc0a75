"""Prefix-addressed libraries of named callables.

Function libraries and validation matcher libraries share the same
registration rules, implemented here:

- members are addressed by library prefix and case-sensitive name;
- the first registered member wins on collision, unless the newer
  library is registered with `override=True`;
- a shadowing attempt emits a `PluginWarning`, or raises a
  `PluginError` in strict mode.
"""

from abc import abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import Field

from pytest_courier.errors import PluginError, PluginWarning
from pytest_courier.models import SchemaModel
from pytest_courier.names import Prefix  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from typing import Self


class Library(SchemaModel):
    """Declarative base for a library of named callables."""

    name: str = Field(
        title='Library name',
        description='Human-readable library name used in diagnostics.',
    )

    prefix: Prefix = Field(
        default='',
        title='Library prefix',
        description=(
            'Prefix used to address the library members, including the '
            'trailing colon. An empty prefix registers unqualified members.'
        ),
    )

    @abstractmethod
    def members(self) -> 'Mapping[str, Callable[..., object]]':
        """Return the library members by name."""


class LibraryRegistry[T: Callable[..., object]]:
    """Registry of library members addressed by prefix and name."""

    def __init__(self, *, strict: bool = False) -> None:
        """Initialize an empty registry.

        Args:
            strict: Raise on shadowing instead of emitting a warning.
        """
        self.strict = strict
        self.libraries: list[Library] = []
        self._members: dict[str, dict[str, T]] = {}

    def add_library(self, library: Library, *, override: bool = False) -> None:
        """Register all members of a library.

        Args:
            library: Library to register.
            override: Replace already registered members with the same
                prefix and name.

        Raises:
            PluginError: If a member is shadowed in strict mode.
        """
        members = self._members.setdefault(library.prefix, {})

        for name, member in library.members().items():
            if name in members and not override:
                if self.strict:
                    raise PluginError(
                        f'Member {library.prefix}{name!s} from {library.name!r} is shadowing an existing',
                    )
                warn(
                    f'Member {library.prefix}{name!s} from {library.name!r} is shadowing an existing',
                    category=PluginWarning,
                    stacklevel=2,
                )
                continue

            members[name] = member  # type: ignore[assignment]

        self.libraries.append(library)

    def copy(self) -> 'Self':
        """Return an independent registry with the same members."""
        registry = type(self)(strict=self.strict)
        registry.libraries = list(self.libraries)
        registry._members = {
            prefix: dict(members)
            for prefix, members in self._members.items()
        }

        return registry

    def get(self, prefix: str, name: str) -> T | None:
        """Return a registered member or `None`."""
        return self._members.get(prefix, {}).get(name)

    def has_prefix(self, prefix: str) -> bool:
        """Check whether any library uses the given prefix."""
        return prefix in self._members

    def __contains__(self, qualname: object) -> bool:
        """Check membership by qualified name (`prefix:name`)."""
        if not isinstance(qualname, str):
            return False

        prefix, _, name = qualname.rpartition(':')
        if prefix:
            prefix += ':'

        return self.get(prefix, name) is not None

    def __iter__(self) -> 'Iterator[str]':
        """Iterate over qualified member names."""
        for prefix, members in self._members.items():
            for name in members:
                yield f'{prefix}{name}'

    def __len__(self) -> int:
        """Return the number of registered members."""
        return sum(len(members) for members in self._members.values())
