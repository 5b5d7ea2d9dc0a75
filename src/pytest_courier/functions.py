"""Template function libraries and their registry.

A template function receives its already resolved textual arguments and
the running test context, and returns a value that is inserted into the
template as text.
"""

from collections.abc import Callable, Mapping

from pydantic import Field

from pytest_courier.libraries import Library, LibraryRegistry
from pytest_courier.names import Member  # noqa: TC001
from pytest_courier.values import RuntimeValue

#: The callable receives resolved arguments (`Sequence[str]`) and the
#: test context.
type TemplateFunction = Callable[..., RuntimeValue]


class FunctionLibrary(Library):
    """Declarative library of template functions."""

    functions: dict[Member, TemplateFunction] = Field(
        default_factory=dict,
        title='Functions',
        description='Functions of the library by case-sensitive name.',
    )

    def members(self) -> Mapping[str, TemplateFunction]:
        """Return the library functions by name."""
        return self.functions


class FunctionRegistry(LibraryRegistry[TemplateFunction]):
    """Registry of template functions addressed as `prefix:name`."""
