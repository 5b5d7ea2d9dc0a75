"""Validation matcher libraries and their registry.

A validation matcher is a named predicate usable inside expected values,
written as `@name('arg')@` or `@prefix:name('arg')@`. Matchers raise
`ValidationFailedError` when the actual value does not satisfy them.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, NamedTuple

from pydantic import Field

from pytest_courier.errors import NoSuchMatcherError
from pytest_courier.libraries import Library, LibraryRegistry
from pytest_courier.names import MATCHER_PATTERN, Member  # noqa: TC001
from pytest_courier.templates import split_arguments

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

#: The callable receives the validated field name, the actual value,
#: the resolved matcher arguments and the test context.
type ValidationMatcher = Callable[..., None]


class MatcherExpression(NamedTuple):
    """Parsed validation matcher expression."""

    prefix: str
    name: str
    args: tuple[str, ...]


def parse_matcher_expression(value: object) -> MatcherExpression | None:
    """Parse an expected value as a validation matcher expression.

    Args:
        value: Expected value.

    Returns:
        The parsed expression, or `None` if the value is not a matcher.
    """
    if not isinstance(value, str):
        return None

    match = MATCHER_PATTERN.match(value.strip())
    if not match:
        return None

    return MatcherExpression(
        prefix=match.group('prefix') or '',
        name=match.group('name'),
        args=tuple(split_arguments(match.group('args') or '')),
    )


class MatcherLibrary(Library):
    """Declarative library of validation matchers."""

    matchers: dict[Member, ValidationMatcher] = Field(
        default_factory=dict,
        title='Validation matchers',
        description='Matchers of the library by case-sensitive name.',
    )

    def members(self) -> Mapping[str, ValidationMatcher]:
        """Return the library matchers by name."""
        return self.matchers


class MatcherRegistry(LibraryRegistry[ValidationMatcher]):
    """Registry of validation matchers."""

    def validate(self, field: str, actual: str, expression: MatcherExpression,
                 context: 'TestContext') -> None:
        """Run a matcher expression against an actual value.

        Matcher arguments are resolved through the test context first.

        Args:
            field: Name of the validated field, used in failure messages.
            actual: Actual value as text.
            expression: Parsed matcher expression.
            context: Running test context.

        Raises:
            NoSuchMatcherError: If the matcher is not registered.
            ValidationFailedError: If the value does not satisfy the matcher.
        """
        matcher = self.get(expression.prefix, expression.name)
        if matcher is None:
            raise NoSuchMatcherError(
                f'Unknown validation matcher {expression.prefix}{expression.name!s}',
            )

        matcher(
            field,
            actual,
            [context.resolve(arg) for arg in expression.args],
            context,
        )
