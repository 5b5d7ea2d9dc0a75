"""Built-in validation matchers.

Matchers are registered without prefix and used inside expected values,
for example `@contains('Hello')@` or `@ignore@`.
"""

from re import error as RegexError  # noqa: N812
from re import fullmatch
from typing import TYPE_CHECKING

from pytest_courier.errors import ValidationFailedError
from pytest_courier.matchers import MatcherLibrary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_courier.context import TestContext


def _argument(field: str, args: 'Sequence[str]') -> str:
    """Return the single matcher argument.

    Raises:
        ValidationFailedError: If the matcher is not given exactly one argument.
    """
    if len(args) != 1:
        raise ValidationFailedError(f'Matcher for {field!r} expects one argument, got {len(args)}')

    return args[0]


def _number(field: str, value: str) -> float:
    """Parse a number.

    Raises:
        ValidationFailedError: If the value is not a number.
    """
    try:
        return float(value)

    except ValueError:
        raise ValidationFailedError(f'Value {value!r} of {field!r} is not a number') from None


def equals_ignore_case(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Compare text ignoring case."""
    expected = _argument(field, args)
    if actual.casefold() != expected.casefold():
        raise ValidationFailedError(f'{field!r}: {actual!r} is not equal to {expected!r} ignoring case')


def contains(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check for a fragment."""
    expected = _argument(field, args)
    if expected not in actual:
        raise ValidationFailedError(f'{field!r}: {actual!r} does not contain {expected!r}')


def starts_with(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check for a prefix."""
    expected = _argument(field, args)
    if not actual.startswith(expected):
        raise ValidationFailedError(f'{field!r}: {actual!r} does not start with {expected!r}')


def ends_with(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check for a suffix."""
    expected = _argument(field, args)
    if not actual.endswith(expected):
        raise ValidationFailedError(f'{field!r}: {actual!r} does not end with {expected!r}')


def matches(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Match the whole value against a regular expression."""
    pattern = _argument(field, args)

    try:
        matched = fullmatch(pattern, actual)

    except RegexError as base:
        raise ValidationFailedError(f'Invalid pattern {pattern!r} for {field!r}') from base

    if not matched:
        raise ValidationFailedError(f'{field!r}: {actual!r} does not match {pattern!r}')


def is_number(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check that the value is numeric."""
    _number(field, actual)


def greater_than(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Compare numerically."""
    bound = _number(field, _argument(field, args))
    if not _number(field, actual) > bound:
        raise ValidationFailedError(f'{field!r}: {actual} is not greater than {bound:g}')


def lower_than(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Compare numerically."""
    bound = _number(field, _argument(field, args))
    if not _number(field, actual) < bound:
        raise ValidationFailedError(f'{field!r}: {actual} is not lower than {bound:g}')


def is_empty(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check for an empty value."""
    if actual:
        raise ValidationFailedError(f'{field!r}: {actual!r} is not empty')


def not_empty(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Check for a non-empty value."""
    if not actual:
        raise ValidationFailedError(f'{field!r}: value is empty')


def ignore(field: str, actual: str, args: 'Sequence[str]', context: 'TestContext') -> None:
    """Accept any value."""


matchers = MatcherLibrary(
    name='builtins',
    matchers={
        'equalsIgnoreCase': equals_ignore_case,
        'contains': contains,
        'startsWith': starts_with,
        'endsWith': ends_with,
        'matches': matches,
        'isNumber': is_number,
        'greaterThan': greater_than,
        'lowerThan': lower_than,
        'isEmpty': is_empty,
        'notEmpty': not_empty,
        'ignore': ignore,
    },
)
