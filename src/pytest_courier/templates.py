"""Template scanning and function call parsing.

The template syntax is intentionally small:

- `${name}` is replaced by the value of the variable `name`;
- `${prefix:function(arg, 'quoted arg')}` is replaced by the result of
  the function registered under `prefix:` and `function`.

Placeholders are processed in a single left-to-right pass and the
substituted text is inserted verbatim: a value that itself contains
`${...}` is never scanned again.
"""

from typing import TYPE_CHECKING, NamedTuple

from pytest_courier.names import FUNCTION_PATTERN, PLACEHOLDER_END, PLACEHOLDER_START

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

QUOTES = ('"', "'")


class FunctionCall(NamedTuple):
    """Parsed function call expression."""

    prefix: str
    name: str
    args: tuple[str, ...]


class Token(NamedTuple):
    """A placeholder found in a template."""

    start: int
    end: int
    expression: str


def parse_function_call(expression: str) -> FunctionCall | None:
    """Parse a function call expression.

    Args:
        expression: Candidate expression, for example
            `courier:concat('Hello ', ${name})`.

    Returns:
        The parsed call, or `None` when the expression is not
        a function call.
    """
    match = FUNCTION_PATTERN.match(expression.strip())
    if not match or not _is_balanced(match.group('args')):
        return None

    return FunctionCall(
        prefix=match.group('prefix'),
        name=match.group('name'),
        args=tuple(split_arguments(match.group('args'))),
    )


def _is_balanced(source: str) -> bool:
    """Check that an argument list never closes more than it opened.

    An unbalanced list means the final parenthesis does not close the
    call, as in `a:f('x') and a:g('y')`.
    """
    depth = 0
    quote: str | None = None

    for char in source:
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif char in '({':
            depth += 1
        elif char in ')}':
            depth -= 1
            if depth < 0:
                return False

    return depth == 0


def split_arguments(source: str) -> 'Iterator[str]':
    """Split a function argument list at top-level commas.

    Commas inside quotes, parentheses or placeholders do not split
    arguments. Surrounding whitespace is stripped and one level of
    matching quotes is removed from each argument.

    Args:
        source: Raw argument list without the enclosing parentheses.

    Yields:
        Individual arguments in declaration order.
    """
    if not source.strip():
        return

    depth = 0
    quote: str | None = None
    current: list[str] = []

    for char in source:
        if quote:
            if char == quote:
                quote = None
            current.append(char)
            continue

        if char in QUOTES:
            quote = char
        elif char in '({':
            depth += 1
        elif char in ')}':
            depth -= 1
        elif char == ',' and depth == 0:
            yield _unquote(''.join(current))
            current = []
            continue

        current.append(char)

    yield _unquote(''.join(current))


def _unquote(value: str) -> str:
    """Strip whitespace and one level of matching quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:  # noqa: PLR2004
        return value[1:-1]

    return value


def find_placeholder_end(template: str, start: int) -> int:
    """Find the index of the closing marker of a placeholder.

    Quoted text and nested parentheses or braces inside the placeholder
    are skipped, so `${courier:concat('}', ${a})}` is a single token.

    Args:
        template: Template text.
        start: Index of the first character after the opening marker.

    Returns:
        Index of the closing marker, or -1 if the placeholder is not closed.
    """
    depth = 0
    quote: str | None = None

    for index in range(start, len(template)):
        char = template[index]
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTES and depth > 0:
            quote = char
        elif char in '({':
            depth += 1
        elif char == ')':
            depth -= 1
        elif char == PLACEHOLDER_END:
            if depth == 0:
                return index
            depth -= 1

    return -1


def scan(template: str) -> 'Iterator[Token]':
    """Iterate over the placeholders of a template, left to right.

    An opening marker without a matching closing marker is treated as
    literal text.

    Args:
        template: Template text.

    Yields:
        Placeholder tokens with their positions in the template.
    """
    position = 0
    while (start := template.find(PLACEHOLDER_START, position)) >= 0:
        body = start + len(PLACEHOLDER_START)
        end = find_placeholder_end(template, body)
        if end < 0:
            return

        yield Token(start, end + 1, template[body:end].strip())
        position = end + 1


def substitute(template: str, evaluate: 'Callable[[str], str]') -> str:
    """Replace every placeholder of a template in a single pass.

    Args:
        template: Template text.
        evaluate: Callable producing the replacement text of a placeholder
            expression.

    Returns:
        Template with each placeholder replaced by its evaluated text.
        Replacement text is never scanned again.
    """
    if PLACEHOLDER_START not in template:
        return template

    chunks: list[str] = []
    position = 0

    for token in scan(template):
        chunks.append(template[position:token.start])
        chunks.append(evaluate(token.expression))
        position = token.end

    chunks.append(template[position:])

    return ''.join(chunks)
