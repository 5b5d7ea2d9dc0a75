"""Built-in template functions.

The library is registered under the `courier:` prefix by default, for
example `${courier:concat('Hello ', ${name})}`. Every function receives
its arguments already resolved, as text.
"""

from base64 import b64decode, b64encode
from datetime import datetime, timedelta
from random import SystemRandom
from re import compile as regexp
from re import sub
from string import ascii_letters, ascii_lowercase, ascii_uppercase, digits
from typing import TYPE_CHECKING
from uuid import uuid4
from xml.sax.saxutils import escape  # noqa: S406

from pytest_courier.functions import FunctionLibrary
from pytest_courier.names import DEFAULT_FUNCTION_PREFIX

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_courier.context import TestContext

DEFAULT_DATE_FORMAT = '%d.%m.%Y'

OFFSET_PATTERN = regexp(r'^(?P<sign>[+-])?(?P<amount>\d+)(?P<unit>[wdhms])$')
OFFSET_UNITS = {
    'w': 'weeks',
    'd': 'days',
    'h': 'hours',
    'm': 'minutes',
    's': 'seconds',
}

_random = SystemRandom()


def _require(args: 'Sequence[str]', minimum: int, maximum: int | None = None) -> None:
    """Check the number of arguments.

    Raises:
        ValueError: If the number of arguments is out of range.
    """
    maximum = minimum if maximum is None else maximum
    if not minimum <= len(args) <= maximum:
        expected = str(minimum) if minimum == maximum else f'{minimum} to {maximum}'
        raise ValueError(f'expected {expected} arguments, got {len(args)}')


def _flag(value: str) -> bool:
    """Parse a boolean argument."""
    return value.strip().lower() in {'true', 'yes', '1'}


def concat(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Join all arguments."""
    return ''.join(args)


def upper_case(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Uppercase a value."""
    _require(args, 1)

    return args[0].upper()


def lower_case(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Lowercase a value."""
    _require(args, 1)

    return args[0].lower()


def substring(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Slice a value: `substring(value, begin[, end])`."""
    _require(args, 2, 3)

    begin = int(args[1])
    if len(args) == 3:  # noqa: PLR2004
        return args[0][begin:int(args[2])]

    return args[0][begin:]


def string_length(args: 'Sequence[str]', context: 'TestContext') -> int:
    """Return the length of a value."""
    _require(args, 1)

    return len(args[0])


def trim(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Strip surrounding whitespace."""
    _require(args, 1)

    return args[0].strip()


def translate(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Replace regular expression matches: `translate(value, regex, replacement)`."""
    _require(args, 3)

    return sub(args[1], args[2], args[0])


def random_number(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Generate a number of the given length: `randomNumber(length[, padding])`.

    Without padding the first digit is never zero.
    """
    _require(args, 1, 2)

    length = int(args[0])
    if length < 1:
        raise ValueError('length must be positive')

    padding = len(args) == 2 and _flag(args[1])  # noqa: PLR2004
    first = _random.choice(digits if padding else digits[1:])

    return first + ''.join(_random.choice(digits) for _ in range(length - 1))


def random_string(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Generate letters: `randomString(length[, UPPERCASE|LOWERCASE|MIXED[, numbers]])`."""
    _require(args, 1, 3)

    length = int(args[0])
    notation = args[1].upper() if len(args) > 1 else 'MIXED'
    alphabet = {
        'UPPERCASE': ascii_uppercase,
        'LOWERCASE': ascii_lowercase,
        'MIXED': ascii_letters,
    }.get(notation)

    if alphabet is None:
        raise ValueError(f'unknown notation {args[1]!r}')

    if len(args) == 3 and _flag(args[2]):  # noqa: PLR2004
        alphabet += digits

    return ''.join(_random.choice(alphabet) for _ in range(length))


def random_uuid(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Generate a random UUID."""
    _require(args, 0)

    return str(uuid4())


def current_date(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Format the current date: `currentDate([format[, offset]])`.

    The format uses `strftime` directives; the offset is a signed amount
    with a unit among `w`, `d`, `h`, `m` and `s`, for example `+1d`.
    """
    _require(args, 0, 2)

    moment = datetime.now().astimezone()
    if len(args) == 2:  # noqa: PLR2004
        match = OFFSET_PATTERN.match(args[1].strip())
        if not match:
            raise ValueError(f'invalid date offset {args[1]!r}')

        offset = timedelta(**{OFFSET_UNITS[match.group('unit')]: int(match.group('amount'))})
        moment = moment - offset if match.group('sign') == '-' else moment + offset

    return moment.strftime(args[0] if args and args[0] else DEFAULT_DATE_FORMAT)


def encode_base64(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Encode a value as Base64: `encodeBase64(value[, charset])`."""
    _require(args, 1, 2)

    charset = args[1] if len(args) == 2 else context.settings.default_encoding  # noqa: PLR2004

    return b64encode(args[0].encode(charset)).decode('ascii')


def decode_base64(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Decode a Base64 value: `decodeBase64(value[, charset])`."""
    _require(args, 1, 2)

    charset = args[1] if len(args) == 2 else context.settings.default_encoding  # noqa: PLR2004

    return b64decode(args[0], validate=True).decode(charset)


def escape_xml(args: 'Sequence[str]', context: 'TestContext') -> str:
    """Escape XML special characters, including quotes."""
    _require(args, 1)

    return escape(args[0], {'"': '&quot;', "'": '&apos;'})


functions = FunctionLibrary(
    name='builtins',
    prefix=DEFAULT_FUNCTION_PREFIX,
    functions={
        'concat': concat,
        'upperCase': upper_case,
        'lowerCase': lower_case,
        'substring': substring,
        'stringLength': string_length,
        'trim': trim,
        'translate': translate,
        'randomNumber': random_number,
        'randomString': random_string,
        'randomUUID': random_uuid,
        'currentDate': current_date,
        'encodeBase64': encode_base64,
        'decodeBase64': decode_base64,
        'escapeXml': escape_xml,
    },
)
