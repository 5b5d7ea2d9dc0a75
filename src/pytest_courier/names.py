"""Name primitive types and template syntax patterns.

This module defines identifier patterns and strongly-typed aliases used
to validate variable names, function and matcher references, and action
names. It also holds the markers of the template syntax understood by
the runtime context.

The rules defined here form part of the public contract and are relied
upon by the template resolver, the YAML parser, and plugins.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for all identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Variables may additionally contain dots and dashes (`order.id`, `request-id`).
_VARIABLE_NAME_PATTERN = r'[a-zA-Z_][\w.\-]*'

#: Compiled pattern for variable identifiers.
VARIABLE_PATTERN = regexp(
    rf'^(?P<name>{_VARIABLE_NAME_PATTERN})$',
    flags=ASCII,
)

#: Compiled pattern for function call expressions (`courier:concat('a', 'b')`).
FUNCTION_PATTERN = regexp(
    rf'^(?P<prefix>{_NAME_PATTERN}:)(?P<name>{_NAME_PATTERN})\((?P<args>.*)\)$',
    flags=ASCII,
)

#: Compiled pattern for validation matcher expressions (`@contains('foo')@`).
MATCHER_PATTERN = regexp(
    rf'^@(?P<prefix>{_NAME_PATTERN}:)?(?P<name>{_NAME_PATTERN})(\((?P<args>.*)\))?@$',
    flags=ASCII,
)

#: Opening marker of a template placeholder.
PLACEHOLDER_START = '${'
#: Closing marker of a template placeholder.
PLACEHOLDER_END = '}'

#: Prefix of the built-in function library.
DEFAULT_FUNCTION_PREFIX = 'courier:'


Variable = Annotated[
    str, Field(
        pattern=rf'^{_VARIABLE_NAME_PATTERN}$',
        title='Variable identifier',
        description=(
            'Name of a variable used to store or reference values within '
            'a test case execution context. '
            'Variable identifiers must start with a letter or underscore and '
            'may contain letters, digits, underscores, dots and dashes.'
        ),
        examples=[
            'orderId',
            'api_token',
            'request.id',
        ],
    ),
]

Prefix = Annotated[
    str, Field(
        pattern=rf'^({_NAME_PATTERN}:)?$',
        title='Library prefix',
        description=(
            'Prefix used to reference members of a function or matcher '
            'library, including the trailing colon (for example `courier:`).'
        ),
        examples=[
            'courier:',
            'crm:',
        ],
    ),
]

Member = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Library member name',
        description=(
            'Case-sensitive name of a function or validation matcher '
            'inside its library.'
        ),
        examples=[
            'concat',
            'equalsIgnoreCase',
        ],
    ),
]
