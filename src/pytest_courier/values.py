"""Core value type definitions.

This module defines the value types carried by variables, message
headers and payloads, together with helpers used to turn runtime
objects into their textual representation inside templates.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import SecretStr

#: Scalars represent atomic values that can be embedded into templates
#: as text without further processing.
type Scalar = date | datetime | timedelta | str | bytes | int | float | bool | SecretStr

#: A value stored in the variable store or in message headers.
type Value = Scalar | Sequence['Value'] | Mapping[str, 'Value'] | None

#: A value in runtime represents any Python object received from
# external libraries, user-defined code, or YAML loaders.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (date, datetime, timedelta, str, bytes, int, float, bool, SecretStr)
SEQUENCES = (list, tuple, set)


def stringify(value: RuntimeValue) -> str:
    """Render a runtime value as template text.

    Args:
        value: Value to render.

    Returns:
        Textual representation of the value. `None` renders as an empty
        string, bytes are decoded as UTF-8, booleans as `true`/`false`,
        and secrets reveal their content.
    """
    if value is None:
        return ''

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, SecretStr):
        return value.get_secret_value()

    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')

    if isinstance(value, (date, datetime)):
        return value.isoformat()

    return str(value)
