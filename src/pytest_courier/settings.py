"""Runtime settings resolved from the environment.

Settings are read once per context factory from environment variables
prefixed with `COURIER_` (for example `COURIER_RECEIVE_TIMEOUT=2.5`).
"""

from pydantic import Field, PositiveFloat
from pydantic_settings import SettingsConfigDict

from pytest_courier.models import SettingsModel
from pytest_courier.names import DEFAULT_FUNCTION_PREFIX, Prefix


class CourierSettings(SettingsModel):
    """Engine-wide runtime configuration."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_prefix='COURIER_',
    )

    default_encoding: str = Field(
        default='utf-8',
        title='Default resource encoding',
        description=(
            'Character encoding used to decode resources that neither '
            'declare an encoding nor carry an XML encoding declaration.'
        ),
    )

    receive_timeout: PositiveFloat = Field(
        default=5.0,
        title='Receive timeout',
        description='Default timeout in seconds for receive actions.',
    )

    strict: bool = Field(
        default=False,
        title='Strict plugin loading',
        description=(
            'Raise on plugin loading issues and library member shadowing '
            'instead of emitting warnings.'
        ),
    )

    function_prefix: Prefix = Field(
        default=DEFAULT_FUNCTION_PREFIX,
        title='Built-in function prefix',
        description='Prefix under which the built-in function library is registered.',
    )
