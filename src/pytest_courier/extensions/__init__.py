"""Declarative plugin definition.

A plugin groups the extensions contributed by an installed package:

- template function libraries,
- validation matcher libraries,
- global data dictionaries,
- named collaborators (endpoints, marshallers, dictionaries).

The plugin model itself is purely declarative. It is exposed through the
`courier_plugins` entry point group and consumed by the context factory.
"""

from typing import Any

from pydantic import Field

from pytest_courier.dictionaries import DataDictionary
from pytest_courier.functions import FunctionLibrary
from pytest_courier.matchers import MatcherLibrary
from pytest_courier.models import SchemaModel
from pytest_courier.names import Variable  # noqa: TC001

__all__ = (
    'DataDictionary',
    'FunctionLibrary',
    'MatcherLibrary',
    'Plugin',
)


class Plugin(SchemaModel):
    """Declarative container for plugin extensions.

    All contained elements are optional, allowing plugins to provide
    partial extensions.
    """

    name: Variable = Field(
        title='Plugin name',
        description=(
            'Name of the plugin used in diagnostics. '
            'Typically corresponds to the plugin package.'
        ),
    )

    functions: list[FunctionLibrary] = Field(
        default_factory=list,
        title='Function libraries',
        description='Template function libraries registered under their prefixes.',
    )

    matchers: list[MatcherLibrary] = Field(
        default_factory=list,
        title='Matcher libraries',
        description='Validation matcher libraries registered under their prefixes.',
    )

    dictionaries: list[DataDictionary] = Field(
        default_factory=list,
        title='Global dictionaries',
        description=(
            'Dictionaries appended to the processor chain of every context. '
            'Only dictionaries with global scope are ever applied from the chain.'
        ),
    )

    references: dict[str, Any] = Field(
        default_factory=dict,
        title='Named collaborators',
        description='Objects bound by name in the reference resolver of every context.',
    )
