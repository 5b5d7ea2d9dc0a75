"""Data dictionaries.

Data dictionaries translate message content after a message is built
and before it is sent, or after a message is received and before it is
validated.
"""

from typing import Annotated, Any, Union

from pydantic import Field, RootModel, create_model

from .base import DataDictionary
from .chain import apply_dictionaries, apply_processors, global_dictionaries, global_processors
from .mapping import JsonPathMappingDictionary, SimpleMappingDictionary, XmlPathMappingDictionary

#: Dictionary kinds available in test case documents.
DICTIONARIES: dict[str, type[DataDictionary]] = {
    'text': SimpleMappingDictionary,
    'json': JsonPathMappingDictionary,
    'xml': XmlPathMappingDictionary,
}


def parse_dictionary(value: Any) -> Any:  # noqa: ANN401
    """Validate a dictionary document, passing other values through."""
    if not isinstance(value, dict):
        return value

    model = create_model(
        'Dictionary',
        __base__=RootModel,
        root=Annotated[Union[tuple(DICTIONARIES.values())], Field(discriminator='kind')],  # noqa: UP007
    )

    return model.model_validate({'kind': 'text', **value}).root


__all__ = (
    'DICTIONARIES',
    'DataDictionary',
    'JsonPathMappingDictionary',
    'SimpleMappingDictionary',
    'XmlPathMappingDictionary',
    'apply_dictionaries',
    'apply_processors',
    'global_dictionaries',
    'global_processors',
    'parse_dictionary',
)
