"""JSON Schema generation for test case documents."""

from json import dumps
from typing import TYPE_CHECKING

from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue

from pytest_courier.core import document_model

if TYPE_CHECKING:
    from pydantic_core import core_schema as core


class SchemaGenerator(GenerateJsonSchema):
    """JSON Schema generator for test case documents.

    Runtime objects (endpoints, marshallers, processors) may be given to
    models programmatically but have no document representation; they
    are rendered as unconstrained values.
    """

    @classmethod
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema of test case documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **document_model().model_json_schema(schema_generator=cls),
            'title': 'pytest-courier',
            'description': 'JSON Schema for pytest-courier test case documents',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def callable_schema(self, schema: 'core.CallableSchema') -> JsonSchemaValue:  # noqa: ARG002
        """Render callables as unconstrained values."""
        return {'description': 'Runtime callable'}

    def is_instance_schema(self, schema: 'core.IsInstanceSchema') -> JsonSchemaValue:  # noqa: ARG002
        """Render runtime objects as unconstrained values."""
        return {'description': 'Runtime object'}
