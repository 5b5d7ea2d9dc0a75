"""YAML test case parser.

A test case file is a stream of YAML documents. The optional first
document is the case header (`spec: case`), every following document is
an action:

    spec: case
    name: Order roundtrip
    variables:
      orderId: ${courier:randomNumber(6)}
    ---
    action: send
    endpoint: orders
    message:
      payload: <Order><Id>${orderId}</Id></Order>

Endpoints, dictionaries and marshallers are referenced by name and
resolved through the context when the case runs.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal, Union

from pydantic import Field, RootModel, ValidationError, create_model
from yaml import SafeLoader, load_all
from yaml.error import MarkedYAMLError

from pytest_courier.actions import ACTIONS, ChildAction, TestAction, action_model
from pytest_courier.errors import DocumentError
from pytest_courier.models import DescribedMixin, SchemaModel
from pytest_courier.names import Variable  # noqa: TC001
from pytest_courier.testcase import TestCase
from pytest_courier.values import Value  # noqa: TC001

if TYPE_CHECKING:
    from io import TextIOBase

    from yaml import BaseLoader


class CaseHeader(DescribedMixin, SchemaModel):
    """Header document of a test case file."""

    #: Internal specification marker. Always `case` for case headers.
    spec: Literal['case']

    name: str | None = Field(
        default=None,
        title='Test case name',
        description='Name of the test case; defaults to the file name.',
    )

    variables: dict[Variable, Value] = Field(
        default_factory=dict,
        title='Variables',
        description='Variables bound before the first action, in declaration order.',
    )

    finally_actions: list[ChildAction] = Field(
        default_factory=list,
        alias='finally',
        title='Finally actions',
        description='Actions executed after the case actions, even after a failure.',
    )


def document_model() -> type[RootModel[CaseHeader | TestAction]]:
    """Build a root model accepting a case header or any registered action."""
    step = Annotated[Union[tuple(ACTIONS.values())], Field(discriminator='action')]  # noqa: UP007

    return create_model(  # type: ignore[no-any-return]
        'Document',
        __base__=RootModel,
        root=Union[CaseHeader, step],  # noqa: UP007
    )


class CaseParser:
    """Parser of YAML test case files."""

    def __init__(self, loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the parser.

        Args:
            loader: YAML loader class.
        """
        self.loader = loader

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> TestCase:
        """Parse a YAML stream into a test case.

        Args:
            content: YAML content as a string or file-like object.
            filename: Name of the source, used for the default case name
                and in error messages.

        Returns:
            The parsed test case.

        Raises:
            DocumentError: If YAML parsing or validation fails.
        """
        try:
            documents = [
                document
                for document in load_all(content, Loader=self.loader)
                if document is not None
            ]

        except MarkedYAMLError as base:
            raise DocumentError.from_yaml_error(base, filename=filename) from base

        step = action_model()
        header: CaseHeader | None = None
        actions: list[TestAction] = []

        for position, document in enumerate(documents):
            try:
                if isinstance(document, dict) and document.get('spec') == 'case':
                    item = CaseHeader.model_validate(document)
                else:
                    item = step.model_validate(document).root

            except ValidationError as base:
                raise DocumentError.from_pydantic_error(
                    base,
                    data=document,
                    filename=filename,
                    position=position,
                ) from base

            if isinstance(item, CaseHeader):
                if position > 0:
                    raise DocumentError('Header must be at first position')
                header = item
            else:
                actions.append(item)

        return self.make_case(header, actions, filename=filename)

    def parse_file(self, path: Path | str) -> TestCase:
        """Read and parse a test case file.

        Raises:
            DocumentError: If the file is not a valid test case.
        """
        path = Path(path)
        with path.open('rt', encoding='utf-8') as content:
            return self.parse(content, filename=str(path))

    @staticmethod
    def make_case(header: CaseHeader | None, actions: list[TestAction], *,
                  filename: str | None = None) -> TestCase:
        """Assemble a test case from its header and actions.

        Raises:
            DocumentError: If the case can not be assembled.
        """
        default_name = Path(filename).stem if filename else 'unnamed'

        try:
            return TestCase(
                name=(header.name if header else None) or default_name,
                description=header.description if header else None,
                variables=header.variables if header else {},
                actions=actions,
                finally_actions=header.finally_actions if header else [],
            )

        except ValidationError as base:
            raise DocumentError.from_pydantic_error(base, filename=filename) from base

