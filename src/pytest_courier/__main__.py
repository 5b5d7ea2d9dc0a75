"""Command-line utilities for pytest-courier.

- `schema` prints the JSON Schema of test case documents;
- `functions` lists the registered template functions and matchers;
- `check` validates test case files without running them.
"""

from pathlib import Path

from click import ClickException, argument, echo, group, option
from click import Path as PathParam

from pytest_courier.errors import CourierError

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


@group(help='Command-line utilities for pytest-courier.')
def cli() -> None:
    """Root CLI group for pytest-courier tools."""
    return None


@cli.command(
    name='schema',
    help='Print the JSON Schema of test case documents to standard output.',
)
@option('--indent', type=int, default=4, show_default=True, help='JSON indentation.')
def print_schema(indent: int) -> None:
    """Generate and print the JSON Schema."""
    from pytest_courier.jsonschema import SchemaGenerator  # noqa: PLC0415

    echo(SchemaGenerator.make_schema(indent=indent))


@cli.command(
    name='functions',
    help='List the registered template functions and validation matchers.',
)
@option('--no-plugins', is_flag=True, default=False, help='Skip installed plugins.')
def list_functions(no_plugins: bool) -> None:  # noqa: FBT001
    """Print qualified function and matcher names."""
    from pytest_courier.core import TestContextFactory  # noqa: PLC0415

    try:
        factory = TestContextFactory(load_plugins=not no_plugins)

    except CourierError as error:
        raise ClickException(str(error)) from error

    for name in sorted(factory.functions):
        echo(f'function {name}')

    for name in sorted(factory.matchers):
        echo(f'matcher  @{name}@')


@cli.command(
    name='check',
    help='Validate test case files without running them.',
)
@argument('files', nargs=-1, type=InputFilepath)
def check_files(files: tuple[Path, ...]) -> None:
    """Parse every file and report the invalid ones."""
    from pytest_courier.core import CaseParser  # noqa: PLC0415

    parser = CaseParser()
    failed = 0

    for path in files:
        try:
            case = parser.parse_file(path)

        except CourierError as error:
            failed += 1
            echo(f'{path}: {error}', err=True)
            continue

        echo(f'{path}: {case.name!r} with {len(case.actions)} actions')

    if failed:
        raise ClickException(f'{failed} of {len(files)} files are invalid')


if __name__ == '__main__':
    cli()
