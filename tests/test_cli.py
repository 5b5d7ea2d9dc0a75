"""Tests for the command-line utilities and the JSON Schema."""

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from pytest_courier.__main__ import cli
from pytest_courier.jsonschema import SchemaGenerator

if TYPE_CHECKING:
    from pathlib import Path

TEST_VALID = """
spec: case
name: Valid
---
action: echo
message: hi
"""

TEST_INVALID = """
action: teleport
"""


def test_schema_generation() -> None:
    """The schema describes headers and every registered action."""
    schema = json.loads(SchemaGenerator.make_schema())
    definitions = json.dumps(schema)

    assert schema['title'] == 'pytest-courier'
    assert '"send"' in definitions
    assert '"receive"' in definitions
    assert '"case"' in definitions


def test_schema_command() -> None:
    """Print the schema to standard output."""
    result = CliRunner().invoke(cli, ['schema', '--indent', '2'])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)['title'] == 'pytest-courier'


def test_functions_command() -> None:
    """List the built-in functions and matchers."""
    result = CliRunner().invoke(cli, ['functions', '--no-plugins'])

    assert result.exit_code == 0, result.output

    lines = result.stdout.splitlines()

    assert 'function courier:concat' in lines
    assert 'matcher  @contains@' in lines


def test_check_command(tmp_path: 'Path') -> None:
    """Report valid and invalid case files."""
    valid = tmp_path / 'test_valid.yaml'
    valid.write_text(TEST_VALID)
    invalid = tmp_path / 'test_invalid.yaml'
    invalid.write_text(TEST_INVALID)

    result = CliRunner().invoke(cli, ['check', str(valid)])

    assert result.exit_code == 0, result.output
    assert "'Valid' with 1 actions" in result.stdout

    result = CliRunner().invoke(cli, ['check', str(valid), str(invalid)])

    assert result.exit_code == 1
    assert '1 of 2 files are invalid' in result.output


def test_check_missing_file(tmp_path: 'Path') -> None:
    """Missing files are rejected before parsing."""
    result = CliRunner().invoke(cli, ['check', str(tmp_path / 'missing.yaml')])

    assert result.exit_code == 2
