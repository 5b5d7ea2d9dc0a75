"""Core exception hierarchy.

This module defines the error and warning types used across the engine
to report template resolution failures, resource decoding problems,
dictionary and validation failures, plugin loading issues, and action
execution errors in a structured and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

from pytest_courier.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ValidationError

SNIPPET_START = ' ...'
SNIPPET_BREAK = ' ---'
SNIPPET_INDENT = 2

OPAQUE_VALUE = '<runtime object>'
LOCATION_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Location and data attached to an error for display.

    Every field is optional; missing fields are left out of the output.
    """

    #: Name of the source file where the error occurred.
    filename: str | None
    #: Zero-based line number in the source file.
    line_num: int | None
    #: Zero-based column number in the source file.
    column_num: int | None

    #: Name of the test case being executed.
    case_name: str | None
    #: Name of the action where the error occurred.
    action_name: str | None
    #: Zero-based position of the action or document.
    action_num: int | None

    #: Underlying exception, used for YAML problem marks.
    error: Exception | None

    #: Variables available at the moment of failure.
    context: dict[str, Any] | None
    #: Document element associated with the error.
    element: Any


def _sanitize(value: Any) -> Any:  # noqa: ANN401
    """Replace runtime objects with a placeholder, recursively."""
    if value is None or isinstance(value, SCALARS):
        return value

    if isinstance(value, MAPPINGS):
        return {key: _sanitize(item) for key, item in value.items()}

    if isinstance(value, SEQUENCES):
        return [_sanitize(item) for item in value]

    return OPAQUE_VALUE


def _indented(text: str, indent: int) -> list[str]:
    """Split text into indented non-blank lines."""
    return [f'{' ' * indent}{line}' for line in text.splitlines() if line.strip()]


def _as_yaml(value: Any, indent: int) -> list[str]:  # noqa: ANN401
    """Render a value as indented YAML lines."""
    return _indented(dump(_sanitize(value), indent=SNIPPET_INDENT, sort_keys=False), indent)


class ErrorFormatter:
    """Render engine errors with their location and a YAML excerpt."""

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            The message followed by location and excerpt lines, if any.
        """
        if not context:
            return message

        return linesep.join((
            message,
            *cls.location_lines(context),
            *cls.snippet_lines(context),
        ))

    @staticmethod
    def location_lines(context: ErrorContext, indent: int = LOCATION_INDENT) -> list[str]:
        """Describe where the error happened: file, case and action."""
        pad = ' ' * indent
        lines = []

        if filename := context.get('filename'):
            where = f'in "{filename}"'
            if (line_num := context.get('line_num')) is not None:
                where += f', line {line_num + 1}'
                if (column_num := context.get('column_num')) is not None:
                    where += f', column {column_num + 1}'
            lines.append(f'{pad}{where}')

        if case_name := context.get('case_name'):
            lines.append(f'{pad}in test case {case_name!r}')

        action_num = context.get('action_num')
        if action_name := context.get('action_name'):
            where = f'on action {action_name!r}'
            if action_num is not None:
                where += f' at position {action_num + 1}'
            lines.append(f'{pad}{where}')

        elif action_num is not None:
            lines.append(f'{pad}at document {action_num + 1}')

        return lines

    @staticmethod
    def snippet_lines(context: ErrorContext, indent: int = LOCATION_INDENT * 2) -> list[str]:
        """Show the YAML around a parser problem, or the failing element."""
        error = context.get('error')
        if isinstance(error, MarkedYAMLError) and error.problem_mark:
            return _indented(error.problem_mark.get_snippet(indent=0) or '', indent)

        if not (element := context.get('element')):
            return []

        lines = [f'{' ' * indent}{SNIPPET_START}']
        if variables := context.get('context'):
            lines.extend(_as_yaml({'variables': dict(variables)}, indent))
            lines.append(f'{' ' * indent}{SNIPPET_BREAK}')

        lines.extend(_as_yaml(element, indent))

        return lines


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    Used when a plugin cannot be loaded or a library member shadows an
    existing one, and strict mode is disabled.
    """


class CourierError(Exception, ErrorFormatter):
    """Base exception for all pytest-courier errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional runtime values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class UnknownVariableError(CourierError):
    """Error raised when a template references an unbound variable."""

    def __init__(self, name: str) -> None:
        """Initialize the error.

        Args:
            name: Exact name of the missing variable.
        """
        self.name = name

        super().__init__(f'Unknown variable {name!r}')


class NoSuchFunctionError(CourierError):
    """Error raised when a function call references an unknown function."""


class FunctionError(CourierError):
    """Error raised when a template function fails while being evaluated."""


class NoSuchMatcherError(CourierError):
    """Error raised when an expected value references an unknown matcher."""


class ValidationFailedError(CourierError):
    """Error raised when a received message does not match its control message."""


class EncodingError(CourierError):
    """Error raised for unsupported or invalid character encodings.

    The underlying decoding failure is available as `__cause__`.
    """


class ResourceError(CourierError):
    """Error raised when a resource reference can not be loaded."""


class ScriptError(CourierError):
    """Error raised when scripted message generation can not be performed."""


class DictionaryError(CourierError):
    """Error raised when a data dictionary fails to translate a message."""


class ReferenceNotFoundError(CourierError):
    """Error raised when a named collaborator can not be resolved."""

    def __init__(self, name: str, expected: type | None = None) -> None:
        """Initialize the error.

        Args:
            name: Name of the missing reference.
            expected: Optional expected type of the reference.
        """
        self.name = name
        self.expected = expected

        message = f'Unable to resolve reference {name!r}'
        if expected is not None:
            message += f' of type {expected.__name__!r}'

        super().__init__(message)


class PluginError(CourierError):
    """Error raised for fatal plugin-related failures.

    Raised when a plugin entry point is invalid or fails to load, or when
    a library member shadows an existing one, in strict mode.
    """

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)


class DocumentError(CourierError):
    """Error raised when a YAML test case document is invalid."""

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a document error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Optional name of the parsed file.

        Returns:
            DocumentError representing the YAML parsing failure.
        """
        mark = error.problem_mark
        error_context = ErrorContext(
            filename=filename or (mark.name if mark else None),
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * LOCATION_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None,
                            position: int | None = None) -> 'Self':
        """Create a document error from a Pydantic validation failure.

        Args:
            error: ValidationError raised by Pydantic.
            data: Document data.
            filename: Name of the source file.
            position: Position of the document in the file.

        Returns:
            DocumentError representing the first validation issue.
        """
        error_context = ErrorContext(
            filename=filename,
            action_num=position,
            element=data if isinstance(data, dict) else None,
        )

        message = 'Validation error'
        for item in error.errors(include_url=False, include_input=False):
            location = '.'.join(str(key) for key in item['loc'])
            message += f'{linesep}{' ' * LOCATION_INDENT}{location}: {item['msg']}'
            break

        return cls(message, context=error_context)


class ExecutionError(CourierError):
    """Error raised when an action or a container fails.

    Each level of the action tree wraps the failure it observed exactly
    once. The original failure is preserved as `__cause__` and can be
    reached through `origin`.
    """

    def __init__(self, action_name: str, cause: BaseException, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an execution error.

        Args:
            action_name: Name of the failing action or container.
            cause: Failure raised inside the action pipeline.
            context: Optional error context for formatting.
        """
        self.action_name = action_name
        self.cause = cause

        message = f'Action {action_name!r} failed'
        if reason := getattr(cause, 'message', None) or str(cause):
            message += f': {reason}'

        super().__init__(message, context=context)

    @property
    def origin(self) -> tuple[str, BaseException]:
        """Return the innermost failing action name and its original cause."""
        error: ExecutionError = self
        while isinstance(error.cause, ExecutionError):
            error = error.cause

        return error.action_name, error.cause
