"""Runtime context of a test case execution.

The context owns the variables of a running test case together with the
function and validation matcher registries, the message processor chain,
the reference resolver and the resource and scripting capabilities used
by message builders.

One context is created per test case execution and is never shared.
"""

from logging import getLogger
from typing import TYPE_CHECKING, Any

from pytest_courier.errors import CourierError, FunctionError, NoSuchFunctionError, UnknownVariableError
from pytest_courier.functions import FunctionRegistry
from pytest_courier.matchers import MatcherRegistry
from pytest_courier.processors import MessageProcessors
from pytest_courier.references import SimpleReferenceResolver
from pytest_courier.resources import FileResourceLoader
from pytest_courier.settings import CourierSettings
from pytest_courier.templates import parse_function_call, substitute
from pytest_courier.values import MAPPINGS, SEQUENCES, RuntimeValue, stringify

if TYPE_CHECKING:
    from pytest_courier.references import ReferenceResolver
    from pytest_courier.resources import ResourceLoader
    from pytest_courier.scripting import ScriptEngine
    from pytest_courier.templates import FunctionCall

logger = getLogger(__name__)


class TestContext:
    """Mutable per-case runtime state.

    Attributes:
        functions: Registry of template functions.
        matchers: Registry of validation matchers.
        message_processors: Live ordered chain of message processors.
        references: Resolver of named collaborators.
        resource_loader: Loader of resource references.
        script_engine: Injected script engine, if any.
        settings: Resolved runtime settings.
    """

    __test__ = False

    def __init__(self, *,
                 functions: FunctionRegistry | None = None,
                 matchers: MatcherRegistry | None = None,
                 message_processors: MessageProcessors | None = None,
                 references: 'ReferenceResolver | None' = None,
                 resource_loader: 'ResourceLoader | None' = None,
                 script_engine: 'ScriptEngine | None' = None,
                 settings: CourierSettings | None = None,
                 variables: dict[str, RuntimeValue] | None = None) -> None:
        """Initialize a context; missing collaborators get empty defaults."""
        self.settings = settings or CourierSettings()

        self.functions = functions or FunctionRegistry(strict=self.settings.strict)
        self.matchers = matchers or MatcherRegistry(strict=self.settings.strict)
        self.message_processors = message_processors or MessageProcessors()
        self.references = references or SimpleReferenceResolver()
        self.resource_loader = resource_loader or FileResourceLoader()
        self.script_engine = script_engine

        self._variables: dict[str, RuntimeValue] = dict(variables or {})

    @property
    def variables(self) -> dict[str, RuntimeValue]:
        """Return a snapshot of the bound variables."""
        return dict(self._variables)

    def set_variable(self, name: str, value: RuntimeValue) -> None:
        """Bind a variable, replacing any previous value."""
        logger.debug('set variable %r', name)
        self._variables[name] = value

    def get_variable(self, name: str) -> RuntimeValue:
        """Return the value of a bound variable.

        Raises:
            UnknownVariableError: If the variable is not bound.
        """
        try:
            return self._variables[name]

        except KeyError:
            raise UnknownVariableError(name) from None

    def has_variable(self, name: str) -> bool:
        """Check whether a variable is bound."""
        return name in self._variables

    def remove_variable(self, name: str) -> RuntimeValue:
        """Unbind a variable and return its value.

        Raises:
            UnknownVariableError: If the variable is not bound.
        """
        try:
            return self._variables.pop(name)

        except KeyError:
            raise UnknownVariableError(name) from None

    def resolve(self, template: str) -> str:
        """Resolve all placeholders of a template.

        Placeholders are replaced in a single left-to-right pass. Each
        placeholder is evaluated as a function call when it looks like
        one, and as a variable reference otherwise. Substituted text is
        inserted verbatim and never scanned again.

        A template that as a whole is a call to a function of a known
        library (`courier:randomUUID()`) is evaluated as well.

        Args:
            template: Template text.

        Returns:
            Resolved text.

        Raises:
            UnknownVariableError: If a placeholder references an unbound variable.
            NoSuchFunctionError: If a function call references an unknown function.
            FunctionError: If a function fails.
        """
        if (call := parse_function_call(template)) and self.functions.has_prefix(call.prefix):
            return stringify(self.call_function(call))

        return substitute(template, self._evaluate)

    def resolve_dynamic(self, value: RuntimeValue) -> RuntimeValue:
        """Resolve strings nested in mappings and sequences.

        Mapping keys are kept literal, non-string scalars are returned as is.
        """
        if isinstance(value, str):
            return self.resolve(value)

        if isinstance(value, MAPPINGS):
            return {
                key: self.resolve_dynamic(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [self.resolve_dynamic(item) for item in value]

        return value

    def call_function(self, call: 'FunctionCall') -> RuntimeValue:
        """Invoke a parsed function call with resolved arguments.

        Raises:
            NoSuchFunctionError: If the function is not registered.
            FunctionError: If the function fails.
        """
        function = self.functions.get(call.prefix, call.name)
        if function is None:
            raise NoSuchFunctionError(f'Unknown function {call.prefix}{call.name}')

        args = [self.resolve(arg) for arg in call.args]

        try:
            return function(args, self)

        except CourierError:
            raise

        except Exception as base:
            raise FunctionError(f'Function {call.prefix}{call.name} failed: {base}') from base

    def _evaluate(self, expression: str) -> str:
        """Evaluate a single placeholder expression."""
        if call := parse_function_call(expression):
            return stringify(self.call_function(call))

        return stringify(self.get_variable(expression))
