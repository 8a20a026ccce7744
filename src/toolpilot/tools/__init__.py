"""
In-process tool provider for toolpilot.

This module provides a registry that turns plain Python functions into tools the agent loop can
discover and call.  Functions are registered with a decorator:

    provider = LocalToolProvider()

    @provider.register("weather.current", variables=["WEATHER_API_KEY"])
    def current_weather(city: str, units: str = "metric") -> dict:
        \"\"\"Current weather conditions for a city.\"\"\"
        ...

Parameter names, type hints and defaults become the tool's input schema; the docstring becomes its
description.  Declared *variables* are looked up in the environment before every call.
"""

import inspect
import logging
import os
import re
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Sequence,
    get_type_hints,
)

from toolpilot.agent.interfaces import BaseToolProvider
from toolpilot.agent.tool_executor import (
    MissingParametersError,
    MissingVariablesError,
    ToolExecutionError,
)
from toolpilot.core.schema import (
    ParameterInfo,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z0-9]+")
_NAMED_KINDS = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


class _RegisteredTool(NamedTuple):
    fn: Callable[..., Any]
    descriptor: ToolDescriptor
    variables: Sequence[str]


def _words(text: str) -> List[str]:
    return _WORD.findall(text.lower())


def describe_function(
    fn: Callable[..., Any], name: str, description: str | None = None
) -> ToolDescriptor:
    """Build a :class:`ToolDescriptor` from *fn*'s signature, type hints and docstring."""
    sig = inspect.signature(fn)
    type_hints = get_type_hints(fn)
    params: Dict[str, ParameterInfo] = {}
    for param_name, param in sig.parameters.items():
        if param.kind not in _NAMED_KINDS:
            continue
        param_type = type_hints.get(param_name, "any")
        param_type_name = getattr(param_type, "__name__", str(param_type))
        params[param_name] = ParameterInfo(
            type=param_type_name, required=param.default is inspect.Parameter.empty
        )
    return ToolDescriptor(
        name=name,
        description=description if description is not None else inspect.getdoc(fn) or "",
        inputs=params,
    )


class LocalToolProvider(BaseToolProvider):
    """Registry of Python callables exposed as tools."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._tools: Dict[str, _RegisteredTool] = {}
        self._environ = os.environ if environ is None else environ

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def register(
        self,
        name: str | None = None,
        *,
        description: str | None = None,
        variables: Sequence[str] = (),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        Register a tool function.

        Parameters
        ----------
        name:
            Tool name, unique within this provider.  Defaults to the function's ``__name__``.
        description:
            Overrides the function docstring as the tool description.
        variables:
            Environment variables (credentials, endpoints) the tool cannot run without.

        Returns
        -------
        Callable
            A decorator that registers the function and returns it unchanged.

        Raises
        ------
        ValueError
            If a tool with the same name is already registered.
        """

        def wrapper(fn: Callable[..., Any]) -> Callable[..., Any]:
            tool_name = name or fn.__name__
            if tool_name in self._tools:
                raise ValueError(f"Tool '{tool_name}' is already registered.")
            logger.debug("Registering tool '%s'", tool_name)
            self._tools[tool_name] = _RegisteredTool(
                fn=fn,
                descriptor=describe_function(fn, tool_name, description),
                variables=tuple(variables),
            )
            return fn

        return wrapper

    # ------------------------------------------------------------------ #
    # BaseToolProvider
    # ------------------------------------------------------------------ #
    def search(self, query: str, limit: int) -> List[ToolDescriptor]:
        """
        Rank tools by word overlap between *query* and each tool's name and description.

        Name hits weigh twice as much as description hits; ties keep registration order.  A query
        without any words matches every tool.
        """
        query_words = set(_words(query))
        if not query_words:
            return [tool.descriptor for tool in self._tools.values()][:limit]

        scored = []
        for position, tool in enumerate(self._tools.values()):
            name_hits = len(query_words & set(_words(tool.descriptor.name)))
            description_hits = len(query_words & set(_words(tool.descriptor.description)))
            score = 2 * name_hits + description_hits
            if score:
                scored.append((-score, position, tool.descriptor))
        scored.sort(key=lambda item: item[:2])
        return [descriptor for _, _, descriptor in scored[:limit]]

    def call(self, name: str, arguments: Dict[str, Any]) -> Any:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolExecutionError(f"Tool '{name}' is not registered.")

        missing_variables = [var for var in tool.variables if not self._environ.get(var)]
        if missing_variables:
            raise MissingVariablesError(missing_variables)

        sig = inspect.signature(tool.fn)
        try:
            sig.bind(**arguments)
        except TypeError as exc:
            # Argument mismatch: name the missing ones when that is the problem
            missing = [
                param.name
                for param in sig.parameters.values()
                if param.kind in _NAMED_KINDS
                and param.default is inspect.Parameter.empty
                and param.name not in arguments
            ]
            if missing:
                raise MissingParametersError(missing) from exc
            raise ToolExecutionError(f"Invalid arguments for tool '{name}': {exc}") from exc

        try:
            logger.debug("Executing tool '%s' with args=%s", name, arguments)
            return tool.fn(**arguments)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unhandled error in tool '%s'", name)
            raise ToolExecutionError(f"Tool '{name}' raised an error: {exc}") from exc

    def required_variables(self, name: str) -> List[str]:
        tool = self._tools.get(name)
        return list(tool.variables) if tool else []
