"""Dispatches tool calls to a tool provider and classifies their failures."""

import logging
import re
from enum import Enum
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from toolpilot.agent.interfaces import BaseToolProvider
from toolpilot.common import (
    preview,
    to_text,
)

logger = logging.getLogger(__name__)

_MISSING_NAME = re.compile(r"Missing required[^:]*:\s*(\w+)")


class ToolExecutionError(RuntimeError):
    """Raised when a requested tool cannot run or fails."""


class MissingParametersError(ToolExecutionError):
    """Raised when a tool call lacks required arguments."""

    def __init__(self, names: Iterable[str], message: str | None = None) -> None:
        self.names = list(names)
        super().__init__(message or f"Missing required parameters: {', '.join(self.names)}")


class MissingVariablesError(ToolExecutionError):
    """Raised when a tool depends on configuration variables that are not set."""

    def __init__(self, names: Iterable[str], message: str | None = None) -> None:
        self.names = list(names)
        super().__init__(message or f"Missing required variables: {', '.join(self.names)}")


class FailureKind(str, Enum):
    """Why a tool call failed."""

    MISSING_VARIABLES = "missing_variables"
    MISSING_PARAMETERS = "missing_parameters"
    OTHER = "other"


class ToolOutcome(BaseModel):
    """Result of one execute phase: a payload, or a classified failure."""

    result: Any = None
    failure: Optional[FailureKind] = None
    names: List[str] = Field(default_factory=list, description="Missing parameter/variable names")
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _required_variables(provider: BaseToolProvider, name: str) -> List[str]:
    try:
        return list(provider.required_variables(name))
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Could not list required variables for tool '%s': %s", name, exc)
        return []


def _classify(provider: BaseToolProvider, name: str, exc: Exception) -> ToolOutcome:
    """Map a provider exception onto a :class:`ToolOutcome` failure."""
    message = str(exc) or type(exc).__name__

    if isinstance(exc, MissingParametersError):
        return ToolOutcome(failure=FailureKind.MISSING_PARAMETERS, names=exc.names, error=message)
    if isinstance(exc, MissingVariablesError):
        names = exc.names or _required_variables(provider, name)
        return ToolOutcome(failure=FailureKind.MISSING_VARIABLES, names=names, error=message)

    # Untyped provider errors: fall back to the wording of the message
    lowered = message.lower()
    if "parameter" in lowered or ("missing required" in lowered and "variable" not in lowered):
        match = _MISSING_NAME.search(message)
        names = [match.group(1)] if match else []
        return ToolOutcome(failure=FailureKind.MISSING_PARAMETERS, names=names, error=message)
    if "variable" in lowered:
        names = _required_variables(provider, name)
        return ToolOutcome(failure=FailureKind.MISSING_VARIABLES, names=names, error=message)

    return ToolOutcome(failure=FailureKind.OTHER, error=message)


def execute_tool(
    provider: BaseToolProvider, name: str, args: Dict[str, Any] | None = None
) -> ToolOutcome:
    """
    Invoke tool *name* through *provider* with *args*.

    Parameters
    ----------
    provider:
        The tool provider that owns the tool.
    name:
        The tool name as returned by the provider's search.
    args:
        Keyword arguments passed verbatim to the tool.  If *None*, an empty dict is assumed.

    Returns
    -------
    ToolOutcome
        The tool's result, or a failure classified as missing parameters, missing variables or
        other.  Provider exceptions never propagate.
    """
    if args is None:
        args = {}

    logger.info("Executing tool '%s'", name)
    logger.debug("Tool '%s' arguments: %s", name, args)
    try:
        result = provider.call(name, args)
    except Exception as exc:  # pylint: disable=broad-except
        outcome = _classify(provider, name, exc)
        logger.error("Tool '%s' failed (%s): %s", name, outcome.failure.value, outcome.error)
        return outcome

    logger.info("Tool '%s' returned: %s", name, preview(to_text(result)))
    return ToolOutcome(result=result)
