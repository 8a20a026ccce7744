"""
Capability interfaces the agent loop talks to.

The loop never reaches a language model or a tool backend directly.  Anything that can turn a list
of turns into text is a model; anything that can search for and call tools is a tool provider.
Concrete back-ends subclass :class:`BaseChatModel` / :class:`BaseToolProvider`.
"""

from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Dict,
    List,
    Sequence,
)

from toolpilot.core.schema import (
    ConversationTurn,
    ToolDescriptor,
)


class ModelInvocationError(RuntimeError):
    """Raised when the language model cannot produce a reply."""


class BaseChatModel(ABC):
    """Abstract language model: ordered, role-tagged turns in, text out."""

    @abstractmethod
    def invoke(self, turns: Sequence[ConversationTurn]) -> str:
        """Return the model's reply to *turns*.  May raise on transient or permanent failure."""


class BaseToolProvider(ABC):
    """Abstract tool registry/dispatcher."""

    @abstractmethod
    def search(self, query: str, limit: int) -> List[ToolDescriptor]:
        """Return at most *limit* tools relevant to *query*, best match first."""

    @abstractmethod
    def call(self, name: str, arguments: Dict[str, Any]) -> Any:
        """
        Execute tool *name* with *arguments* and return its result.

        Raises
        ------
        MissingParametersError
            A required argument was not supplied.
        MissingVariablesError
            The tool needs configuration (credentials, endpoints) that is not set.
        Exception
            Any other failure.
        """

    def required_variables(self, name: str) -> List[str]:  # pylint: disable=unused-argument
        """Names of the configuration variables tool *name* depends on (none by default)."""
        return []
