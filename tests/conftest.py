"""Shared fakes for the agent loop tests: a scripted model and an in-memory tool provider."""

from typing import (
    Any,
    Dict,
    List,
    Sequence,
)

import pytest

from toolpilot.agent.interfaces import (
    BaseChatModel,
    BaseToolProvider,
)
from toolpilot.agent.prompts import NEXT_STEP_CUE
from toolpilot.config import AgentConfig
from toolpilot.core.schema import (
    ConversationTurn,
    ToolDescriptor,
)


class ScriptedModel(BaseChatModel):
    """
    Fake model that recognises which phase is prompting it from the last turn.

    ``decisions`` are replayed in order for decide prompts; the last one repeats.  Phases listed in
    ``fail_on`` raise instead of answering.
    """

    def __init__(
        self,
        decisions: Sequence[str] = ('{"action": "respond"}',),
        task: str = "find the weather in Paris",
        answer: str = "It is sunny in Paris.",
        summary: str = "the user asked about the weather",
        fail_on: Sequence[str] = (),
    ) -> None:
        self.decisions = list(decisions)
        self.task = task
        self.answer = answer
        self.summary = summary
        self.fail_on = set(fail_on)
        self.calls: List[List[ConversationTurn]] = []
        self.kinds: List[str] = []

    @staticmethod
    def classify(turns: Sequence[ConversationTurn]) -> str:
        last = turns[-1].content
        if last.startswith("Please summarize"):
            return "summarize"
        if last == NEXT_STEP_CUE:
            return "analyze"
        if "decide what to do next" in last:
            return "decide"
        return "respond"

    def invoke(self, turns: Sequence[ConversationTurn]) -> str:
        kind = self.classify(turns)
        self.calls.append(list(turns))
        self.kinds.append(kind)
        if kind in self.fail_on:
            raise RuntimeError(f"{kind} exploded")
        if kind == "summarize":
            return self.summary
        if kind == "analyze":
            return self.task
        if kind == "decide":
            return self.decisions.pop(0) if len(self.decisions) > 1 else self.decisions[0]
        return self.answer

    def calls_of(self, kind: str) -> List[List[ConversationTurn]]:
        return [call for call, call_kind in zip(self.calls, self.kinds) if call_kind == kind]


class FakeToolProvider(BaseToolProvider):
    """
    Tool provider returning canned search results and canned (or raised) call results.

    A list under ``results[name]`` is a script of per-call outcomes; wrap list payloads in one.
    """

    def __init__(
        self,
        tools: Sequence[ToolDescriptor] = (),
        results: Dict[str, Any] | None = None,
        variables: Dict[str, List[str]] | None = None,
    ) -> None:
        self.tools = list(tools)
        self.results = results or {}
        self.variables = variables or {}
        self.searches: List[str] = []
        self.calls: List[tuple] = []

    def search(self, query: str, limit: int) -> List[ToolDescriptor]:
        self.searches.append(query)
        return self.tools[:limit]

    def call(self, name: str, arguments: Dict[str, Any]) -> Any:
        self.calls.append((name, dict(arguments)))
        outcome = self.results.get(name)
        if isinstance(outcome, list):
            # Lists are scripts replayed call by call; the last entry repeats
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def required_variables(self, name: str) -> List[str]:
        return self.variables.get(name, [])


@pytest.fixture
def weather_tool() -> ToolDescriptor:
    return ToolDescriptor(
        name="weather.current",
        description="Current weather conditions for a city",
        inputs={"city": {"type": "string", "required": True}, "units": {"type": "string"}},
    )


@pytest.fixture
def config() -> AgentConfig:
    return AgentConfig(max_iterations=3)
