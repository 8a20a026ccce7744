"""Owned, ordered turn buffer for one agent loop."""

from typing import (
    Iterable,
    List,
)

from toolpilot.core.schema import ConversationTurn


class Conversation:
    """
    The conversation history of a single :class:`~toolpilot.agent.agent_loop.AgentLoop`.

    The first turn is always the system prompt.  Phases only ever ``append``/``extend`` to it, take
    a ``snapshot`` to build prompts, or ``replace`` it wholesale after summarization.
    """

    def __init__(self, system_prompt: str) -> None:
        self._system = ConversationTurn.system(system_prompt)
        self._turns: List[ConversationTurn] = [self._system]

    def __len__(self) -> int:
        return len(self._turns)

    def begin(self, user_input: str) -> None:
        """Start a new exchange: keep prior non-system turns, re-pin the system prompt."""
        self._turns = [self._system, *self.non_system(), ConversationTurn.user(user_input)]

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        self._turns.extend(turns)

    def snapshot(self) -> List[ConversationTurn]:
        """Return a copy of the turns, safe to hand to prompt builders."""
        return list(self._turns)

    def replace(self, turns: Iterable[ConversationTurn]) -> None:
        """Swap in *turns*, restoring the leading system turn if it went missing."""
        turns = list(turns)
        if not turns or not turns[0].is_system:
            turns = [self._system, *(turn for turn in turns if not turn.is_system)]
        self._turns = turns

    def reset(self) -> None:
        """Forget everything but the system prompt."""
        self._turns = [self._system]

    def non_system(self) -> List[ConversationTurn]:
        return [turn for turn in self._turns if not turn.is_system]
