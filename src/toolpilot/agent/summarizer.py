"""Collapse older conversation turns into a single synthetic summary turn."""

import logging
from typing import (
    List,
    Sequence,
)

from toolpilot.agent.interfaces import BaseChatModel
from toolpilot.agent.prompts import (
    SUMMARY_PREFIX,
    SUMMARY_PROMPT,
)
from toolpilot.core.schema import ConversationTurn

logger = logging.getLogger(__name__)

RECENT_TURNS = 2


class ContextSummarizer:
    """
    Best-effort context compression.

    System turns and the most recent *recent_count* non-system turns are kept verbatim; everything
    in between is replaced by one user turn holding a model-written summary.
    """

    def __init__(self, model: BaseChatModel, recent_count: int = RECENT_TURNS) -> None:
        self._model = model
        self._recent_count = recent_count

    def summarize(self, turns: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        """
        Return a possibly shorter version of *turns*.

        Never raises: if the summary call fails the older turns are dropped without a summary.
        """
        system_turns = [turn for turn in turns if turn.is_system]
        other_turns = [turn for turn in turns if not turn.is_system]

        if len(other_turns) <= self._recent_count:
            return list(turns)

        to_summarize = other_turns[: -self._recent_count]
        recent = other_turns[-self._recent_count :]

        conversation_text = "\n".join(
            f"{turn.role.value.capitalize()}: {turn.content}" for turn in to_summarize
        )
        prompt = ConversationTurn.user(SUMMARY_PROMPT.format(conversation=conversation_text))

        try:
            summary = self._model.invoke([prompt]).strip()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Failed to summarize %d turns: %s", len(to_summarize), exc)
            return system_turns + recent

        logger.info("Summarized %d turns", len(to_summarize))
        return system_turns + [ConversationTurn.user(SUMMARY_PREFIX + summary)] + recent
