"""Tests for the conversation buffer."""

from toolpilot.agent.conversation import Conversation
from toolpilot.core.schema import (
    ConversationTurn,
    Role,
)


def test_starts_with_system_turn() -> None:
    """A fresh conversation holds only the system prompt."""

    conversation = Conversation("be nice")
    assert conversation.snapshot() == [ConversationTurn.system("be nice")]
    assert len(conversation) == 1


def test_begin_keeps_previous_exchange() -> None:
    """Starting a new exchange keeps earlier non-system turns and appends the user input."""

    conversation = Conversation("be nice")
    conversation.begin("hello")
    conversation.append(ConversationTurn.assistant("hi!"))
    conversation.begin("how are you?")

    turns = conversation.snapshot()
    assert [turn.role for turn in turns] == [Role.SYSTEM, Role.USER, Role.ASSISTANT, Role.USER]
    assert turns[-1].content == "how are you?"


def test_snapshot_is_a_copy() -> None:
    """Mutating a snapshot does not touch the buffer."""

    conversation = Conversation("be nice")
    snapshot = conversation.snapshot()
    snapshot.append(ConversationTurn.user("sneaky"))
    assert len(conversation) == 1


def test_replace_restores_missing_system_turn() -> None:
    """Replacing with turns that lost the system prompt puts it back in front."""

    conversation = Conversation("be nice")
    conversation.replace([ConversationTurn.user("summary"), ConversationTurn.assistant("ok")])

    turns = conversation.snapshot()
    assert turns[0] == ConversationTurn.system("be nice")
    assert [turn.content for turn in turns[1:]] == ["summary", "ok"]


def test_reset_keeps_only_system_turn() -> None:
    """Reset forgets the exchange history."""

    conversation = Conversation("be nice")
    conversation.begin("hello")
    conversation.extend([ConversationTurn.assistant("a"), ConversationTurn.user("b")])
    conversation.reset()
    assert conversation.non_system() == []
    assert len(conversation) == 1
