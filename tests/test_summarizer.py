"""Tests for context summarization."""

from conftest import ScriptedModel

from toolpilot.agent.summarizer import ContextSummarizer
from toolpilot.core.schema import ConversationTurn

SYSTEM = ConversationTurn.system("You are helpful.")


def _history(count: int) -> list:
    turns = [SYSTEM]
    for i in range(count):
        if i % 2 == 0:
            turns.append(ConversationTurn.user(f"question {i}"))
        else:
            turns.append(ConversationTurn.assistant(f"answer {i}"))
    return turns


def test_short_history_is_returned_unchanged() -> None:
    """Two or fewer non-system turns leave nothing to compress, and the model is not asked."""

    model = ScriptedModel()
    summarizer = ContextSummarizer(model)
    for count in (0, 1, 2):
        turns = _history(count)
        assert summarizer.summarize(turns) == turns
    assert model.calls == []


def test_long_history_keeps_system_and_recent_turns() -> None:
    """Older turns collapse into one summary turn between the system turn and the last two."""

    model = ScriptedModel(summary="they talked about weather")
    turns = _history(6)

    result = ContextSummarizer(model).summarize(turns)

    assert result[0] == SYSTEM
    assert result[-2:] == turns[-2:]
    assert result[1] == ConversationTurn.user("Conversation summary: they talked about weather")
    assert len(result) <= len(turns)


def test_summary_prompt_renders_role_prefixed_lines() -> None:
    """Only the turns being summarized are sent, one ``Role: content`` line each."""

    model = ScriptedModel()
    ContextSummarizer(model).summarize(_history(5))

    (call,) = model.calls
    assert len(call) == 1
    prompt = call[0].content
    assert "User: question 0\nAssistant: answer 1\nUser: question 2" in prompt
    assert "answer 3" not in prompt
    assert "question 4" not in prompt


def test_failed_summary_drops_older_turns() -> None:
    """When the model fails, the result is the system turns plus the last two turns."""

    model = ScriptedModel(fail_on=["summarize"])
    turns = _history(5)

    assert ContextSummarizer(model).summarize(turns) == [SYSTEM, *turns[-2:]]
