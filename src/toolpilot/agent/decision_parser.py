"""
Lenient parser turning free-form model output into a :data:`~toolpilot.core.schema.Decision`.

Models are asked to answer with a bare JSON object such as
    {"action": "call_tool", "tool_name": "<name>", "arguments": { ... }}
but routinely wrap it in a code fence or surround it with prose.  Two extraction strategies are
tried in order (a fenced ```json block, then the first balanced ``{...}`` span) and anything that
still fails to parse degrades to "respond with what the model said".
"""

import json
import logging
import re
from typing import (
    Any,
    Dict,
)

from toolpilot.core.schema import (
    CallTool,
    Decision,
    End,
    Respond,
)

logger = logging.getLogger(__name__)


class DecisionParseError(ValueError):
    """Raised when no JSON object can be recovered from the model output."""


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------
_FENCED_JSON = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)
_QUOTE = '"'
_ESCAPE = "\\"


def _find_matching_brace(s: str, i: int) -> int:
    """Given s[i] == '{', return index just past its matching '}'."""
    depth = 0
    in_string = False
    escaped = False
    while i < len(s):
        ch = s[i]
        if escaped:
            escaped = False
        elif ch == _ESCAPE:
            escaped = True
        elif ch == _QUOTE:
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i + 1
        i += 1
    raise DecisionParseError("unbalanced braces")


def _load_object(span: str) -> Dict[str, Any]:
    try:
        data = json.loads(span)
    except json.JSONDecodeError as exc:
        raise DecisionParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DecisionParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


# ---------------------------------------------------------------------------
# Extraction strategies
# ---------------------------------------------------------------------------
def extract_fenced_json(text: str) -> str:
    """Return the interior of the first ```json fenced block in *text*."""
    match = _FENCED_JSON.search(text)
    if match is None:
        raise DecisionParseError("no ```json block found")
    return match.group(1).strip()


def extract_braced_json(text: str) -> str:
    """
    Return the first balanced ``{...}`` span of *text*.

    Braces inside double-quoted strings (including escaped quotes) do not count towards the depth,
    so arguments such as ``{"q": "a } b"}`` survive intact.
    """
    start = text.find("{")
    if start == -1:
        raise DecisionParseError("no '{' found")
    return text[start : _find_matching_brace(text, start)]


def extract_decision_object(text: str) -> Dict[str, Any]:
    """Locate and decode the decision object, preferring a fenced block over a bare span."""
    try:
        span = extract_fenced_json(text)
    except DecisionParseError:
        span = extract_braced_json(text)
    logger.debug("Extracted decision JSON: %s", span)
    return _load_object(span)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def parse_decision(text: str, downgrade_end: bool = True) -> Decision:
    """
    Best-effort conversion of raw model output into a decision.  Never raises.

    Parameters
    ----------
    text:
        The model's raw reply.
    downgrade_end:
        When true, ``{"action": "end"}`` is read as ``respond`` so the user always gets an answer.

    Returns
    -------
    Decision
        ``CallTool`` / ``Respond`` / ``End``.  Unparseable output becomes ``Respond(message=text)``.
    """
    try:
        data = extract_decision_object(text)
    except DecisionParseError as exc:
        logger.warning("Could not parse decision JSON (%s), defaulting to respond", exc)
        return Respond(message=text)

    action = data.get("action") or "respond"

    if action == "end":
        if not downgrade_end:
            return End()
        logger.warning("Model chose 'end', converting to 'respond' to provide an answer")
        action = "respond"

    if action == "call_tool":
        tool_name = data.get("tool_name") or data.get("toolName")
        arguments = data.get("arguments", data.get("args")) or {}
        if not isinstance(tool_name, str) or not tool_name.strip():
            logger.warning("call_tool decision without a tool name: %s", text)
            return Respond(message=text)
        if not isinstance(arguments, dict):
            logger.warning("call_tool arguments are not an object: %r", arguments)
            return Respond(message=text)
        return CallTool(tool_name=tool_name.strip(), arguments=arguments)

    if action != "respond":
        logger.warning("Unknown action %r, defaulting to respond", action)

    message = data.get("message")
    return Respond(message=message if isinstance(message, str) else None)
