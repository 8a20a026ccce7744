"""
Prompt templates and canned messages used by the agent loop.

Templates are ``str.format`` strings; literal JSON braces are doubled.
"""

# ---------------------------------------------------------------------------
# Analyze
# ---------------------------------------------------------------------------
NEXT_STEP_INSTRUCTION = (
    "Based on the conversation history, what is the next step that needs to be accomplished? "
    "Respond with a concise next step description. "
    "Do not include 'the next step is' just the next step description."
)
NEXT_STEP_CUE = "The next step is:\n"
UNKNOWN_TASK = "Unknown task"

# ---------------------------------------------------------------------------
# Decide
# ---------------------------------------------------------------------------
DECISION_PROMPT = """\
Given the current task: "{task}"

Available tools:
{tools}

Based on the conversation and available tools, decide what to do next:
1. If you have suitable tools available AND need to use them to accomplish the task, respond with: \
{{"action": "call_tool", "tool_name": "tool.name", "arguments": {{"arg1": "value1"}}}}
   - IMPORTANT: Include ALL required parameters in the arguments.
{retry_hint}\
2. If no suitable tools are available OR you can answer directly, respond with: \
{{"action": "respond"}}

IMPORTANT: Even if no tools are available, you should ALWAYS choose "respond" to provide a helpful \
answer to the user. Never choose "end" unless the user explicitly says goodbye or the conversation \
is truly finished.

Respond ONLY with the JSON object, no other text."""

RETRY_HINT = (
    "   - CRITICAL: There was a recent error about missing parameters. You MUST retry the tool "
    'call with the missing parameter included. Do NOT choose "respond".\n'
)
NO_TOOLS = "No tools available"

MAX_ITERATIONS_MESSAGE = (
    "I've reached the maximum number of iterations. "
    "Let me provide a response based on what I've gathered so far."
)
DECISION_ERROR = "I encountered an error: {error}"
VALIDATION_FAILED = "Tool argument validation failed: {error}"
VALIDATION_CORRECTION = (
    "I attempted to call {tool_name} but encountered an error: {error}. "
    "Let me try again with the correct parameters."
)

# ---------------------------------------------------------------------------
# Execute
# ---------------------------------------------------------------------------
TOOL_CALLED = "Tool called: {tool_name} with arguments: {arguments}"
TOOL_RESULT = "Tool result: {result}"
EMPTY_RESULT = "Result is empty. Try different arguments or a different tool."
RESULT_TOO_LONG = (
    "Result is too long to display. Try different arguments or a different tool. "
    "This is the beginning of the result: {preview}"
)
MISSING_PARAMETER = (
    'Error: The tool call failed because a required parameter was missing: "{parameter}". '
    "Please retry the tool call with this parameter included. "
    "Current arguments were: {arguments}"
)
MISSING_VARIABLES = "Tool {tool_name} requires the following variables to be set: {variables}."
TOOL_ERROR = "Error executing tool {tool_name}: {error}"

# ---------------------------------------------------------------------------
# Respond
# ---------------------------------------------------------------------------
RESPONSE_PROMPT = """\
Based on the conversation history, provide a helpful summary response to the user.

If tools were called and results obtained, summarize what was accomplished and provide the \
relevant information from the tool results.
If no tools were needed, provide a direct helpful response.

Be concise and helpful."""

FIRST_MESSAGE_PROMPT = (
    "The user is asking you to respond with only their first message from this conversation. "
    "Find and return ONLY their first message, nothing else."
)
PREVIOUS_MESSAGE_PROMPT = (
    "The user is asking what their previous message was. Look at the conversation history and "
    "tell them what they said in their previous message (the one before the current one)."
)
# (triggers, prompt) pairs checked against the last user message, first match wins
RECALL_PROMPTS = (
    (("only my first message", "respond with only"), FIRST_MESSAGE_PROMPT),
    (("what was my previous message", "what did i say before"), PREVIOUS_MESSAGE_PROMPT),
)

RESPONSE_ERROR = "I encountered an error generating the response: {error}"
FALLBACK_RESPONSE = "I'm sorry, I couldn't process your request."

# ---------------------------------------------------------------------------
# Summarize
# ---------------------------------------------------------------------------
SUMMARY_PROMPT = """\
Please summarize the following conversation history concisely, preserving key information, \
decisions made, and context:

{conversation}

Provide a concise summary that captures the essential points and context."""
SUMMARY_PREFIX = "Conversation summary: "

SYSTEM_INSTRUCTION_PREFIX = "[System instruction]: "
