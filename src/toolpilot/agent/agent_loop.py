"""
Main orchestration loop for toolpilot.

Each user message drives the cycle

    analyze -> search -> decide -> (execute -> analyze ...) | respond

until the model answers, a tool failure makes further work pointless, or the iteration budget is
spent.  Progress is reported as a lazy stream of step events; every failure inside a phase is
absorbed so the caller always ends up with text to show.
"""

from __future__ import annotations

import json
import logging
from functools import partial
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
)

from toolpilot.agent.conversation import Conversation
from toolpilot.agent.decision_parser import parse_decision
from toolpilot.agent.interfaces import (
    BaseChatModel,
    BaseToolProvider,
    ModelInvocationError,
)
from toolpilot.agent.prompts import (
    DECISION_ERROR,
    DECISION_PROMPT,
    EMPTY_RESULT,
    FALLBACK_RESPONSE,
    MAX_ITERATIONS_MESSAGE,
    MISSING_PARAMETER,
    MISSING_VARIABLES,
    NEXT_STEP_CUE,
    NEXT_STEP_INSTRUCTION,
    NO_TOOLS,
    RECALL_PROMPTS,
    RESPONSE_ERROR,
    RESPONSE_PROMPT,
    RESULT_TOO_LONG,
    RETRY_HINT,
    SYSTEM_INSTRUCTION_PREFIX,
    TOOL_CALLED,
    TOOL_ERROR,
    TOOL_RESULT,
    UNKNOWN_TASK,
    VALIDATION_CORRECTION,
    VALIDATION_FAILED,
)
from toolpilot.agent.summarizer import ContextSummarizer
from toolpilot.agent.tokens import (
    TokenEstimator,
    estimate_tokens,
)
from toolpilot.agent.tool_executor import (
    FailureKind,
    ToolOutcome,
    execute_tool,
)
from toolpilot.agent.validator import validate_tool_arguments
from toolpilot.common import (
    preview,
    to_text,
)
from toolpilot.config import AgentConfig
from toolpilot.core.schema import (
    AgentStep,
    AnalyzeStep,
    CallTool,
    ConversationTurn,
    DecideStep,
    Decision,
    End,
    ExecuteStep,
    Respond,
    RespondStep,
    SearchStep,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)


class AgentLoop:
    """Drive a language model through tool discovery and execution for one conversation."""

    def __init__(
        self,
        model: BaseChatModel,
        tools: BaseToolProvider,
        config: AgentConfig | None = None,
        *,
        token_estimator: TokenEstimator | None = None,
    ) -> None:
        self._model = model
        self._tools = tools
        self.config = config or AgentConfig.from_settings()
        self._estimate: TokenEstimator = token_estimator or partial(
            estimate_tokens, chars_per_token=self.config.chars_per_token
        )
        self._summarizer = ContextSummarizer(model)
        self._conversation = Conversation(self.config.system_prompt)
        self._iterations = 0
        self._user_input = ""
        self._parameter_error = False
        logger.debug("AgentLoop configured: %s", self.config.model_dump(exclude={"system_prompt"}))

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def iterations(self) -> int:
        """Model-driven decisions taken during the current (or last) ``stream`` call."""
        return self._iterations

    def reset(self) -> None:
        """Drop the conversation history, keeping only the system prompt."""
        self._conversation.reset()

    def run(self, user_input: str) -> str:
        """Process *user_input* to completion and return the final answer."""
        final: str | None = None
        for step in self.stream(user_input):
            if isinstance(step, RespondStep):
                final = step.text
        if final is None:
            logger.info("Loop finished without a response")
            return FALLBACK_RESPONSE
        return final

    def stream(self, user_input: str) -> Iterator[AgentStep]:
        """
        Process *user_input*, yielding one event per finished phase.

        The generator is lazy: nothing happens until the first event is pulled, and abandoning it
        stops the loop before the next phase starts.  It normally ends with a :class:`RespondStep`;
        it ends silently only when the model chose ``end`` and the downgrade policy is off.
        """
        logger.info("Processing user input: %s", preview(user_input))
        self._conversation.begin(user_input)
        self._user_input = user_input
        self._iterations = 0
        self._parameter_error = False
        try:
            yield from self._cycle()
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error in agent loop")
            text = DECISION_ERROR.format(error=exc)
            self._conversation.append(ConversationTurn.assistant(text))
            yield RespondStep(text=text, message=text)

    # ------------------------------------------------------------------ #
    # Cycle
    # ------------------------------------------------------------------ #
    def _cycle(self) -> Iterator[AgentStep]:
        while True:
            try:
                task = self._analyze()
            except ModelInvocationError as exc:
                logger.error("Error analyzing task: %s", exc)
                yield AnalyzeStep(task=UNKNOWN_TASK, message=f"Task: {UNKNOWN_TASK}")
                failed = Respond(message=DECISION_ERROR.format(error=exc))
                yield DecideStep(decision=failed, message=f"Action: {failed.action}")
                yield self._respond()
                return
            yield AnalyzeStep(task=task, message=f"Task: {task}")

            tools = self._search(task)
            yield SearchStep(tools=tools, message=f"Found {len(tools)} tools")

            decision = self._decide(task, tools)
            yield DecideStep(decision=decision, message=f"Action: {decision.action}")

            if isinstance(decision, End):
                logger.info("Model ended the conversation")
                return
            if isinstance(decision, Respond):
                yield self._respond()
                return

            outcome = execute_tool(self._tools, decision.tool_name, decision.arguments)
            yield ExecuteStep(
                tool_name=decision.tool_name,
                arguments=decision.arguments,
                result=outcome.result,
                error=outcome.error,
                message="Tool executed" if outcome.ok else f"Tool failed: {outcome.error}",
            )

            final = self._fold_outcome(decision, outcome)
            if final is not None:
                yield final
                return
            # Back to analyze: the loop always re-plans after acting

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #
    def _analyze(self) -> str:
        system_prompt = f"{self.config.system_prompt}\n\n{NEXT_STEP_INSTRUCTION}"
        prompt = self._build_prompt(system_prompt, NEXT_STEP_CUE)
        task = self._invoke(prompt) or UNKNOWN_TASK
        logger.info("Analyzed task: %s", task)

        self._conversation.extend(
            [ConversationTurn.user(NEXT_STEP_CUE), ConversationTurn.assistant(task)]
        )
        return task

    def _search(self, task: str) -> List[ToolDescriptor]:
        limit = self.config.max_tools_per_search
        try:
            tools = list(self._tools.search(task, limit))[:limit]
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error searching tools for task '%s': %s", task, exc)
            return []

        logger.info("Found %d relevant tools", len(tools))
        for tool in tools:
            logger.debug("- %s: %s", tool.name, tool.description)
        return tools

    def _decide(self, task: str, tools: Sequence[ToolDescriptor]) -> Decision:
        if self._iterations >= self.config.max_iterations:
            logger.info("Reached max iterations (%d), responding", self.config.max_iterations)
            return Respond(message=MAX_ITERATIONS_MESSAGE)

        self._iterations += 1
        logger.info("Iteration %d/%d", self._iterations, self.config.max_iterations)

        prompt = self._build_prompt(self.config.system_prompt, self._decision_prompt(task, tools))
        try:
            raw = self._invoke(prompt)
        except ModelInvocationError as exc:
            logger.error("Error making decision: %s", exc)
            return Respond(message=DECISION_ERROR.format(error=exc))

        logger.debug("Raw decision: %s", raw)
        decision = parse_decision(raw, downgrade_end=self.config.downgrade_end)
        logger.info("Agent decision: %s", decision.action)

        if isinstance(decision, CallTool):
            logger.info("Selected tool: %s", decision.tool_name)
            validation = validate_tool_arguments(decision.tool_name, decision.arguments, tools)
            if not validation.valid:
                logger.warning("Tool arguments validation failed: %s", validation.error)
                self._conversation.append(
                    ConversationTurn.assistant(
                        VALIDATION_CORRECTION.format(
                            tool_name=decision.tool_name, error=validation.error
                        )
                    )
                )
                return Respond(message=VALIDATION_FAILED.format(error=validation.error))
        return decision

    def _fold_outcome(self, call: CallTool, outcome: ToolOutcome) -> Optional[RespondStep]:
        """Record *outcome* in the history; return the final step when the run cannot go on."""
        arguments = _dumps(call.arguments)

        if outcome.ok:
            self._conversation.append(
                ConversationTurn.assistant(
                    TOOL_CALLED.format(tool_name=call.tool_name, arguments=arguments)
                )
            )
            self._conversation.append(self._result_turn(outcome.result))
            return None

        if outcome.failure is FailureKind.MISSING_PARAMETERS:
            parameter = ", ".join(outcome.names) or "unknown parameter"
            self._conversation.append(
                ConversationTurn.user(
                    MISSING_PARAMETER.format(parameter=parameter, arguments=arguments)
                )
            )
            self._parameter_error = True
            logger.info("Tool '%s' is missing '%s', retrying", call.tool_name, parameter)
            return None

        if outcome.failure is FailureKind.MISSING_VARIABLES and outcome.names:
            text = MISSING_VARIABLES.format(
                tool_name=call.tool_name, variables=", ".join(outcome.names)
            )
        else:
            text = TOOL_ERROR.format(tool_name=call.tool_name, error=outcome.error)
        logger.error(text)
        self._conversation.append(ConversationTurn.assistant(text))
        return RespondStep(text=text, message=text)

    def _respond(self) -> RespondStep:
        logger.info("Generating response based on conversation history")
        prompt = self._build_prompt(self.config.system_prompt, self._response_prompt())
        try:
            text = self._invoke(prompt)
        except ModelInvocationError as exc:
            logger.error("Error generating response: %s", exc)
            text = RESPONSE_ERROR.format(error=exc)

        logger.info("Generated response: %s", preview(text))
        self._conversation.append(ConversationTurn.assistant(text))
        return RespondStep(text=text, message=preview(text))

    # ------------------------------------------------------------------ #
    # Prompt helpers
    # ------------------------------------------------------------------ #
    def _build_prompt(self, system_prompt: str, instruction: str) -> List[ConversationTurn]:
        """
        Assemble ``system + history + instruction``, summarizing the history first when the
        estimate exceeds the threshold.  The summarized history replaces the stored one.
        """

        def assemble() -> List[ConversationTurn]:
            return [
                ConversationTurn.system(system_prompt),
                *self._conversation.non_system(),
                ConversationTurn.user(instruction),
            ]

        prompt = assemble()
        estimated = self._estimate(prompt)
        if estimated > self.config.summarize_threshold:
            logger.info("Context too long (%d tokens), summarizing...", estimated)
            self._conversation.replace(self._summarizer.summarize(self._conversation.snapshot()))
            prompt = assemble()
        return prompt

    def _decision_prompt(self, task: str, tools: Sequence[ToolDescriptor]) -> str:
        if tools:
            tools_text = json.dumps(
                [
                    tool.model_dump(include={"name", "description", "inputs"}, exclude_none=True)
                    for tool in tools
                ],
                indent=2,
                ensure_ascii=False,
            )
        else:
            tools_text = NO_TOOLS
        retry_hint = RETRY_HINT if self._parameter_error else ""
        return DECISION_PROMPT.format(task=task, tools=tools_text, retry_hint=retry_hint)

    def _response_prompt(self) -> str:
        lowered = self._user_input.lower()
        for triggers, prompt in RECALL_PROMPTS:
            if any(trigger in lowered for trigger in triggers):
                return prompt
        return RESPONSE_PROMPT

    def _result_turn(self, result: Any) -> ConversationTurn:
        text = to_text(result)
        if not text.strip():
            return ConversationTurn.user(EMPTY_RESULT)
        if self._estimate([ConversationTurn.user(text)]) > self.config.summarize_threshold:
            logger.warning("Tool result too long (%d chars), truncating", len(text))
            return ConversationTurn.user(
                RESULT_TOO_LONG.format(preview=preview(text, self.config.result_preview_chars))
            )
        return ConversationTurn.user(TOOL_RESULT.format(result=text))

    # ------------------------------------------------------------------ #
    # Model access
    # ------------------------------------------------------------------ #
    def _prepare(self, turns: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        """Keep a single system turn at the head; demote it when the model has no system role."""
        system_turns = [turn for turn in turns if turn.is_system]
        prepared = [turn for turn in turns if not turn.is_system]
        if system_turns:
            head = system_turns[0]
            if not self.config.system_role_supported:
                head = ConversationTurn.user(SYSTEM_INSTRUCTION_PREFIX + head.content)
            prepared.insert(0, head)
        return prepared

    def _invoke(self, turns: Sequence[ConversationTurn]) -> str:
        prepared = self._prepare(turns)
        logger.debug("Invoking model with %d turns", len(prepared))
        try:
            reply = self._model.invoke(prepared)
        except Exception as exc:  # pylint: disable=broad-except
            raise ModelInvocationError(str(exc) or type(exc).__name__) from exc
        return str(reply).strip()


def _dumps(arguments: Dict[str, Any]) -> str:
    return json.dumps(arguments, ensure_ascii=False, default=str)
