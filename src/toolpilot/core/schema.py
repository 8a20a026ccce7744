"""
Schema definitions for model <-> agent <-> tool messages.

These data models serve as the contract between the language model, the orchestration loop, the
tool provider and whoever consumes the step stream.  We keep them separate from runtime logic so
they can be imported anywhere without side-effects.
"""

from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------
class Role(str, Enum):
    """Who authored a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """One role-tagged message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, content=content)

    @property
    def is_system(self) -> bool:
        return self.role is Role.SYSTEM


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
class ParameterInfo(BaseModel):
    """Information about a tool parameter."""

    type: str = "any"
    required: bool = False
    description: Optional[str] = None


def _is_json_schema(value: Dict[str, Any]) -> bool:
    # Parameter infos in a plain mapping are dicts or type names, never a list or "object"
    return (
        value.get("type") == "object"
        or isinstance(value.get("properties"), dict)
        or isinstance(value.get("required"), list)
    )


class ToolDescriptor(BaseModel):
    """Metadata describing a discoverable tool, as returned by a tool search."""

    name: str = Field(..., description="Tool name, unique within one search result")
    description: str = ""
    inputs: Optional[Dict[str, ParameterInfo]] = Field(
        None, description="Parameter name -> info; None when the tool declares no schema"
    )
    outputs: Optional[Dict[str, Any]] = None

    @field_validator("inputs", mode="before")
    @classmethod
    def _normalize_inputs(cls, value: Any) -> Any:
        """Accept a plain mapping, a JSON-Schema object, or a list of named parameter entries."""
        if value is None:
            return None

        if isinstance(value, list):
            params: Dict[str, Any] = {}
            for entry in value:
                entry = dict(entry)
                params[entry.pop("name")] = entry
            return params

        if isinstance(value, dict) and _is_json_schema(value):
            required = set(value.get("required") or [])
            params = {}
            for name, prop in (value.get("properties") or {}).items():
                prop = prop if isinstance(prop, dict) else {}
                params[name] = {
                    "type": str(prop.get("type", "any")),
                    "required": name in required,
                    "description": prop.get("description"),
                }
            # A name can be required without being described under ``properties``
            for name in required - params.keys():
                params[name] = {"required": True}
            return params

        if isinstance(value, dict):
            return {
                name: {"type": info} if isinstance(info, str) else info
                for name, info in value.items()
            }

        return value

    @property
    def required_inputs(self) -> List[str]:
        """Names of the parameters the tool declares as required."""
        if not self.inputs:
            return []
        return [name for name, info in self.inputs.items() if info.required]


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------
class CallTool(BaseModel):
    """Invoke *tool_name* with *arguments*."""

    action: Literal["call_tool"] = "call_tool"
    tool_name: str = Field(..., min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)


class Respond(BaseModel):
    """Answer the user now.  *message* explains why when the loop forced the answer."""

    action: Literal["respond"] = "respond"
    message: Optional[str] = None


class End(BaseModel):
    """Stop without producing an answer."""

    action: Literal["end"] = "end"


Decision = Annotated[Union[CallTool, Respond, End], Field(discriminator="action")]


# ---------------------------------------------------------------------------
# Step events
# ---------------------------------------------------------------------------
class AnalyzeStep(BaseModel):
    """The model settled on the next task."""

    step: Literal["analyze"] = "analyze"
    task: str
    message: str = ""


class SearchStep(BaseModel):
    """Candidate tools were retrieved for the task."""

    step: Literal["search"] = "search"
    tools: List[ToolDescriptor] = Field(default_factory=list)
    message: str = ""


class DecideStep(BaseModel):
    """The loop resolved what to do next."""

    step: Literal["decide"] = "decide"
    decision: Decision
    message: str = ""


class ExecuteStep(BaseModel):
    """A tool was executed; exactly one of *result* / *error* is meaningful."""

    step: Literal["execute"] = "execute"
    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    error: Optional[str] = None
    message: str = ""


class RespondStep(BaseModel):
    """Terminal event carrying the final answer."""

    step: Literal["respond"] = "respond"
    text: str
    message: str = ""


AgentStep = Annotated[
    Union[AnalyzeStep, SearchStep, DecideStep, ExecuteStep, RespondStep],
    Field(discriminator="step"),
]
