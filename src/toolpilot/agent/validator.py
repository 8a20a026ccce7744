"""Pre-flight check of a proposed tool call against the tool's declared inputs."""

from typing import (
    Any,
    List,
    Mapping,
    Optional,
    Sequence,
)

from pydantic import (
    BaseModel,
    Field,
)

from toolpilot.core.schema import ToolDescriptor


class ValidationResult(BaseModel):
    """Verdict of :func:`validate_tool_arguments`."""

    valid: bool
    missing_parameters: List[str] = Field(default_factory=list)
    error: Optional[str] = None


def validate_tool_arguments(
    tool_name: str, arguments: Mapping[str, Any], tools: Sequence[ToolDescriptor]
) -> ValidationResult:
    """
    Check that every required input of *tool_name* is present in *arguments*.

    Unknown tools fail closed.  A tool without an input schema passes, there is nothing to check.
    """
    tool = next((candidate for candidate in tools if candidate.name == tool_name), None)
    if tool is None:
        return ValidationResult(valid=False, error=f"Tool {tool_name} not found")

    if tool.inputs is None:
        return ValidationResult(valid=True)

    missing = [name for name in tool.required_inputs if name not in arguments]
    if missing:
        return ValidationResult(
            valid=False,
            missing_parameters=missing,
            error=f"Missing required parameters: {', '.join(missing)}",
        )
    return ValidationResult(valid=True)
