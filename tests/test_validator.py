"""Tests for tool-argument validation and tool descriptor input normalization."""

from toolpilot.agent.validator import validate_tool_arguments
from toolpilot.core.schema import ToolDescriptor


def test_unknown_tool_fails_closed(weather_tool: ToolDescriptor) -> None:
    """A tool that is not among the known descriptors is invalid."""

    result = validate_tool_arguments("stocks.quote", {"symbol": "ACME"}, [weather_tool])
    assert not result.valid
    assert result.error == "Tool stocks.quote not found"


def test_tool_without_schema_passes() -> None:
    """Nothing declared means nothing to check."""

    tool = ToolDescriptor(name="ping", description="Ping the service")
    assert validate_tool_arguments("ping", {}, [tool]).valid


def test_missing_required_parameter_is_reported(weather_tool: ToolDescriptor) -> None:
    """Required inputs absent from the arguments are listed; optional ones are not."""

    result = validate_tool_arguments("weather.current", {"units": "metric"}, [weather_tool])
    assert not result.valid
    assert result.missing_parameters == ["city"]
    assert result.error == "Missing required parameters: city"


def test_complete_arguments_pass(weather_tool: ToolDescriptor) -> None:
    """All required inputs present is valid, extra arguments are tolerated."""

    result = validate_tool_arguments("weather.current", {"city": "Paris", "x": 1}, [weather_tool])
    assert result.valid
    assert result.missing_parameters == []


def test_validation_is_idempotent(weather_tool: ToolDescriptor) -> None:
    """Same descriptors and arguments, same verdict."""

    verdicts = {
        validate_tool_arguments("weather.current", {}, [weather_tool]).model_dump_json()
        for _ in range(5)
    }
    assert len(verdicts) == 1


def test_json_schema_inputs_are_normalized() -> None:
    """A JSON-Schema object becomes per-parameter info with required flags."""

    tool = ToolDescriptor(
        name="news.search",
        inputs={
            "type": "object",
            "properties": {"q": {"type": "string", "description": "query"}, "page": {}},
            "required": ["q", "country"],
        },
    )
    assert tool.inputs is not None
    assert tool.inputs["q"].required and tool.inputs["q"].type == "string"
    assert not tool.inputs["page"].required
    assert sorted(tool.required_inputs) == ["country", "q"]

    result = validate_tool_arguments("news.search", {"q": "python"}, [tool])
    assert result.missing_parameters == ["country"]


def test_list_inputs_are_normalized() -> None:
    """A list of named parameter entries is accepted."""

    tool = ToolDescriptor(
        name="news.top",
        inputs=[{"name": "country", "required": True, "type": "string"}, {"name": "category"}],
    )
    assert tool.required_inputs == ["country"]


def test_json_schema_without_properties_has_no_parameters() -> None:
    """An object schema with no properties declares no parameters, so any arguments pass."""

    tool = ToolDescriptor(name="ping", inputs={"type": "object"})
    assert tool.inputs == {}
    assert tool.required_inputs == []
    assert validate_tool_arguments("ping", {}, [tool]).valid


def test_json_schema_with_only_required_names() -> None:
    """Names listed under ``required`` count even when ``properties`` is absent."""

    tool = ToolDescriptor(name="news.search", inputs={"type": "object", "required": ["q"]})
    assert tool.required_inputs == ["q"]

    result = validate_tool_arguments("news.search", {}, [tool])
    assert not result.valid
    assert result.missing_parameters == ["q"]
