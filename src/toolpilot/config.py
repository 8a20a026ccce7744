"""Configuration settings for the application."""

from pydantic import (
    BaseModel,
    Field,
)
from pydantic_settings import BaseSettings

DEFAULT_SYSTEM_PROMPT = """\
You are a helpful AI assistant with access to a wide variety of tools.

Your workflow:
1. When given a user query, first analyze what task needs to be accomplished
2. Search for relevant tools that can help with the task
3. Either call appropriate tools or respond directly if no tools are needed
4. Provide clear, helpful responses based on tool results or your knowledge

Be concise and helpful in your responses."""


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Agent loop
    AGENT_MAX_ITERATIONS: int = 3
    AGENT_MAX_TOOLS_PER_SEARCH: int = 10
    AGENT_SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT
    AGENT_SUMMARIZE_THRESHOLD: int = 80_000
    AGENT_CHARS_PER_TOKEN: int = 4
    AGENT_RESULT_PREVIEW_CHARS: int = 100

    # Policy toggles
    AGENT_DOWNGRADE_END: bool = True  # Treat {"action": "end"} as "respond"
    AGENT_SYSTEM_ROLE_SUPPORTED: bool = True  # False for models without a system role (o1, o3)

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


class AgentConfig(BaseModel):
    """Per-instance configuration consumed by :class:`~toolpilot.agent.agent_loop.AgentLoop`."""

    max_iterations: int = Field(3, ge=1, description="Upper bound on model-driven decisions")
    max_tools_per_search: int = Field(10, ge=1, description="Tool search result cap")
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    summarize_threshold: int = Field(80_000, ge=1, description="Token estimate to summarize at")
    chars_per_token: int = Field(4, ge=1)
    result_preview_chars: int = Field(100, ge=0)
    downgrade_end: bool = True
    system_role_supported: bool = True

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "AgentConfig":
        """Build an agent configuration from the (environment driven) *source* settings."""
        source = source or settings
        return cls(
            max_iterations=source.AGENT_MAX_ITERATIONS,
            max_tools_per_search=source.AGENT_MAX_TOOLS_PER_SEARCH,
            system_prompt=source.AGENT_SYSTEM_PROMPT,
            summarize_threshold=source.AGENT_SUMMARIZE_THRESHOLD,
            chars_per_token=source.AGENT_CHARS_PER_TOKEN,
            result_preview_chars=source.AGENT_RESULT_PREVIEW_CHARS,
            downgrade_end=source.AGENT_DOWNGRADE_END,
            system_role_supported=source.AGENT_SYSTEM_ROLE_SUPPORTED,
        )
