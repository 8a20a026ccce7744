"""Common utility functions for the project."""

import dataclasses
import json
import logging
import sys
from typing import Any

from pydantic import BaseModel

from toolpilot.config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def init_logging(level: str | None = None) -> None:
    """
    Configure the root logger for applications embedding the agent loop.

    Args:
        level: Logging level name (debug, info, warning, error, critical).  Defaults to
            ``settings.LOG_LEVEL``; unknown names fall back to INFO.
    """
    numeric = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=numeric, format=LOG_FORMAT, stream=sys.stdout)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(numeric)


def preview(text: str, limit: int = 100) -> str:
    """Return *text* cut to *limit* characters with a trailing ellipsis when shortened."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    return str(obj)


def to_text(value: Any) -> str:
    """
    Render an arbitrary tool payload as prompt text.

    Strings pass through untouched; everything else is JSON-encoded, with pydantic models and
    dataclasses dumped to plain dicts first.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=_json_default)
