"""Narrator output parsing: pull a JSON object out of free text and validate it."""

import json
import logging
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from .base import MalformedNarratorOutput

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict:
    """Return the outermost JSON object found in text.

    Markdown fences and any chatter before or after the object are
    ignored. Raises MalformedNarratorOutput when nothing parses.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)

    match = _OBJECT_RE.search(cleaned)
    if not match:
        raise MalformedNarratorOutput("No JSON object found in narrator output")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedNarratorOutput(f"Narrator output is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedNarratorOutput("Narrator output must be a JSON object")
    return data


def parse_model(text: str, model: type[M]) -> M:
    """Extract a JSON object from text and validate it as model."""
    data = extract_json_object(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug("narrator output failed validation as %s: %s", model.__name__, e)
        raise MalformedNarratorOutput(
            f"Narrator output does not match {model.__name__}: {e.error_count()} error(s)"
        ) from e
