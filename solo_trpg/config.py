"""App configuration — narrator selection and LLM connection settings.

get_config() returns defaults, overlaid with an optional JSON file and
then with environment variables (a .env file is loaded by app.py):

  SOLO_TRPG_CONFIG     path to a JSON config file
  NARRATOR             "scripted" (default) or "llm"
  LLM_PROVIDER_URL     base URL of the completion backend
  LLM_API_KEY          bearer token, optional
  LLM_PROVIDER_FORMAT  "koboldcpp" (default) or "openai"
  LLM_MODEL            model name, openai format only
  LLM_TIMEOUT          request timeout in seconds (default 120)
  LLM_MAX_RETRIES      transport retries with backoff (default 2)
  NARRATOR_ATTEMPTS    attempts on malformed narrator output (default 3)

The JSON file uses the same shape as the returned dict; nested
"llm_connection" and "prompts" objects are merged key-by-key.
"""

import json
import os
from pathlib import Path
from typing import Any

_CONFIG_DEFAULTS: dict[str, Any] = {
    "narrator": "scripted",
    "narrator_attempts": 3,
    "llm_connection": {
        "provider_url": "",
        "api_key": "",
        "provider_format": "koboldcpp",
        "model": "",
        "timeout": 120.0,
        "max_retries": 2,
    },
    "prompts": {
        "scenario": "",
        "turn": "",
    },
}

# env var -> (section or None, key, type)
_ENV_OVERRIDES: dict[str, tuple[str | None, str, type]] = {
    "NARRATOR": (None, "narrator", str),
    "NARRATOR_ATTEMPTS": (None, "narrator_attempts", int),
    "LLM_PROVIDER_URL": ("llm_connection", "provider_url", str),
    "LLM_API_KEY": ("llm_connection", "api_key", str),
    "LLM_PROVIDER_FORMAT": ("llm_connection", "provider_format", str),
    "LLM_MODEL": ("llm_connection", "model", str),
    "LLM_TIMEOUT": ("llm_connection", "timeout", float),
    "LLM_MAX_RETRIES": ("llm_connection", "max_retries", int),
}


def _merge(config: dict[str, Any], stored: dict[str, Any]) -> None:
    for key, value in stored.items():
        if key not in config:
            continue
        if isinstance(config[key], dict) and isinstance(value, dict):
            config[key].update(value)
        else:
            config[key] = value


def get_config(path: Path | None = None) -> dict[str, Any]:
    """Read config: defaults, then the JSON file, then environment variables."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))

    if path is None and os.getenv("SOLO_TRPG_CONFIG"):
        path = Path(os.environ["SOLO_TRPG_CONFIG"])
    if path is not None and path.is_file():
        _merge(config, json.loads(path.read_text()))

    for env_name, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}") from e
        target = config[section] if section else config
        target[key] = value

    if config["narrator"] not in ("scripted", "llm"):
        raise ValueError(f"Unknown narrator {config['narrator']!r}, expected 'scripted' or 'llm'")
    return config
