# src/utils.py

import json
from typing import Any, Optional

def flatten_content(content: Any) -> str:
    """
    Reduces message content to plain text.

    Chat clients send either a string or a list of parts such as
    {"type": "text", "text": "..."}; non-text parts are dropped.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        pieces = []
        for part in content:
            if isinstance(part, str):
                pieces.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text" and part.get("text"):
                pieces.append(str(part["text"]))
        return "\n".join(p.strip() for p in pieces if p.strip())
    return str(content).strip()

def decode_arguments(raw: Any) -> dict:
    """
    Decodes a tool-call argument bag that arrived as JSON text or as an object.
    Raises ValueError when it is neither.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed tool arguments: {e.msg} at position {e.pos}") from e
        if not isinstance(parsed, dict):
            raise ValueError("Tool arguments must be a JSON object")
        return parsed
    raise ValueError(f"Unsupported tool arguments type: {type(raw).__name__}")

def describe_usage(usage: Optional[Any]) -> str:
    if usage is None:
        return "usage=n/a"
    return (
        f"prompt_tokens={getattr(usage, 'prompt_tokens', '?')} "
        f"completion_tokens={getattr(usage, 'completion_tokens', '?')}"
    )
