"""
Mustache-style templating of push payloads.

A template is JSON text whose strings may contain {{dotted.path}} placeholders resolved
against the scene payload (dict keys, list indexes). A string that is exactly one
placeholder becomes the resolved value itself; a placeholder inside a longer string is
replaced by the value's JSON text (strings inserted as-is). Placeholders that do not
resolve stay as literal text.

Rendering works on the parsed JSON tree rather than substituting into the template
text, so "{{n}}" with n=5 yields 5 (not "5") and a substituted value can never break
the JSON structure of the template.
"""
import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")

_MISSING = object()


def resolve_path(data: Any, path: str) -> Any:
    """Walk data along a dotted path; returns _MISSING when any step does not exist."""
    current = data
    for part in path.strip().split("."):
        if isinstance(current, dict):
            if part not in current:
                return _MISSING
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING
    return current


def _render_string(text: str, data: Any) -> Any:
    whole = PLACEHOLDER_RE.fullmatch(text)
    if whole:
        value = resolve_path(data, whole.group(1))
        return text if value is _MISSING else value

    def replace(match: re.Match) -> str:
        value = resolve_path(data, match.group(1))
        if value is _MISSING:
            return match.group(0)
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    return PLACEHOLDER_RE.sub(replace, text)


def _render(node: Any, data: Any) -> Any:
    if isinstance(node, str):
        return _render_string(node, data)
    if isinstance(node, list):
        return [_render(item, data) for item in node]
    if isinstance(node, dict):
        return {k: _render(v, data) for k, v in node.items()}
    return node


def apply_template(template: str | None, data: Any) -> Any:
    """Render template against data. Empty or unparseable template -> data unchanged."""
    if not template:
        return data
    try:
        parsed = json.loads(template)
    except (TypeError, json.JSONDecodeError) as e:
        logger.warning("Template is not valid JSON, sending raw payload: %s", e)
        return data
    return _render(parsed, data)
