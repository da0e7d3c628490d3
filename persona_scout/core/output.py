"""
Output Validator
Turns the model's final answer into a persona dict.
"""
import json
from typing import Any, Dict, Optional

from ..errors import MalformedOutputError


def extract_first_json(text: str) -> Optional[str]:
    """Substring from the first ``{`` to the last ``}``, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def parse_persona(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse the final answer, recovering JSON wrapped in prose or code fences.

    Only checks that a JSON object comes out; persona fields are not validated.

    Raises:
        MalformedOutputError: no JSON object can be recovered
    """
    if not content or not content.strip():
        raise MalformedOutputError("Model returned an empty answer")

    persona = _loads_object(content)
    if persona is not None:
        return persona

    extracted = extract_first_json(content)
    if extracted is not None:
        persona = _loads_object(extracted)
        if persona is not None:
            return persona

    raise MalformedOutputError("Model did not return JSON")
