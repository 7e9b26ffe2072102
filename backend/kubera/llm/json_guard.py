import json
import jsonschema
import logging
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger(__name__)


class JSONGuardError(ValueError):
    """Raised when model output is not usable JSON for the expected schema."""


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load JSON schema from schemas directory."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schema_path = schemas_dir / f"{schema_name}.schema.json"

    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _unwrap_single_key_array(data: Any) -> Any:
    """
    json_object mode often wraps arrays in an object (e.g. {"recommendations": [...]}).
    If we get a single-key dict whose value is a list, unwrap and return that list.
    """
    if isinstance(data, dict) and len(data) == 1:
        (val,) = data.values()
        if isinstance(val, list):
            return val
    return data


def _diagnose_invalid_json(text: str, error: json.JSONDecodeError) -> JSONGuardError:
    """Best explanation for text that json.loads rejected."""
    if text.startswith("{") and not text.endswith("}"):
        return JSONGuardError("Response appears truncated (object not closed)")
    if text.startswith("[") and not text.endswith("]"):
        return JSONGuardError("Response appears truncated (array not closed)")

    if text.count("{") != text.count("}"):
        return JSONGuardError(
            f"Unbalanced braces: {text.count('{')} open, {text.count('}')} close"
        )
    if text.count("[") != text.count("]"):
        return JSONGuardError(
            f"Unbalanced brackets: {text.count('[')} open, {text.count(']')} close"
        )
    return JSONGuardError(f"Invalid JSON: {error}")


def extract_json_text(raw: str) -> str:
    """
    Strip markdown code fences and reject output that is not valid JSON.

    Raises JSONGuardError for empty output, and for output json.loads cannot
    parse, naming truncation or unbalanced braces when that is the cause.
    """
    text = (raw or "").strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    if not text:
        raise JSONGuardError("Empty response")

    try:
        json.loads(text)
    except json.JSONDecodeError as e:
        raise _diagnose_invalid_json(text, e) from e

    return text


def parse_json_response(raw: str, schema_name: str, unwrap_arrays: bool = False) -> Any:
    """
    Parse model output and validate it against a named schema.

    Args:
        raw: Raw model output (may be fenced)
        schema_name: Schema file stem under kubera/schemas
        unwrap_arrays: Unwrap {"key": [...]} into [...] before validation

    Returns:
        The parsed JSON value

    Raises:
        JSONGuardError: on any parse or validation failure
    """
    try:
        data = json.loads(extract_json_text(raw))
        if unwrap_arrays:
            data = _unwrap_single_key_array(data)
        jsonschema.validate(instance=data, schema=load_schema(schema_name))
        return data
    except (json.JSONDecodeError, jsonschema.ValidationError, JSONGuardError) as e:
        preview = (raw or "")[:500]
        if len(raw or "") > 500:
            preview += "... [truncated]"
        logger.warning("⚠️  JSON validation failed for %s: %s", schema_name, e)
        logger.warning("   Raw response preview: %s", preview)
        if isinstance(e, JSONGuardError):
            raise
        raise JSONGuardError(f"JSON validation failed for {schema_name}: {e}") from e
