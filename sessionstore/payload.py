"""
Session payload encoding.

Every backend stores the payload as JSON text, or in the memory store's
case keeps the JSON text it would have stored. Payloads are checked
against the JSON data model before encoding so that a value which JSON
would silently change (a tuple, a non-string key) is rejected instead.
"""

import json
import logging
from typing import Any

from pydantic import JsonValue, TypeAdapter, ValidationError

from sessionstore.errors import serialization_error

logger = logging.getLogger(__name__)

_PAYLOAD_ADAPTER = TypeAdapter(dict[str, JsonValue])


def check_payload(data: Any, backend: str) -> None:
    """
    Check that session data is a JSON object made only of JSON values.

    Raises:
        SessionSerializationError: If it is not.
    """
    try:
        _PAYLOAD_ADAPTER.validate_python(data, strict=True)
    except ValidationError as e:
        _log_failure(
            "Session data is not a JSON object", backend, f"{e.error_count()} invalid value(s)"
        )
        raise serialization_error(
            f"Session data is not a JSON object: {e.error_count()} invalid value(s)",
            backend,
            details={"errors": [
                {"loc": ".".join(str(part) for part in err["loc"]), "type": err["type"]}
                for err in e.errors()
            ]},
        ) from e


def encode_payload(data: Any, backend: str) -> str:
    """
    Encode session data as JSON text.

    Args:
        data: The session payload. Must be a dict with string keys whose
            values are JSON values (dict, list, str, int, float, bool,
            None), nested arbitrarily.
        backend: Backend name recorded on the error.

    Returns:
        The JSON text.

    Raises:
        SessionSerializationError: If the payload is not plain JSON data.
    """
    check_payload(data, backend)
    try:
        return json.dumps(data, allow_nan=False)
    except (TypeError, ValueError) as e:
        _log_failure("Failed to serialize session", backend, e)
        raise serialization_error(
            f"Session data is not JSON serializable: {e}", backend
        ) from e


def decode_payload(text: Any, backend: str) -> dict[str, Any]:
    """
    Decode stored JSON text back into session data.

    Raises:
        SessionSerializationError: If the text is not a JSON object.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        _log_failure("Failed to deserialize session", backend, e)
        raise serialization_error(
            f"Stored session data is not valid JSON: {e}", backend
        ) from e

    if not isinstance(data, dict):
        _log_failure("Stored session data is not a JSON object", backend, None)
        raise serialization_error(
            f"Stored session data must be a JSON object, got {type(data).__name__}",
            backend,
        )
    return data


def _log_failure(message: str, backend: str, error: Any) -> None:
    context = {"backend": backend}
    if error is not None:
        context["error"] = str(error)
    logger.error(message, extra={"extra_data": context})
