"""
Response envelope formatting.

Every Graph call ends up as a tool-protocol envelope:

    {"content": [{"type": "text", "text": "<json>"}], "meta": {...}, "isError": true}

where meta and isError are optional. OData annotations (@odata.context,
@odata.etag, ...) are stripped from formatted payloads.
"""

import json
from typing import Any, Dict

ODATA_PREFIX = "@odata."


def strip_odata(value: Any) -> Any:
    """
    Return a copy of value without any @odata.* keys, at every depth.

    Lists are walked element-wise; scalars come back unchanged. The input is
    not modified.
    """
    if isinstance(value, dict):
        return {
            key: strip_odata(item)
            for key, item in value.items()
            if not (isinstance(key, str) and key.startswith(ODATA_PREFIX))
        }
    if isinstance(value, list):
        return [strip_odata(item) for item in value]
    return value


def to_json(value: Any) -> str:
    """Compact JSON, same output as JSON.stringify(value)."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def to_pretty_json(value: Any) -> str:
    """Two-space indented JSON, same output as JSON.stringify(value, null, 2)."""
    return json.dumps(value, ensure_ascii=False, indent=2)


def _text_content(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _format_payload(data: Any, raw_response: bool) -> Dict[str, Any]:
    if raw_response:
        return _text_content(to_json(data))
    if data is None:
        return _text_content(to_json({"success": True}))
    return _text_content(to_pretty_json(strip_odata(data)))


def format_json_response(data: Any, raw_response: bool = False) -> Dict[str, Any]:
    """
    Wrap a normalized Graph result into the response envelope.

    A dict carrying a _headers key is treated as a wrapper: its data field is
    the payload and _etag/_headers move into meta.

    Args:
        data: Normalized result (dict, list, scalar or None)
        raw_response: Emit compact JSON without OData stripping

    Returns:
        Envelope dict with content and, for wrappers, meta
    """
    if isinstance(data, dict) and "_headers" in data:
        meta: Dict[str, Any] = {}
        if data.get("_etag"):
            meta["etag"] = data["_etag"]
        if data.get("_headers"):
            meta["headers"] = data["_headers"]

        envelope = _format_payload(data.get("data"), raw_response)
        envelope["meta"] = meta
        return envelope

    return _format_payload(data, raw_response)


def format_error_response(message: str) -> Dict[str, Any]:
    """Terminal error envelope returned instead of raising."""
    envelope = _text_content(to_json({"error": message}))
    envelope["isError"] = True
    return envelope
