"""Tests for envelope formatting and OData stripping."""

from __future__ import annotations

import copy
import json

from ms365_graph.adapters.ms365.formatting import (
    format_error_response,
    format_json_response,
    strip_odata,
)


def _text(envelope: dict) -> str:
    assert len(envelope["content"]) == 1
    assert envelope["content"][0]["type"] == "text"
    return envelope["content"][0]["text"]


def test_strip_odata_removes_keys_at_every_depth() -> None:
    payload = {
        "@odata.context": "https://graph.microsoft.com/v1.0/$metadata#users",
        "@odata.nextLink": "https://graph.microsoft.com/v1.0/users?$skip=1",
        "value": [
            {"@odata.etag": "W/\"1\"", "id": "1", "tags": ["a", "b"]},
            {"id": "2", "manager": {"@odata.type": "#microsoft.graph.user", "displayName": "Ann"}},
        ],
        "count": 2,
    }

    assert strip_odata(payload) == {
        "value": [
            {"id": "1", "tags": ["a", "b"]},
            {"id": "2", "manager": {"displayName": "Ann"}},
        ],
        "count": 2,
    }


def test_strip_odata_does_not_mutate_input() -> None:
    payload = {"@odata.context": "ctx", "nested": {"@odata.id": "x", "keep": 1}}
    original = copy.deepcopy(payload)

    strip_odata(payload)

    assert payload == original


def test_strip_odata_keeps_non_prefixed_keys() -> None:
    payload = {"odata.count": 1, "x@odata.y": 2, "@odata": 3}
    assert strip_odata(payload) == payload


def test_strip_odata_passes_scalars_through() -> None:
    assert strip_odata("text") == "text"
    assert strip_odata(5) == 5
    assert strip_odata(None) is None


def test_format_pretty_prints_stripped_payload() -> None:
    envelope = format_json_response({"@odata.context": "ctx", "id": "1", "items": [1, 2]})

    assert _text(envelope) == '{\n  "id": "1",\n  "items": [\n    1,\n    2\n  ]\n}'
    assert "meta" not in envelope
    assert "isError" not in envelope


def test_format_only_odata_keys_becomes_empty_object() -> None:
    envelope = format_json_response({"@odata.context": "ctx", "@odata.count": 0})
    assert _text(envelope) == "{}"


def test_format_none_reports_success() -> None:
    assert _text(format_json_response(None)) == '{"success":true}'


def test_format_raw_response_is_compact_and_unstripped() -> None:
    value = {"@odata.context": "ctx", "name": "Zoë"}

    envelope = format_json_response(value, raw_response=True)

    assert _text(envelope) == '{"@odata.context":"ctx","name":"Zoë"}'


def test_format_header_wrapper_moves_metadata_to_meta() -> None:
    wrapped = {
        "data": {"@odata.etag": "W/\"9\"", "id": "evt-1"},
        "_headers": {"content-type": "application/json"},
        "_etag": "W/\"9\"",
    }

    envelope = format_json_response(wrapped)

    assert json.loads(_text(envelope)) == {"id": "evt-1"}
    assert envelope["meta"] == {
        "etag": "W/\"9\"",
        "headers": {"content-type": "application/json"},
    }


def test_format_header_wrapper_raw_emits_data_unmodified() -> None:
    wrapped = {"data": {"@odata.etag": "1", "id": "a"}, "_headers": {"etag": "1"}}

    envelope = format_json_response(wrapped, raw_response=True)

    assert _text(envelope) == '{"@odata.etag":"1","id":"a"}'
    assert envelope["meta"] == {"headers": {"etag": "1"}}


def test_format_header_wrapper_without_data_reports_success() -> None:
    envelope = format_json_response({"_headers": {}, "_etag": "abc"})

    assert _text(envelope) == '{"success":true}'
    assert envelope["meta"] == {"etag": "abc"}


def test_format_error_response_shape() -> None:
    envelope = format_error_response("No access token available")

    assert envelope == {
        "content": [{"type": "text", "text": '{"error":"No access token available"}'}],
        "isError": True,
    }
