"""
Unit tests for session payload encoding.
"""

import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from sessionstore.errors import SessionSerializationError
from sessionstore.payload import check_payload, decode_payload, encode_payload

json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(), children, max_size=4),
    max_leaves=20,
)
payloads = st.dictionaries(st.text(), json_values, max_size=6)


class TestEncodePayload:

    def test_encodes_plain_json(self):
        assert encode_payload({"user": 1, "roles": ["admin"]}, "sqlite") == (
            '{"user": 1, "roles": ["admin"]}'
        )

    def test_empty_payload(self):
        assert encode_payload({}, "memory") == "{}"

    @pytest.mark.parametrize(
        "data",
        [
            {1: "a"},
            {"t": (1, 2)},
            {"s": {1, 2}},
            {"b": b"bytes"},
            {"nested": [{"deep": object()}]},
            {"inf": float("inf")},
            ["not", "a", "dict"],
            None,
        ],
    )
    def test_rejects_values_json_would_change_or_refuse(self, data):
        with pytest.raises(SessionSerializationError) as exc_info:
            encode_payload(data, "postgres")

        assert exc_info.value.backend == "postgres"

    def test_error_lists_offending_locations(self):
        with pytest.raises(SessionSerializationError) as exc_info:
            check_payload({"ok": 1, "bad": (1, 2)}, "redis")

        locations = [err["loc"] for err in exc_info.value.details["errors"]]
        assert any(loc.startswith("bad") for loc in locations)

    @given(payloads)
    def test_decode_inverts_encode(self, data):
        assert decode_payload(encode_payload(data, "memory"), "memory") == data


class TestDecodePayload:

    def test_decodes_bytes_and_str(self):
        assert decode_payload('{"a": 1}', "sqlite") == {"a": 1}
        assert decode_payload(b'{"a": 1}', "sqlite") == {"a": 1}

    @pytest.mark.parametrize("text", ["{not json", "[1, 2]", json.dumps("string"), None])
    def test_rejects_non_object_text(self, text):
        with pytest.raises(SessionSerializationError):
            decode_payload(text, "sqlite")
