"""
Fast tests for data-URI decoding.

No I/O - pure in-memory unit tests.
"""

import pytest

from aggregator.encoding import decode_if_encoded, decode_tree
from conftest import encode_data_uri


def test_text_data_uri_decodes_to_str():
    assert decode_if_encoded("data:text/plain;base64,SGVsbG8=") == "Hello"


def test_binary_data_uri_decodes_to_bytes():
    value = decode_if_encoded("data:application/octet-stream;base64,SGVsbG8=")
    assert value == b"Hello"
    assert isinstance(value, bytes)


def test_empty_value_is_absent():
    assert decode_if_encoded("") is None
    assert decode_if_encoded(None) is None


@pytest.mark.parametrize("value", ["plain", "SGVsbG8=", "test", "data:text/plain,Hello", "https://example.com"])
def test_plain_strings_unchanged_and_idempotent(value):
    once = decode_if_encoded(value)
    assert once == value
    assert decode_if_encoded(once) == once


def test_malformed_base64_returns_original():
    value = "data:text/plain;base64,not*base64!"
    assert decode_if_encoded(value) == value


def test_invalid_utf8_text_returns_original():
    value = "data:text/plain;base64,//79"
    assert decode_if_encoded(value) == value


def test_multiline_payload_is_accepted():
    pem = "-----BEGIN KEY-----\nabc\n-----END KEY-----\n"
    encoded = encode_data_uri(pem)
    wrapped = encoded[:30] + "\n" + encoded[30:]
    assert decode_if_encoded(wrapped) == pem


def test_content_type_case_insensitive():
    assert decode_if_encoded("data:Text/Plain;base64,SGVsbG8=") == "Hello"


def test_non_string_values_pass_through():
    assert decode_if_encoded(42) == 42
    assert decode_if_encoded(True) is True


def test_decode_tree_walks_nested_values():
    tree = {
        "app": {
            "greeting": "data:text/plain;base64,SGVsbG8=",
            "blob": "data:application/octet-stream;base64,AAE=",
            "hosts": ["a", "data:text/plain;base64,Yg=="],
            "port": 8080,
            "empty": "",
        }
    }
    decoded = decode_tree(tree)
    assert decoded == {
        "app": {
            "greeting": "Hello",
            "blob": b"\x00\x01",
            "hosts": ["a", "b"],
            "port": 8080,
            "empty": "",
        }
    }
    # input untouched
    assert tree["app"]["greeting"].startswith("data:")


def test_media_type_parameters_are_accepted():
    assert decode_if_encoded("data:text/plain;charset=utf-8;base64,SGVsbG8=") == "Hello"
    assert decode_if_encoded("data:application/json;name=cfg.json;base64,e30=") == b"{}"


def test_parameter_without_base64_marker_is_unchanged():
    value = "data:text/plain;charset=utf-8,Hello"
    assert decode_if_encoded(value) == value
