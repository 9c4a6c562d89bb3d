"""
Tests for response envelope parsing.
"""

from decimal import Decimal

import pytest

from conftest import envelope

from cryptsy.exchange.envelope import parse_envelope
from cryptsy.exchange.exceptions import (
    ApplicationFailureError,
    MalformedResponseError,
    MissingSuccessFieldError,
    ProtocolError,
)


class TestParseEnvelope:
    """parse_envelope tests"""

    def test_returns_payload_on_success(self):
        payload = parse_envelope(envelope({'fee': '0.0025', 'net': '9.9975'}))

        assert payload == {'fee': '0.0025', 'net': '9.9975'}

    def test_missing_return_is_none(self):
        assert parse_envelope(b'{"success": "1"}') is None

    def test_integer_success_is_accepted(self):
        assert parse_envelope(b'{"success": 1, "return": []}') == []

    def test_json_floats_decode_as_decimal(self):
        payload = parse_envelope(b'{"success": "1", "return": {"fee": 0.1}}')

        assert payload['fee'] == Decimal("0.1")
        assert isinstance(payload['fee'], Decimal)

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_envelope(b'<html>502 Bad Gateway</html>')

    def test_empty_body_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_envelope(b'')

    def test_invalid_utf8_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_envelope(b'\xff\xfe\x00{')

    def test_non_object_json_is_malformed(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_envelope(b'[{"success": "1"}]')

        assert "list" in str(exc_info.value)

    def test_missing_success_field(self):
        with pytest.raises(MissingSuccessFieldError) as exc_info:
            parse_envelope(b'{"return": {"fee": "1"}}')

        assert not isinstance(exc_info.value, MalformedResponseError)
        assert isinstance(exc_info.value, ProtocolError)

    def test_failure_carries_server_message(self):
        with pytest.raises(ApplicationFailureError) as exc_info:
            parse_envelope(envelope(success='0', error='Invalid nonce'))

        assert exc_info.value.server_message == 'Invalid nonce'
        assert 'Invalid nonce' in str(exc_info.value)

    def test_failure_without_message(self):
        with pytest.raises(ApplicationFailureError) as exc_info:
            parse_envelope(b'{"success": "0"}')

        assert exc_info.value.server_message is None

    def test_any_success_other_than_one_is_failure(self):
        with pytest.raises(ApplicationFailureError):
            parse_envelope(b'{"success": "true", "return": []}')

    def test_application_failure_is_not_a_protocol_error(self):
        with pytest.raises(ApplicationFailureError) as exc_info:
            parse_envelope(envelope(success='0', error='Insufficient funds'))

        assert not isinstance(exc_info.value, ProtocolError)
