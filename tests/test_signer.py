"""
Tests for request signing.
"""

from cryptsy.exchange.signer import HEADER_KEY, HEADER_SIGN, Signer, sign


class TestSign:
    """sign() tests"""

    def test_rfc4231_test_case_2(self):
        signature = sign(b"what do ya want for nothing?", b"Jefe")

        assert signature == (
            "164b7a7bfcf819e2e395fbe73b56e0a387bd64222e831fd610270cd7ea250554"
            "9758bf75c05a994a6d034f65f8f0e6fdcaeab1a34d4a6b4b636e070a38bce737"
        )

    def test_known_request_body(self):
        signature = sign(b"method=getinfo&nonce=1390000000000001", b"test-private-key")

        assert signature == (
            "83840112df2ece667f17bd4b381232bfea5af01367545ece91f5df89e8671b47"
            "06da15416fef4a651b6436086cc020cbf4f250d2f68594b8f441697cdc018034"
        )

    def test_deterministic(self):
        body = b"method=getmarkets&nonce=17"
        assert sign(body, b"k") == sign(body, b"k")

    def test_lowercase_hex_without_separators(self):
        signature = sign(b"method=getmarkets&nonce=17", b"k")

        assert len(signature) == 128
        assert signature == signature.lower()
        int(signature, 16)

    def test_any_body_change_changes_signature(self):
        assert sign(b"method=getinfo&nonce=1", b"k") != sign(b"method=getinfo&nonce=2", b"k")


class TestSigner:
    """Signer tests"""

    def test_headers(self):
        signer = Signer("public", "test-private-key")
        body = b"method=getinfo&nonce=1390000000000001"

        headers = signer.headers(body)

        assert headers[HEADER_KEY] == "public"
        assert headers[HEADER_SIGN] == sign(body, b"test-private-key")
        assert set(headers) == {"Sign", "Key"}

    def test_accepts_bytes_secret(self):
        body = b"method=getinfo&nonce=1"
        assert Signer("p", b"s").headers(body) == Signer("p", "s").headers(body)

    def test_repr_hides_secret(self):
        signer = Signer("public", "very-secret-value")

        assert "very-secret-value" not in repr(signer)
        assert "public" in repr(signer)
