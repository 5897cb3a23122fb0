"""
Unit tests for bearer token utilities.
"""

import hashlib

import pytest

from upskills_core.utils.token_utils import generate_token, hash_token, parse_bearer_header, verify_token


class TestGenerateToken:
    def test_format(self):
        token = generate_token()

        assert token.startswith("ups_")
        assert len(token) == 36
        assert all(c.isalnum() or c in "-_" for c in token[4:])

    def test_tokens_are_random(self):
        assert len({generate_token() for _ in range(50)}) == 50

    def test_custom_prefix(self):
        assert generate_token("tst_").startswith("tst_")


class TestHashToken:
    def test_digest_of_salt_and_token(self):
        expected = hashlib.sha256(b"dev:ups_abc").hexdigest()

        assert hash_token("dev", "ups_abc") == expected
        assert len(hash_token("dev", "ups_abc")) == 64

    def test_salt_changes_digest(self):
        assert hash_token("a", "ups_abc") != hash_token("b", "ups_abc")

    def test_verify_token(self):
        digest = hash_token("dev", "ups_abc")

        assert verify_token("dev", "ups_abc", digest)
        assert not verify_token("dev", "ups_abd", digest)


class TestParseBearerHeader:
    """Authorization header parsing."""

    @pytest.mark.parametrize(
        "header,token",
        [
            ("Bearer ups_abc", "ups_abc"),
            ("bearer ups_abc", "ups_abc"),
            ("BEARER   ups_abc  ", "ups_abc"),
        ],
    )
    def test_valid(self, header, token):
        assert parse_bearer_header(header) == token

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcg==", "ups_abc"])
    def test_missing(self, header):
        assert parse_bearer_header(header) is None
