"""Unit tests for password/refresh-token hashing and JWT issuance."""

import unittest
from datetime import timedelta

import jwt

from app.core.security import (
    InvalidTokenError,
    TokenClaims,
    TokenIssuer,
    generate_flow_token,
    hash_password,
    hash_token,
    verify_password,
    verify_token_hash,
)
from tests.fakes import FAST_ROUNDS, TEST_SECRET, make_token_issuer

CLAIMS = TokenClaims(subject_id=42, uid="2f1d7a0e-0000-4000-8000-000000000042", email="a@example.com")


class TestPasswordHashing(unittest.TestCase):
    def test_hash_verifies_and_is_salted(self) -> None:
        first = hash_password("correct horse", rounds=FAST_ROUNDS)
        second = hash_password("correct horse", rounds=FAST_ROUNDS)
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("correct horse", first))
        self.assertFalse(verify_password("wrong horse", first))

    def test_missing_or_malformed_hash_is_false(self) -> None:
        self.assertFalse(verify_password("anything", None))
        self.assertFalse(verify_password("anything", ""))
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestRefreshTokenHashing(unittest.TestCase):
    def test_tokens_sharing_a_long_prefix_do_not_match(self) -> None:
        """Two JWTs for the same user differ only after bcrypt's 72-byte window."""
        issuer = make_token_issuer()
        first = issuer.issue(CLAIMS, timedelta(days=7), "refresh")
        second = issuer.issue(CLAIMS, timedelta(days=7), "refresh")
        self.assertNotEqual(first, second)
        stored = hash_token(first, rounds=FAST_ROUNDS)
        self.assertTrue(verify_token_hash(first, stored))
        self.assertFalse(verify_token_hash(second, stored))


class TestFlowToken(unittest.TestCase):
    def test_is_64_hex_chars_and_unique(self) -> None:
        token = generate_flow_token()
        self.assertEqual(len(token), 64)
        int(token, 16)
        self.assertNotEqual(token, generate_flow_token())


class TestTokenIssuer(unittest.TestCase):
    def setUp(self) -> None:
        self.issuer = make_token_issuer()

    def test_pair_round_trips_claims(self) -> None:
        pair = self.issuer.issue_pair(CLAIMS)
        self.assertEqual(self.issuer.verify(pair.access_token, "access"), CLAIMS)
        self.assertEqual(self.issuer.verify(pair.refresh_token, "refresh"), CLAIMS)

    def test_subject_is_encoded_as_string(self) -> None:
        token = self.issuer.issue(CLAIMS, timedelta(minutes=1), "access")
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        self.assertEqual(payload["sub"], "42")
        self.assertEqual(payload["type"], "access")

    def test_token_types_are_not_interchangeable(self) -> None:
        pair = self.issuer.issue_pair(CLAIMS)
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(pair.refresh_token, "access")
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(pair.access_token, "refresh")

    def test_expired_token_rejected(self) -> None:
        token = self.issuer.issue(CLAIMS, timedelta(seconds=-1), "access")
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token, "access")

    def test_wrong_secret_rejected(self) -> None:
        other = TokenIssuer("another-secret-that-is-also-32-characters-long")
        token = other.issue(CLAIMS, timedelta(minutes=5), "access")
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token, "access")

    def test_garbage_rejected(self) -> None:
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify("not.a.jwt", "access")

    def test_non_numeric_subject_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "abc", "uid": "u", "email": "e", "type": "access", "exp": 9999999999},
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token, "access")


if __name__ == "__main__":
    unittest.main()
