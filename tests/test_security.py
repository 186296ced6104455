import unittest
from datetime import datetime, timedelta, timezone

from jose import jwt

from session_auth.exceptions import InvalidToken
from session_auth.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    hash_password,
    mint_token,
    verify_password,
    verify_token,
)

SECRET = "test-access-secret"
OTHER_SECRET = "test-refresh-secret"


class TestTokenSigner(unittest.TestCase):
    def test_verify_returns_subject_before_expiry(self):
        for subject in ("u1", "42", "0b5d3c1e9f"):
            token = mint_token(subject, timedelta(minutes=15), SECRET)
            claims = verify_token(token, SECRET)
            self.assertEqual(claims.subject_id, subject)
            self.assertEqual(claims.token_type, ACCESS_TOKEN_TYPE)

    def test_expiry_is_now_plus_ttl(self):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        token = mint_token("u1", timedelta(hours=24), SECRET)
        claims = verify_token(token, SECRET)

        self.assertGreaterEqual(claims.expires_at, before + timedelta(hours=24))
        self.assertLessEqual(claims.expires_at, before + timedelta(hours=24, seconds=2))

    def test_fails_once_expired(self):
        token = mint_token("u1", timedelta(minutes=15), SECRET)
        later = datetime.now(timezone.utc) + timedelta(minutes=16)

        with self.assertRaises(InvalidToken):
            verify_token(token, SECRET, now=later)

    def test_fails_when_expiry_equals_now(self):
        token = mint_token("u1", timedelta(minutes=15), SECRET)
        expires_at = verify_token(token, SECRET).expires_at

        with self.assertRaises(InvalidToken):
            verify_token(token, SECRET, now=expires_at)

    def test_negative_ttl_is_already_expired(self):
        token = mint_token("u1", timedelta(seconds=-1), SECRET)

        with self.assertRaises(InvalidToken):
            verify_token(token, SECRET)

    def test_fails_with_different_secret(self):
        token = mint_token("u1", timedelta(minutes=15), SECRET)

        with self.assertRaises(InvalidToken):
            verify_token(token, OTHER_SECRET)

    def test_fails_for_malformed_token(self):
        for token in ("", "not-a-token", "a.b.c"):
            with self.assertRaises(InvalidToken):
                verify_token(token, SECRET)

    def test_fails_for_tampered_payload(self):
        token = mint_token("u1", timedelta(minutes=15), SECRET)
        header, payload, signature = token.split(".")
        forged = mint_token("u2", timedelta(minutes=15), SECRET).split(".")[1]

        with self.assertRaises(InvalidToken):
            verify_token(".".join([header, forged, signature[::-1]]), SECRET)

    def test_fails_for_wrong_token_type(self):
        token = mint_token("u1", timedelta(minutes=15), SECRET, token_type=REFRESH_TOKEN_TYPE)

        with self.assertRaises(InvalidToken):
            verify_token(token, SECRET, token_type=ACCESS_TOKEN_TYPE)
        self.assertEqual(verify_token(token, SECRET, token_type=REFRESH_TOKEN_TYPE).subject_id, "u1")

    def test_fails_without_subject_or_expiry(self):
        no_subject = jwt.encode({"exp": datetime.now(timezone.utc) + timedelta(minutes=5)}, SECRET)
        no_expiry = jwt.encode({"sub": "u1"}, SECRET)

        for token in (no_subject, no_expiry):
            with self.assertRaises(InvalidToken):
                verify_token(token, SECRET)

    def test_tokens_minted_together_are_distinct(self):
        first = mint_token("u1", timedelta(minutes=15), SECRET)
        second = mint_token("u1", timedelta(minutes=15), SECRET)

        self.assertNotEqual(first, second)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_round_trip(self):
        hashed = hash_password("correct horse")

        self.assertNotEqual(hashed, "correct horse")
        self.assertTrue(verify_password("correct horse", hashed))
        self.assertFalse(verify_password("wrong horse", hashed))

    def test_malformed_hash_does_not_verify(self):
        self.assertFalse(verify_password("secret", "not-a-bcrypt-hash"))


if __name__ == "__main__":
    unittest.main()
