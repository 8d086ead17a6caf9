import time
import unittest

import jwt

from schoolfund.auth import (
    InMemoryIdentityProvider,
    InvalidIdTokenError,
    TokenService,
    resolve_user,
)
from schoolfund.tests.helpers import TEST_JWT_SECRET, ApiTestCase


class TokenServiceTests(unittest.TestCase):
    def test_issue_and_decode(self):
        tokens = TokenService(secret=TEST_JWT_SECRET, expires_in_seconds=3600)
        payload = tokens.decode(tokens.issue("uid-1", "a@example.com", "admin"))
        self.assertEqual(payload["uid"], "uid-1")
        self.assertEqual(payload["role"], "admin")
        self.assertEqual(payload["exp"] - payload["iat"], 3600)

    def test_expired_token_is_rejected(self):
        tokens = TokenService(secret=TEST_JWT_SECRET, expires_in_seconds=-10)
        with self.assertRaises(jwt.ExpiredSignatureError):
            tokens.decode(tokens.issue("uid-1"))

    def test_wrong_secret_is_rejected(self):
        token = TokenService(secret="another-secret-that-is-also-long-enough").issue("uid-1")
        with self.assertRaises(jwt.InvalidTokenError):
            TokenService(secret=TEST_JWT_SECRET).decode(token)

    def test_token_without_uid_is_rejected(self):
        now = int(time.time())
        token = jwt.encode(
            {"iat": now, "exp": now + 60}, TEST_JWT_SECRET, algorithm="HS256"
        )
        with self.assertRaises(jwt.InvalidTokenError):
            TokenService(secret=TEST_JWT_SECRET).decode(token)


class ResolveUserTests(unittest.TestCase):
    def setUp(self):
        self.tokens = TokenService(secret=TEST_JWT_SECRET)
        self.identity = InMemoryIdentityProvider()

    def test_session_token(self):
        user = resolve_user(self.tokens.issue("uid-1", "a@example.com"), self.tokens, self.identity)
        self.assertEqual(user.uid, "uid-1")
        self.assertEqual(user.email, "a@example.com")
        self.assertFalse(user.is_admin)

    def test_firebase_id_token(self):
        record = self.identity.create_user("b@example.com", "secret123")
        self.identity.set_custom_user_claims(record.uid, {"role": "admin"})
        user = resolve_user(self.identity.issue_id_token(record.uid), self.tokens, self.identity)
        self.assertEqual(user.uid, record.uid)
        self.assertTrue(user.is_admin)

    def test_garbage_token(self):
        with self.assertRaises(InvalidIdTokenError):
            resolve_user("not-a-token", self.tokens, self.identity)


class AuthRouteTests(ApiTestCase):
    def test_register_returns_session_token(self):
        response = self.client.post(
            "/api/auth/register",
            json={
                "email": "head@hillside.example",
                "password": "secret123",
                "displayName": "Grace",
            },
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["message"], "User registered successfully")
        self.assertEqual(payload["user"]["displayName"], "Grace")
        self.assertEqual(payload["user"]["role"], "user")

        claims = self.tokens.decode(payload["token"])
        self.assertEqual(claims["uid"], payload["user"]["uid"])
        self.assertEqual(claims["role"], "user")
        self.assertEqual(
            self.identity.get_user(claims["uid"]).custom_claims, {"role": "user"}
        )

    def test_register_duplicate_email_is_conflict(self):
        self.register()
        response = self.client.post(
            "/api/auth/register",
            json={"email": "head@hillside.example", "password": "secret123"},
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["status"], "error")

    def test_register_short_password_is_rejected(self):
        response = self.client.post(
            "/api/auth/register",
            json={"email": "head@hillside.example", "password": "123"},
        )
        self.assertEqual(response.status_code, 400)

    def test_login_with_id_token(self):
        uid, _ = self.register()
        response = self.client.post(
            "/api/auth/login", json={"idToken": self.identity.issue_id_token(uid)}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Login successful")
        self.assertEqual(payload["user"]["uid"], uid)
        self.assertEqual(self.tokens.decode(payload["token"])["uid"], uid)

    def test_login_with_invalid_id_token(self):
        response = self.client.post("/api/auth/login", json={"idToken": "forged"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Authentication failed")

    def test_reset_password_acknowledges_any_email(self):
        response = self.client.post(
            "/api/auth/reset-password", json={"email": "nobody@example.com"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("message", response.json())

    def test_verify(self):
        uid, token = self.register()
        response = self.client.get("/api/auth/verify", headers=self.auth(token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["uid"], uid)

    def test_missing_token(self):
        response = self.client.get("/api/auth/verify")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Unauthorized: No token provided")

    def test_invalid_token(self):
        response = self.client.get("/api/auth/verify", headers=self.auth("nope"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Unauthorized: Invalid token")

    def test_me_includes_school(self):
        uid, token = self.register(display_name="Grace")
        response = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["displayName"], "Grace")
        self.assertIsNone(response.json()["school"])

        self.create_school(token)
        response = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(response.json()["school"]["id"], uid)
        self.assertEqual(response.json()["school"]["schoolName"], "Hillside Primary")


if __name__ == "__main__":
    unittest.main()
