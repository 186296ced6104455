import unittest

from fastapi.testclient import TestClient

from api.main import app
from session_auth.config import AuthConfig
from session_auth.dependencies import get_auth_config, get_user_store
from session_auth.security import verify_token
from session_auth.stores.memory_store import MemoryUserStore

CONFIG = AuthConfig(
    ACCESS_TOKEN_SECRET="access-secret",
    REFRESH_TOKEN_SECRET="refresh-secret",
    COOKIE_SECURE=False,
)

REGISTRATION = {
    "username": "alice",
    "email": "alice@example.com",
    "password": "s3cret-pass",
    "password_confirmation": "s3cret-pass",
}
CREDENTIALS = {"email": "alice@example.com", "password": "s3cret-pass"}


class AuthApiTestCase(unittest.TestCase):
    config = CONFIG

    def setUp(self):
        self.store = MemoryUserStore()
        app.dependency_overrides[get_user_store] = lambda: self.store
        app.dependency_overrides[get_auth_config] = lambda: self.config
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def register_and_login(self):
        self.assertEqual(self.client.post("/api/auth/register", json=REGISTRATION).status_code, 201)
        response = self.client.post("/api/auth/login", json=CREDENTIALS)
        self.assertEqual(response.status_code, 200)
        return response

    def client_with_refresh_token(self, token):
        return TestClient(app, cookies={"refreshToken": token})


class TestRegisterAndLogin(AuthApiTestCase):
    def test_register(self):
        response = self.client.post("/api/auth/register", json=REGISTRATION)

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["email"], "alice@example.com")
        self.assertNotIn("password", body["data"])

    def test_register_duplicate_email(self):
        self.client.post("/api/auth/register", json=REGISTRATION)

        response = self.client.post("/api/auth/register", json=REGISTRATION)

        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()["success"])

    def test_register_password_confirmation_mismatch(self):
        response = self.client.post(
            "/api/auth/register", json=dict(REGISTRATION, password_confirmation="different-pass")
        )

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Validation error")

    def test_login_sets_http_only_strict_cookies(self):
        response = self.register_and_login()

        set_cookies = response.headers.get_list("set-cookie")
        access = next(c for c in set_cookies if c.startswith("accessToken="))
        refresh = next(c for c in set_cookies if c.startswith("refreshToken="))
        for cookie in (access, refresh):
            self.assertIn("HttpOnly", cookie)
            self.assertIn("SameSite=strict", cookie)
        self.assertIn("Max-Age=900", access)
        self.assertIn("Max-Age=86400", refresh)
        self.assertNotIn("accessToken", response.text)

        user_id = response.json()["data"]["id"]
        claims = verify_token(response.cookies["accessToken"], CONFIG.ACCESS_TOKEN_SECRET)
        self.assertEqual(claims.subject_id, user_id)

    def test_login_wrong_password(self):
        self.client.post("/api/auth/register", json=REGISTRATION)

        response = self.client.post("/api/auth/login", json=dict(CREDENTIALS, password="wrong-pass"))

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid credentials")
        self.assertNotIn("set-cookie", response.headers)

    def test_register_password_longer_than_bcrypt_limit(self):
        password = "p" * 100

        response = self.client.post(
            "/api/auth/register",
            json=dict(REGISTRATION, password=password, password_confirmation=password),
        )

        self.assertEqual(response.status_code, 422)
        errors = response.json()["data"]["validation_errors"]
        self.assertIn("password", [error["field"] for error in errors])

    def test_register_password_at_bcrypt_limit(self):
        password = "p" * 72

        response = self.client.post(
            "/api/auth/register",
            json=dict(REGISTRATION, password=password, password_confirmation=password),
        )

        self.assertEqual(response.status_code, 201)
        login = self.client.post("/api/auth/login", json=dict(CREDENTIALS, password=password))
        self.assertEqual(login.status_code, 200)


class TestRefreshAndLogout(AuthApiTestCase):
    def test_refresh_issues_new_access_cookie(self):
        self.register_and_login()

        response = self.client.post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["data"]["rotated"])
        set_cookies = response.headers.get_list("set-cookie")
        self.assertTrue(any(c.startswith("accessToken=") for c in set_cookies))
        self.assertFalse(any(c.startswith("refreshToken=") for c in set_cookies))

    def test_refresh_without_cookie(self):
        response = self.client.post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 401)

    def test_refresh_with_invalid_token(self):
        client = self.client_with_refresh_token("garbage")

        response = client.post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired token")

    def test_superseded_refresh_token_is_rejected_and_cookies_cleared(self):
        first = self.register_and_login().cookies["refreshToken"]
        self.client.post("/api/auth/login", json=CREDENTIALS)

        response = self.client_with_refresh_token(first).post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid refresh token")
        set_cookies = response.headers.get_list("set-cookie")
        self.assertTrue(any(c.startswith('accessToken=""') for c in set_cookies))
        self.assertTrue(any(c.startswith('refreshToken=""') for c in set_cookies))

        self.assertEqual(self.client.post("/api/auth/refresh-token").status_code, 200)

    def test_logout_clears_session_and_cookies(self):
        refresh_token = self.register_and_login().cookies["refreshToken"]

        response = self.client.post("/api/auth/logout")

        self.assertEqual(response.status_code, 200)
        self.assertNotIn("accessToken", self.client.cookies)
        self.assertNotIn("refreshToken", self.client.cookies)

        replay = self.client_with_refresh_token(refresh_token).post("/api/auth/refresh-token")
        self.assertEqual(replay.status_code, 401)
        self.assertEqual(replay.json()["message"], "Refresh token not found")

    def test_logout_twice(self):
        self.register_and_login()

        self.assertEqual(self.client.post("/api/auth/logout").status_code, 200)
        self.assertEqual(self.client.post("/api/auth/logout").status_code, 200)

    def test_logout_with_only_refresh_cookie(self):
        refresh_token = self.register_and_login().cookies["refreshToken"]

        response = self.client_with_refresh_token(refresh_token).post("/api/auth/logout")

        self.assertEqual(response.status_code, 200)
        replay = self.client_with_refresh_token(refresh_token).post("/api/auth/refresh-token")
        self.assertEqual(replay.status_code, 401)


class TestRotationOverHttp(AuthApiTestCase):
    config = AuthConfig(
        ACCESS_TOKEN_SECRET="access-secret",
        REFRESH_TOKEN_SECRET="refresh-secret",
        COOKIE_SECURE=False,
        ROTATE_REFRESH_TOKENS=True,
    )

    def test_refresh_rotates_refresh_cookie(self):
        original = self.register_and_login().cookies["refreshToken"]

        response = self.client.post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["rotated"])
        self.assertNotEqual(response.cookies["refreshToken"], original)

        replay = self.client_with_refresh_token(original).post("/api/auth/refresh-token")
        self.assertEqual(replay.status_code, 401)


class TestUserInfo(AuthApiTestCase):
    def test_user_info_requires_access_cookie(self):
        response = self.client.get("/api/user/info")

        self.assertEqual(response.status_code, 401)

    def test_user_info_returns_profile(self):
        self.register_and_login()

        response = self.client.get("/api/user/info")

        self.assertEqual(response.status_code, 200)
        user = response.json()["data"]["user"]
        self.assertEqual(user["username"], "alice")
        self.assertNotIn("hashed_password", user)
        self.assertNotIn("refresh_token", user)


class StoreWriteDown(MemoryUserStore):
    """Reads work, refresh-token writes fail."""

    async def set_refresh_token(self, principal_id, token):
        raise ConnectionError("database unavailable")


class TestStoreFailure(AuthApiTestCase):
    def test_login_store_failure_sends_no_cookies(self):
        self.store = StoreWriteDown()
        self.client.post("/api/auth/register", json=REGISTRATION)

        response = self.client.post("/api/auth/login", json=CREDENTIALS)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["message"], "Internal server error")
        self.assertNotIn("set-cookie", response.headers)
        self.assertNotIn("database", response.text)


class TestSecureCookies(AuthApiTestCase):
    config = AuthConfig(
        ACCESS_TOKEN_SECRET="access-secret",
        REFRESH_TOKEN_SECRET="refresh-secret",
        COOKIE_SECURE=True,
    )

    def test_login_cookies_are_secure(self):
        response = self.register_and_login()

        set_cookies = response.headers.get_list("set-cookie")
        for name in ("accessToken=", "refreshToken="):
            cookie = next(c for c in set_cookies if c.startswith(name))
            self.assertIn("Secure", cookie)
            self.assertIn("HttpOnly", cookie)

    def test_error_cookie_clearing_uses_same_attributes(self):
        response = self.client.post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 401)
        set_cookies = response.headers.get_list("set-cookie")
        self.assertEqual(len(set_cookies), 2)
        for cookie in set_cookies:
            self.assertIn("Secure", cookie)
            self.assertIn("SameSite=strict", cookie)


class TestErrorEnvelope(AuthApiTestCase):
    def test_unknown_route_uses_envelope(self):
        response = self.client.get("/api/does-not-exist")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Not Found", "data": None})

    def test_token_mismatch_logged_once_as_warning(self):
        first = self.register_and_login().cookies["refreshToken"]
        self.client.post("/api/auth/login", json=CREDENTIALS)

        with self.assertLogs(level="DEBUG") as captured:
            response = self.client_with_refresh_token(first).post("/api/auth/refresh-token")

        self.assertEqual(response.status_code, 401)
        warnings = [r for r in captured.records if r.levelname == "WARNING" and "mismatch" in r.getMessage()]
        self.assertEqual(len(warnings), 1)
        self.assertEqual(warnings[0].name, "session_auth.services.session_service")


if __name__ == "__main__":
    unittest.main()
