import unittest

from fastapi.testclient import TestClient

from harmoniq.auth.deps import get_auth_provider, get_profile_store
from harmoniq.exceptions import StoreError
from harmoniq.main import create_app
from harmoniq.schemas.profile import ProfileField
from tests.fakes import VALID_PROFILE, FakeAuthProvider, RecordingStore, make_settings


def camel_case(values):
    return {ProfileField(key).api_name: value for key, value in values.items()}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(make_settings(profile_backend="memory"))
        self.auth = FakeAuthProvider()
        self.app.dependency_overrides[get_auth_provider] = lambda: self.auth
        self.client = TestClient(self.app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def sign_up(self, email="jo@example.com", password="secret-pass"):
        return self.client.post("/auth/signup", json={"email": email, "password": password})


class TestHealth(ApiTestCase):
    def test_health(self):
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_profile_options(self):
        response = self.client.get("/profile/options")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["livingArrangements"], ["Apartment", "House", "Shared housing", "Other"])
        self.assertIn("Yoga", body["suggestedSports"])


class TestAuthAndSession(ApiTestCase):
    def test_no_session(self):
        response = self.client.get("/session")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "no_session")
        self.assertEqual(response.json()["choices"], [])

    def test_continue_without_session(self):
        self.assertEqual(self.client.post("/session/continue").status_code, 401)

    def test_signup_goes_to_onboarding_with_placeholder(self):
        response = self.sign_up()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "authenticated")
        self.assertEqual(body["next"], "/onboarding")
        self.assertEqual(body["user"]["email"], "jo@example.com")
        self.assertEqual(len(self.app.state.profile_store), 1)

    def test_signup_pending_confirmation(self):
        self.auth.confirm_email = True

        body = self.sign_up().json()

        self.assertEqual(body["status"], "confirmation_required")
        self.assertIsNone(body["access_token"])
        self.assertEqual(len(self.app.state.profile_store), 0)

    def test_signup_succeeds_when_placeholder_cannot_be_written(self):
        store = RecordingStore()
        store.upsert_error = StoreError("unreachable")
        self.app.dependency_overrides[get_profile_store] = lambda: store

        response = self.sign_up()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["next"], "/onboarding")
        self.assertIsNotNone(response.json()["access_token"])
        self.assertEqual(self.client.get("/session").json()["status"], "session_without_profile")

    def test_signup_rejects_bad_credentials_shape(self):
        self.assertEqual(self.sign_up(email="not-an-email").status_code, 422)
        self.assertEqual(self.sign_up(password="123").status_code, 422)

    def test_login(self):
        self.auth.register("jo@example.com", "secret-pass", "user-7")

        response = self.client.post("/auth/login", json={"email": "Jo@Example.com ", "password": "secret-pass"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["access_token"], "token-user-7")
        self.assertEqual(response.json()["next"], "/profile")

    def test_bad_login(self):
        response = self.client.post("/auth/login", json={"email": "jo@example.com", "password": "wrong-pass"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"detail": "Invalid login credentials"})

    def test_existing_session_is_offered_not_followed(self):
        self.sign_up()

        body = self.client.get("/session").json()

        self.assertEqual(body["status"], "session_with_profile")
        self.assertEqual(body["choices"], ["continue", "sign_out"])
        self.assertEqual(body["profile"]["userId"], body["user"]["id"])

    def test_continue_and_logout(self):
        self.sign_up()

        response = self.client.post("/session/continue")
        self.assertEqual(response.json(), {"status": "session_with_profile", "next": "/profile"})

        response = self.client.post("/auth/logout")
        self.assertEqual(response.json(), {"status": "no_session", "next": "/login"})
        self.assertEqual(self.auth.sign_out_calls, 1)
        self.assertEqual(self.client.get("/session").json()["status"], "no_session")

    def test_continue_without_profile_goes_to_onboarding(self):
        identity = self.auth.register("sam@example.com", "secret-pass", "user-9")
        self.auth.identity = identity

        response = self.client.post("/session/continue")

        self.assertEqual(response.json(), {"status": "session_without_profile", "next": "/onboarding"})


class TestProfileApi(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.sign_up()

    def test_save_valid_profile(self):
        response = self.client.put("/profile", json=camel_case(VALID_PROFILE))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["next"], "/dashboard")
        self.assertEqual(body["profile"]["userId"], self.auth.identity.user_id)
        self.assertEqual(body["profile"]["wakeUpTime"], "6:30")
        self.assertEqual(body["profile"]["sportsActivities"], ["Yoga"])

        fetched = self.client.get("/profile").json()
        self.assertEqual(fetched["id"], body["profile"]["id"])
        self.assertEqual(len(self.app.state.profile_store), 1)

    def test_save_accepts_column_names_and_ignores_store_columns(self):
        payload = {**VALID_PROFILE, "id": "forged", "createdAt": "2020-01-01T00:00:00Z"}

        response = self.client.put("/profile", json=payload)

        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(response.json()["profile"]["id"], "forged")

    def test_invalid_profile_reports_field_errors(self):
        response = self.client.put("/profile", json=camel_case({**VALID_PROFILE, "age": 17}))

        self.assertEqual(response.status_code, 422)
        self.assertEqual(
            response.json(),
            {"detail": "Invalid profile fields: age", "fieldErrors": {"age": ["You must be at least 18 years old"]}},
        )
        self.assertIsNone(self.client.get("/profile").json()["name"])

    def test_unknown_field(self):
        response = self.client.put("/profile", json={**camel_case(VALID_PROFILE), "favouriteColour": "Blue"})

        self.assertEqual(response.status_code, 422)
        self.assertIn("favouriteColour", response.json()["detail"])

    def test_validate_checks_only_sent_fields(self):
        response = self.client.post("/profile/validate", json={"age": 17, "wakeUpTime": "7:15"})

        self.assertEqual(
            response.json(),
            {"valid": False, "fieldErrors": {"age": ["You must be at least 18 years old"]}},
        )
        self.assertEqual(self.client.post("/profile/validate", json={"name": "Jo"}).json()["valid"], True)

    def test_store_failure_is_bad_gateway(self):
        store = RecordingStore()
        store.upsert_error = StoreError("The profile store is unreachable. Please try again.")
        self.app.dependency_overrides[get_profile_store] = lambda: store

        response = self.client.put("/profile", json=camel_case(VALID_PROFILE))

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json(), {"detail": "The profile store is unreachable. Please try again."})

    def test_lookup_failure_is_not_reported_as_missing(self):
        store = RecordingStore()
        store.select_error = StoreError("timeout")
        self.app.dependency_overrides[get_profile_store] = lambda: store
        self.app.state.profile_cache.invalidate(self.auth.identity.user_id)

        with self.assertLogs("harmoniq.services.session_gate", level="ERROR"):
            response = self.client.get("/profile")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json(), {"detail": "Could not load your profile: timeout"})

    def test_profile_requires_session(self):
        self.auth.identity = None

        self.assertEqual(self.client.get("/profile").status_code, 401)
        self.assertEqual(self.client.put("/profile", json=camel_case(VALID_PROFILE)).status_code, 401)


class TestProfileWithoutSignup(ApiTestCase):
    def test_missing_profile_is_not_found(self):
        self.auth.identity = self.auth.register("sam@example.com", "secret-pass", "user-9")

        self.assertEqual(self.client.get("/profile").status_code, 404)

        response = self.client.put("/profile", json=camel_case(VALID_PROFILE))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/profile").json()["id"], response.json()["profile"]["id"])


if __name__ == "__main__":
    unittest.main()
