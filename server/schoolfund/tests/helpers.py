import unittest

from fastapi.testclient import TestClient

from schoolfund.app import create_app
from schoolfund.auth import InMemoryIdentityProvider, TokenService
from schoolfund.config import Settings, get_settings
from schoolfund.dependencies import (
    get_identity_provider,
    get_rate_limit_store,
    get_storage_client,
    get_store,
)
from schoolfund.rate_limit import InMemoryRateLimitStore
from schoolfund.storage import InMemoryStorageClient
from schoolfund.store import InMemoryDocumentStore

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"

SCHOOL_PAYLOAD = {
    "schoolName": "Hillside Primary",
    "country": "Kenya",
    "city": "Nairobi",
    "schoolType": "Public",
    "challenges": ["No science lab"],
    "contactName": "Grace Wanjiru",
    "email": "contact@hillside.example",
    "phone": "+254700000000",
    "profileImage": "https://example.test/storage/profiles/grace.png",
}

CAMPAIGN_PAYLOAD = {
    "name": "Build a science lab",
    "description": "Benches, microscopes and a fume cupboard.",
    "goal": 5000,
    "startDate": "2026-01-01",
    "endDate": "2026-06-30",
    "category": "Education",
}


class ApiTestCase(unittest.TestCase):
    """Runs the app against fresh in-memory backends for every test."""

    settings_overrides: dict = {}

    def setUp(self):
        options = {
            "environment": "test",
            "jwt_secret": TEST_JWT_SECRET,
            "use_in_memory_backends": True,
            "rate_limit_max_requests": 1000,
        }
        options.update(self.settings_overrides)
        self.settings = Settings(**options)

        self.store = InMemoryDocumentStore()
        self.storage = InMemoryStorageClient()
        self.identity = InMemoryIdentityProvider()
        self.rate_limits = InMemoryRateLimitStore()
        self.tokens = TokenService(secret=TEST_JWT_SECRET)

        self.app = create_app(self.settings)
        self.app.dependency_overrides.update(
            {
                get_settings: lambda: self.settings,
                get_store: lambda: self.store,
                get_storage_client: lambda: self.storage,
                get_identity_provider: lambda: self.identity,
                get_rate_limit_store: lambda: self.rate_limits,
            }
        )
        self.client = TestClient(self.app)

    def register(self, email="head@hillside.example", password="secret123", display_name=None):
        """Register an account and return (uid, session token)."""
        response = self.client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "displayName": display_name},
        )
        self.assertEqual(response.status_code, 201, response.text)
        payload = response.json()
        return payload["user"]["uid"], payload["token"]

    def admin_token(self, uid="admin-uid"):
        return self.tokens.issue(uid, "admin@schoolfund.example", "admin")

    @staticmethod
    def auth(token):
        return {"Authorization": f"Bearer {token}"}

    def create_school(self, token, **overrides):
        response = self.client.post(
            "/api/schools", json={**SCHOOL_PAYLOAD, **overrides}, headers=self.auth(token)
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def create_campaign(self, token, **overrides):
        response = self.client.post(
            "/api/campaigns",
            json={**CAMPAIGN_PAYLOAD, **overrides},
            headers=self.auth(token),
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()
