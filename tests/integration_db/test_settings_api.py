import os
import tempfile
import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import app
from db.session import get_db
from models.base import Base
from models.store import StoreSettings, TrialStatus


SHOP = "settings-store.myshopify.com"


class TestSettingsAPI(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        self._tmp.close()

        self.engine = create_engine(
            f"sqlite:///{self._tmp.name}",
            connect_args={"check_same_thread": False},
            future=True,
        )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, future=True)
        Base.metadata.create_all(bind=self.engine)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)
        app.state.ttl_cache = {}

        with self.SessionLocal() as db:
            db.query(StoreSettings).delete()
            db.query(TrialStatus).delete()
            db.commit()

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        try:
            self.engine.dispose()
        finally:
            if os.path.exists(self._tmp.name):
                os.unlink(self._tmp.name)

    def test_first_read_creates_defaults(self):
        r = self.client.get(f"/settings?shop={SHOP}")
        self.assertEqual(r.status_code, 200)

        data = r.json()["data"]
        self.assertEqual(data["risk_thresholds"], {"high": 75, "medium": 50})
        self.assertTrue(all(data["risk_factors"].values()))
        self.assertEqual(len(data["risk_factors"]), 9)
        self.assertTrue(data["automations"]["hold_high_risk_orders"])
        self.assertTrue(data["automations"]["flag_for_review"])
        self.assertFalse(data["automations"]["cancel_high_risk_orders"])
        self.assertEqual(data["notifications"]["frequency"], "immediate")
        self.assertTrue(data["ai_settings"]["enable_feedback"])

        with self.SessionLocal() as db:
            self.assertEqual(db.query(StoreSettings).filter(StoreSettings.shop_id == SHOP).count(), 1)

        # second read does not duplicate
        self.client.get(f"/settings?shop={SHOP}")
        with self.SessionLocal() as db:
            self.assertEqual(db.query(StoreSettings).count(), 1)

    def test_put_replaces_configuration(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        config["risk_thresholds"] = {"high": 40, "medium": 20}
        config["risk_factors"]["email_domain"] = False
        config["notifications"]["email"] = {"enabled": True, "address": "owner@shop.test"}

        r = self.client.put(f"/settings?shop={SHOP}", json=config)
        self.assertEqual(r.status_code, 200)

        again = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        self.assertEqual(again["risk_thresholds"], {"high": 40, "medium": 20})
        self.assertFalse(again["risk_factors"]["email_domain"])
        self.assertEqual(again["notifications"]["email"]["address"], "owner@shop.test")

    def test_put_can_clear_notifications(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        config["notifications"] = None

        r = self.client.put(f"/settings?shop={SHOP}", json=config)
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(self.client.get(f"/settings?shop={SHOP}").json()["data"]["notifications"])

    def test_put_rejects_inverted_thresholds(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        config["risk_thresholds"] = {"high": 50, "medium": 60}

        r = self.client.put(f"/settings?shop={SHOP}", json=config)
        self.assertEqual(r.status_code, 422)

        # nothing saved
        data = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        self.assertEqual(data["risk_thresholds"], {"high": 75, "medium": 50})

    def test_put_rejects_unknown_frequency(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        config["notifications"]["frequency"] = "weekly"
        self.assertEqual(self.client.put(f"/settings?shop={SHOP}", json=config).status_code, 422)

    def test_settings_are_per_shop(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        config["risk_thresholds"] = {"high": 90, "medium": 10}
        self.client.put(f"/settings?shop={SHOP}", json=config)

        other = self.client.get("/settings?shop=another.myshopify.com").json()["data"]
        self.assertEqual(other["risk_thresholds"], {"high": 75, "medium": 50})

    def test_put_clears_only_this_shop_cache(self):
        app.state.ttl_cache = {
            f"summary:{SHOP}:days=30": (9e12, {}),
            "summary:another.myshopify.com:days=30": (9e12, {}),
        }
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        self.client.put(f"/settings?shop={SHOP}", json=config)

        self.assertEqual(list(app.state.ttl_cache), ["summary:another.myshopify.com:days=30"])

    def test_shop_is_required(self):
        self.assertEqual(self.client.get("/settings").status_code, 422)
        self.assertEqual(self.client.get("/settings?shop=").status_code, 422)

    def test_subscription_defaults_to_free(self):
        r = self.client.get(f"/settings/subscription?shop={SHOP}")
        self.assertEqual(r.status_code, 200)
        payload = r.json()
        self.assertEqual(payload["data"]["plan"], "free")
        self.assertFalse(payload["data"]["is_active"])
        self.assertFalse(payload["meta"]["is_pro"])

    def test_subscription_trial_is_pro(self):
        with self.SessionLocal() as db:
            db.add(TrialStatus(shop_id=SHOP, is_active=True, days_remaining=9, plan="free"))
            db.commit()

        payload = self.client.get(f"/settings/subscription?shop={SHOP}").json()
        self.assertTrue(payload["meta"]["is_pro"])
        self.assertEqual(payload["data"]["days_remaining"], 9)

    def test_put_survives_broken_cache_and_logs_it(self):
        config = self.client.get(f"/settings?shop={SHOP}").json()["data"]
        app.state.ttl_cache = {1: (9e12, {})}

        with self.assertLogs("risk_guard", level="DEBUG") as logs:
            r = self.client.put(f"/settings?shop={SHOP}", json=config)

        self.assertEqual(r.status_code, 200)
        self.assertTrue(any("TTL cache clear skipped" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
