import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import app
from db.session import get_db
from models.base import Base
from models.order import Order, OrderItem
from models.risk import RiskAnalysis
from queries.orders import create_order
from services.order_mapper import map_order_payload


SHOP = "dash-store.myshopify.com"


def _ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


class TestDashboardSummaryAPI(unittest.TestCase):
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

        # clear cache every test
        app.state.ttl_cache = {}

        # clean db
        with self.SessionLocal() as db:
            db.query(RiskAnalysis).delete()
            db.query(OrderItem).delete()
            db.query(Order).delete()
            db.commit()

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        try:
            self.engine.dispose()
        finally:
            if os.path.exists(self._tmp.name):
                os.unlink(self._tmp.name)

    def _add(self, db, order_id, *, days_ago, score, level, status="approved", country="US", shop=SHOP):
        payload = {
            "id": order_id,
            "order_number": order_id,
            "created_at": _ago(days_ago),
            "total_price": "100.00",
            "customer": {"first_name": "Dana", "last_name": "Ng"},
            "shipping_address": {"city": "X", "country": country} if country else None,
        }
        verdict = {
            "score": score,
            "level": level,
            "factors": ["High value order"] if score else [],
            "status": status,
        }
        create_order(db, data=map_order_payload(payload, shop), verdict=verdict)

    def _seed(self):
        with self.SessionLocal() as db:
            self._add(db, 1, days_ago=1, score=0, level="low")
            self._add(db, 2, days_ago=2, score=60, level="medium", country="CA")
            self._add(db, 3, days_ago=3, score=90, level="high", status="on_hold")
            self._add(db, 4, days_ago=4, score=10, level="low", country=None)
            # outside the default 30-day window
            self._add(db, 5, days_ago=60, score=100, level="high")
            # another tenant
            self._add(db, 6, days_ago=1, score=100, level="high", shop="other.myshopify.com")

    def test_summary_success(self):
        self._seed()

        r = self.client.get(f"/dashboard/summary?shop={SHOP}")
        self.assertEqual(r.status_code, 200)

        data = r.json()["data"]
        self.assertEqual(data["total_orders"], 4)
        self.assertEqual(data["risky_orders"], 2)
        self.assertEqual(data["risk_percentage"], 50.0)
        self.assertEqual(data["average_risk_score"], 40)
        self.assertEqual(data["risk_counts"], {"low": 2, "medium": 1, "high": 1})
        self.assertEqual(data["days"], 30)

        regions = {row["region"]: row for row in data["regions"]}
        self.assertEqual(regions["US"]["orders"], 2)
        self.assertEqual(regions["US"]["risk_percentage"], 50.0)
        self.assertEqual(regions["CA"]["risk_percentage"], 100.0)
        self.assertEqual(regions["Unknown"]["orders"], 1)
        # busiest region first
        self.assertEqual(data["regions"][0]["region"], "US")

    def test_summary_days_window(self):
        self._seed()

        data = self.client.get(f"/dashboard/summary?shop={SHOP}&days=90").json()["data"]
        self.assertEqual(data["total_orders"], 5)
        self.assertEqual(data["risk_counts"]["high"], 2)

        # order 1 is 1 day old, order 2 just over 2 days by the time of the request
        data = self.client.get(f"/dashboard/summary?shop={SHOP}&days=2").json()["data"]
        self.assertEqual(data["total_orders"], 1)

    def test_summary_empty_shop(self):
        data = self.client.get("/dashboard/summary?shop=empty.myshopify.com").json()["data"]
        self.assertEqual(data["total_orders"], 0)
        self.assertEqual(data["risk_percentage"], 0)
        self.assertEqual(data["average_risk_score"], 0)
        self.assertEqual(data["regions"], [])

    def test_summary_uses_cache(self):
        self._seed()

        r1 = self.client.get(f"/dashboard/summary?shop={SHOP}")
        self.assertEqual(r1.status_code, 200)
        self.assertIn(f"summary:{SHOP}:days=30", app.state.ttl_cache)

        # new order lands, cached numbers are served until TTL / invalidation
        with self.SessionLocal() as db:
            self._add(db, 7, days_ago=0, score=95, level="high")

        r2 = self.client.get(f"/dashboard/summary?shop={SHOP}")
        self.assertEqual(r2.json()["data"]["total_orders"], r1.json()["data"]["total_orders"])

        app.state.ttl_cache = {}
        r3 = self.client.get(f"/dashboard/summary?shop={SHOP}")
        self.assertEqual(r3.json()["data"]["total_orders"], 5)

    def test_summary_validation(self):
        self.assertEqual(self.client.get("/dashboard/summary").status_code, 422)
        self.assertEqual(self.client.get(f"/dashboard/summary?shop={SHOP}&days=0").status_code, 422)

    def test_dashboard_orders_rows(self):
        self._seed()

        r = self.client.get(f"/dashboard/orders?shop={SHOP}&limit=2")
        self.assertEqual(r.status_code, 200)

        rows = r.json()["data"]
        self.assertEqual([row["id"] for row in rows], ["#1", "#2"])
        self.assertEqual(rows[0]["customer"], "Dana Ng")
        self.assertEqual(rows[0]["total"], "$100.00")
        self.assertEqual(rows[0]["status"], "Approved")
        self.assertEqual(rows[1]["risk_level"], "medium")
        self.assertEqual(rows[1]["risk_reasons"], "High value order")

        rows = self.client.get(f"/dashboard/orders?shop={SHOP}&limit=1&skip=2").json()["data"]
        self.assertEqual(rows[0]["id"], "#3")
        self.assertEqual(rows[0]["status"], "On Hold")


if __name__ == "__main__":
    unittest.main()
