import asyncio
import json
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.config import settings
from db.session import SessionLocal
from queries.orders import create_order
from queries.store import get_store_config, get_subscription_status
from schemas.order import OrderOut
from schemas.store import StoreConfig, SubscriptionStatus
from services.notifier import Notifier
from services.order_mapper import dashboard_row, map_order_payload, order_to_out
from services.realtime import ConnectionRegistry
from services.risk_engine import score_order
from services.webhook_auth import verify_signature

log = logging.getLogger("webhooks")


class OrderPipeline:
    """
    Post-ack processing of one orders/create delivery:
      verify -> parse -> read shop config -> score -> persist -> (notify || broadcast)

    Runs detached from the HTTP request, so every failure ends here as a log line.
    No stage rolls back an earlier one.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        notifier: Optional[Notifier] = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self.registry = registry
        self.notifier = notifier or Notifier()
        self.session_factory = session_factory

    async def process(
        self,
        *,
        shop: Optional[str],
        topic: Optional[str],
        raw_body: bytes,
        signature: Optional[str],
    ) -> Optional[dict]:
        """
        Returns a small result dict (useful in tests / logs), or None when aborted.
        Never raises.
        """
        try:
            return await self._process(shop=shop, topic=topic, raw_body=raw_body, signature=signature)
        except Exception as e:
            log.exception("Error processing webhook from %s: %s", shop, e)
            return None

    async def _process(
        self,
        *,
        shop: Optional[str],
        topic: Optional[str],
        raw_body: bytes,
        signature: Optional[str],
    ) -> Optional[dict]:
        # --- authenticity ---
        if signature:
            if not verify_signature(raw_body, signature, settings.SHOPIFY_API_SECRET):
                log.error("Invalid webhook signature (shop=%s, topic=%s)", shop, topic)
                return None
        elif settings.WEBHOOK_REQUIRE_SIGNATURE:
            log.error("Unsigned webhook rejected (shop=%s, topic=%s)", shop, topic)
            return None
        else:
            log.warning("Unsigned webhook accepted without verification (shop=%s, topic=%s)", shop, topic)

        # --- payload ---
        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            log.error("Malformed webhook payload from %s: %s", shop, e)
            return None

        if not isinstance(payload, dict):
            log.error("Webhook payload from %s is not a JSON object", shop)
            return None

        if not shop:
            log.error("Missing shop domain in webhook headers")
            return None

        if payload.get("id") is None:
            log.error("Webhook payload from %s has no order id", shop)
            return None

        log.info("Received %s webhook from %s, order #%s", topic, shop, payload.get("name") or payload.get("id"))

        # --- score + persist ---
        db: Session = self.session_factory()
        try:
            config = get_store_config(db, shop)
            subscription = get_subscription_status(db, shop)

            verdict = score_order(payload, config, subscription)
            log.info(
                "Risk for order %s (%s): score=%s level=%s status=%s factors=%s",
                payload.get("id"), shop, verdict["score"], verdict["level"], verdict["status"], verdict["factors"],
            )

            order, created = create_order(db, data=map_order_payload(payload, shop), verdict=verdict)
            saved = order_to_out(order)

        except Exception:
            db.rollback()
            raise

        finally:
            db.close()

        if not created:
            log.info("Order %s for %s already ingested; duplicate delivery ignored", saved.order_id, shop)
            return {"order_id": saved.order_id, "created": False, "notified": [], "broadcast": 0}

        # --- fan out; each side isolated ---
        notified, delivered = await asyncio.gather(
            self._notify(saved, config, subscription),
            self._broadcast(shop, saved),
        )

        return {"order_id": saved.order_id, "created": True, "notified": notified, "broadcast": delivered}

    async def _notify(self, order: OrderOut, config: StoreConfig, subscription: SubscriptionStatus) -> list[str]:
        try:
            return await self.notifier.notify(order, config, subscription)
        except Exception as e:
            log.exception("notification stage failed for order %s: %s", order.order_id, e)
            return []

    async def _broadcast(self, shop: str, order: OrderOut) -> int:
        try:
            return await self.registry.notify_new_order(shop, dashboard_row(order))
        except Exception as e:
            log.exception("broadcast stage failed for order %s: %s", order.order_id, e)
            return 0
