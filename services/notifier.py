import logging
from string import Template
from typing import Optional

from schemas.order import OrderOut
from schemas.store import StoreConfig, SubscriptionStatus
from services.chat_client import ChatWebhookClient
from services.email_client import EmailClient

log = logging.getLogger("notifications")


DEFAULT_EMAIL_TEMPLATE = (
    "Order #$order_number was flagged as $risk_level risk (score $risk_score).\n\n"
    "Customer: $customer_name <$customer_email>\n"
    "Total: $total_price $currency\n"
    "Recommended status: $status\n\n"
    "Risk factors:\n$risk_factors_list\n"
)


def _template_values(order: OrderOut) -> dict:
    risk = order.risk
    factors = risk.factors if risk else []
    return {
        "order_number": order.order_number or order.order_id,
        "order_id": order.order_id,
        "risk_level": risk.level if risk else "low",
        "risk_score": risk.score if risk else 0,
        "risk_factors": ", ".join(factors),
        "risk_factors_list": "\n".join(f"- {f}" for f in factors) or "- none",
        "status": risk.status if risk else "approved",
        "customer_name": f"{order.customer.first_name} {order.customer.last_name}",
        "customer_email": order.customer.email,
        "total_price": f"{order.total_price:.2f}",
        "currency": order.currency,
    }


def render_email(order: OrderOut, custom_template: Optional[str] = None) -> tuple[str, str]:
    """
    (subject, body). Custom templates use $placeholders (see _template_values);
    unknown placeholders are left as-is.
    """
    values = _template_values(order)
    subject = f"[{str(values['risk_level']).upper()} RISK] Order #{values['order_number']}"
    body = Template(custom_template or DEFAULT_EMAIL_TEMPLATE).safe_substitute(values)
    return subject, body


def render_chat_message(order: OrderOut) -> str:
    values = _template_values(order)
    return (
        f":rotating_light: *{str(values['risk_level']).upper()} risk* order "
        f"#{values['order_number']} (score {values['risk_score']})\n"
        f"Customer: {values['customer_name']} | Total: {values['total_price']} {values['currency']}\n"
        f"Factors: {values['risk_factors'] or 'none'}"
    )


class Notifier:
    """
    Decides whether / where to alert the merchant about one scored order.
    Best effort: never raises, failures are logged per channel.
    """

    def __init__(
        self,
        email_client: Optional[EmailClient] = None,
        chat_client: Optional[ChatWebhookClient] = None,
    ) -> None:
        self.email = email_client or EmailClient()
        self.chat = chat_client or ChatWebhookClient()

    async def notify(
        self,
        order: OrderOut,
        config: Optional[StoreConfig],
        subscription: Optional[SubscriptionStatus],
    ) -> list[str]:
        """Returns the channels that were delivered (e.g. ["email", "slack"])."""
        sent: list[str] = []

        try:
            level = order.risk.level if order.risk else "low"
            is_pro = bool(subscription and subscription.is_pro)

            if level not in ("medium", "high"):
                log.info("No notification needed for low-risk order #%s", order.order_number)
                return sent

            notifications = config.notifications if config else None
            if not notifications:
                log.info("No notification settings found for shop: %s", order.shop_id)
                return sent

            if not is_pro and level != "high":
                log.info("Free plan only notifies on high-risk orders (order #%s)", order.order_number)
                return sent

            if notifications.frequency != "immediate":
                # hourly / daily digests are built by a separate batch job
                log.info("Notification for order #%s left for %s delivery", order.order_number, notifications.frequency)
                return sent

            if notifications.email.enabled and notifications.email.address:
                template = config.automations.custom_email_template if config else None
                if await self._send_email(notifications.email.address, order, template):
                    sent.append("email")

            if is_pro and notifications.slack.enabled and notifications.slack.webhook_url:
                if await self._send_chat(notifications.slack.webhook_url, order):
                    sent.append("slack")

            log.info("Notifications for order #%s: %s", order.order_number, sent or "none delivered")

        except Exception as e:
            log.exception("Error sending notifications for order %s: %s", order.order_id, e)

        return sent

    async def _send_email(self, address: str, order: OrderOut, template: Optional[str]) -> bool:
        subject, body = render_email(order, template)
        try:
            return bool(await self.email.send(address, subject, body))
        except Exception as e:
            log.exception("email notification to %s failed: %s", address, e)
            return False

    async def _send_chat(self, webhook_url: str, order: OrderOut) -> bool:
        try:
            await self.chat.post_message(webhook_url, render_chat_message(order))
            return True
        except Exception as e:
            log.exception("chat webhook notification failed: %s", e)
            return False
