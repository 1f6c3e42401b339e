from datetime import datetime
from typing import Any, Optional

from schemas.store import RiskThresholds, StoreConfig, SubscriptionStatus


# Factors every plan gets, as configured by the shop
BASIC_FACTORS = ("order_value", "address_mismatch", "email_domain")

# Factors only pro / business / trial shops get; forced off otherwise
PRO_FACTORS = (
    "order_time",
    "customer_history",
    "ip_location",
    "checkout_speed",
    "gift_card_use",
    "quantity_spike",
)

SUSPICIOUS_EMAIL_DOMAINS = frozenset({
    "tempmail.com",
    "throwawaymail.com",
    "mailinator.com",
    "guerrillamail.com",
    "yopmail.com",
    "sharklasers.com",
})


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_order_time(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    # hour-of-day is judged in server local time; naive stamps are taken as local
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def captured_ip(order: dict) -> Optional[str]:
    ip = order.get("browser_ip")
    if not ip:
        ip = _as_dict(order.get("client_details")).get("browser_ip")
    return ip or None


def is_pro_plan(subscription: Optional[SubscriptionStatus]) -> bool:
    return bool(subscription and subscription.is_pro)


def resolve_factors(config: Optional[StoreConfig], is_pro: bool) -> dict[str, bool]:
    """
    Capability set for one scoring call.
    Basic factors follow the shop toggles; pro factors need a pro plan AND the toggle.
    """
    toggles = (config or StoreConfig()).risk_factors.model_dump()

    resolved: dict[str, bool] = {}
    for name in BASIC_FACTORS:
        resolved[name] = bool(toggles.get(name, True))
    for name in PRO_FACTORS:
        resolved[name] = is_pro and bool(toggles.get(name, True))
    return resolved


def level_from_score(score: int, thresholds: RiskThresholds) -> str:
    if score >= thresholds.high:
        return "high"
    elif score >= thresholds.medium:
        return "medium"
    else:
        return "low"


def status_from_level(level: str, config: Optional[StoreConfig]) -> str:
    """First match wins. Medium / low never trigger an automation."""
    automations = (config or StoreConfig()).automations

    if level == "high" and automations.hold_high_risk_orders:
        return "on_hold"
    elif level == "high" and automations.flag_for_review:
        return "pending"
    elif level == "high" and automations.cancel_high_risk_orders:
        return "declined"
    else:
        return "approved"


def evaluate_factors(order: dict, enabled: dict[str, bool]) -> list[dict]:
    """
    Run every enabled rule against a Shopify order payload.
    Returns triggered factors in evaluation order:
      [{"factor": ..., "description": ..., "contribution": ...}, ...]

    Bad input (non-numeric price, broken timestamp, ...) skips the rule, never raises.
    customer_history / checkout_speed / quantity_spike are toggles without a rule yet.
    """
    hits: list[dict] = []

    def hit(factor: str, description: str, contribution: int) -> None:
        hits.append({"factor": factor, "description": description, "contribution": contribution})

    # -------------------------
    # Basic factors
    # -------------------------
    if enabled.get("order_value"):
        total = _to_float(order.get("total_price"))
        if total is not None:
            if total > 1000:
                hit("order_value", "High value order", 20)
            elif total > 500:
                hit("order_value", "Medium-high value order", 10)

    if enabled.get("address_mismatch"):
        billing = order.get("billing_address")
        shipping = order.get("shipping_address")
        if isinstance(billing, dict) and isinstance(shipping, dict) and billing and shipping:
            if any(billing.get(k) != shipping.get(k) for k in ("zip", "city", "country")):
                hit("address_mismatch", "Billing and shipping addresses don't match", 15)

    if enabled.get("email_domain"):
        email = _as_dict(order.get("customer")).get("email")
        if isinstance(email, str) and "@" in email:
            domain = email.lower().split("@", 1)[1]
            if domain in SUSPICIOUS_EMAIL_DOMAINS:
                hit("email_domain", "Suspicious email domain", 25)

    # -------------------------
    # Pro factors
    # -------------------------
    if enabled.get("ip_location") and captured_ip(order):
        # placeholder signal: no geolocation lookup, presence only
        hit("ip_location", "IP address tracking enabled", 5)

    if enabled.get("order_time"):
        placed_at = _parse_order_time(order.get("created_at"))
        if placed_at is not None and (placed_at.hour >= 22 or placed_at.hour <= 4):
            hit("order_time", "Order placed during unusual hours", 10)

    if enabled.get("gift_card_use"):
        gateways = order.get("payment_gateway_names") or []
        if isinstance(gateways, list) and any(
            isinstance(g, str) and "gift" in g.lower() for g in gateways
        ):
            hit("gift_card_use", "Payment with gift card", 15)

    return hits


def score_order(
    order: dict,
    config: Optional[StoreConfig],
    subscription: Optional[SubscriptionStatus],
) -> dict:
    """
    Deterministic order risk verdict (no I/O).
    Missing config -> shop defaults (thresholds 75/50, every factor on).
    """
    config = config or StoreConfig()

    enabled = resolve_factors(config, is_pro_plan(subscription))
    hits = evaluate_factors(order, enabled)

    score = sum(h["contribution"] for h in hits)
    level = level_from_score(score, config.risk_thresholds)

    return {
        "score": int(score),
        "level": level,
        "factors": [h["description"] for h in hits],
        "reviewed": False,
        "status": status_from_level(level, config),
        "ip_address": captured_ip(order),
        "checkout_speed": None,  # needs checkout start/end times Shopify doesn't send here
    }
